"""
Settings View
=============
Text rendering of the reporter profile for the CLI, plus a render guard
that contains rendering failures.

States:
    store not initialised (or loading)  → loading line
    initialised, no user                → error line
    user present                        → id / name / email, "Not set" fallback
"""
import logging
from typing import Callable, Optional

from bugrelay.core.constants import NOT_SET
from bugrelay.services.user_store import UserStore

logger = logging.getLogger(__name__)

LOADING_TEXT = "Loading settings..."
NO_USER_TEXT = "Unable to load user settings. Set a profile with `bugrelay profile set`."
FALLBACK_TEXT = "Something went wrong while displaying settings."
RETRY_HINT = "Retry to try again."


def render_settings(store: UserStore) -> str:
    if not store.is_initialized or store.is_loading:
        return LOADING_TEXT

    user = store.user
    if user is None:
        return f"{NO_USER_TEXT}\n{store.error}" if store.error else NO_USER_TEXT

    return "\n".join([
        "Settings",
        f"  ID:    {user.id}",
        f"  Name:  {user.name or NOT_SET}",
        f"  Email: {user.email or NOT_SET}",
    ])


class RenderGuard:
    """
    Calls a render function and contains its failures.

    On an exception the error is reported through on_error (crash
    telemetry) and a fallback with a retry hint is returned. The fallback
    sticks until retry() is called, which clears the error and renders again.
    """

    def __init__(
        self,
        render: Callable[[], str],
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self._render = render
        self._on_error = on_error
        self.error: Optional[BaseException] = None

    def fallback(self) -> str:
        return f"{FALLBACK_TEXT}\n{self.error}\n{RETRY_HINT}"

    def render(self) -> str:
        if self.error is not None:
            return self.fallback()
        try:
            return self._render()
        except Exception as exc:
            logger.error("Settings render failed: %s", exc, exc_info=True)
            self.error = exc
            if self._on_error is not None:
                try:
                    self._on_error(exc)
                except Exception as report_exc:
                    logger.warning("Crash telemetry failed: %s", report_exc)
            return self.fallback()

    def retry(self) -> str:
        self.error = None
        return self.render()
