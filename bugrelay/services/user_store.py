"""
User Store
==========
Locally persisted reporter profile (id, optional name, optional email).

Lifecycle:
    - A new store is uninitialised: is_initialized=False, user=None.
    - initialize() must be called (and awaited) explicitly before use.
      It is idempotent: once initialised, further calls change nothing.
    - A missing profile file is not an error (no user yet).
    - Read or parse failures never raise; they set `error` and the store
      still counts as initialised, so callers can render an error state.

Writes are atomic (temporary file + rename). A failed write sets `error`
and returns False; the in-memory profile is left unchanged.
"""
import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from bugrelay.models.profile import ReporterProfile

logger = logging.getLogger(__name__)


class UserStore:
    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self.user: Optional[ReporterProfile] = None
        self.is_initialized = False
        self.is_loading = False
        self.error: Optional[str] = None
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        if self.is_initialized:
            return
        async with self._init_lock:
            if self.is_initialized:
                return
            self.is_loading = True
            try:
                self.user = await asyncio.to_thread(self._read)
                self.error = None
            except (OSError, ValueError, ValidationError) as exc:
                logger.warning("Failed to load profile from %s: %s", self.path, exc)
                self.user = None
                self.error = f"Failed to load profile: {exc}"
            finally:
                self.is_loading = False
                self.is_initialized = True

    def _read(self) -> Optional[ReporterProfile]:
        if not self.path.exists():
            return None
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if data is None:
            return None
        return ReporterProfile.model_validate(data)

    def _write(self, user: Optional[ReporterProfile]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(user.model_dump() if user else None, indent=2)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp, self.path)
            except OSError:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            logger.warning("Failed to save profile to %s: %s", self.path, exc)
            self.error = f"Failed to save profile: {exc}"
            return False
        self.error = None
        return True

    def set_user(self, user: ReporterProfile) -> bool:
        if not self._write(user):
            return False
        self.user = user
        return True

    def update_user(self, name: Optional[str] = None, email: Optional[str] = None) -> bool:
        if self.user is None:
            self.error = "No user to update"
            return False
        changes = {k: v for k, v in (("name", name), ("email", email)) if v is not None}
        return self.set_user(self.user.model_copy(update=changes))

    def clear_user(self) -> bool:
        if not self._write(None):
            return False
        self.user = None
        return True
