"""
HTTP Sink
=========
Shared async HTTP plumbing for every outbound collaborator.

Delivery Policy:
    - One attempt per event. No retries, no backoff.
    - Transport errors and non-2xx responses never raise into the pipeline;
      they come back as DeliveryResult(ok=False) with the raw response text.
    - An httpx.AsyncClient may be injected (tests, connection sharing);
      otherwise one is created lazily and owned by the sink.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from bugrelay.core.config import HTTP_TIMEOUT_SECONDS
from bugrelay.models.delivery import DeliveryResult

logger = logging.getLogger(__name__)

# Response text kept on a DeliveryResult
MAX_OUTPUT_CHARS = 2000


class HttpSink:
    """Base class for sinks that deliver an event with a single POST."""

    name = "http"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._http = client
        self._owns_client = client is None
        self.timeout = timeout

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if this sink created it."""
        if self._owns_client and self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    async def _post(
        self,
        url: str,
        *,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[DeliveryResult, Optional[httpx.Response]]:
        """
        POST once and describe the outcome.

        Returns the DeliveryResult and the response (None on transport error)
        so subclasses can read the full body before it is truncated.
        """
        try:
            http = await self._get_http()
            response = await http.post(url, json=json, content=content, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("[%s] Request failed: %s", self.name, exc)
            return DeliveryResult(sink=self.name, ok=False, output=str(exc)), None

        output = response.text[:MAX_OUTPUT_CHARS]
        if response.is_success:
            logger.info("[%s] Delivered (HTTP %d)", self.name, response.status_code)
        else:
            logger.warning("[%s] HTTP %d: %s", self.name, response.status_code, output)
        result = DeliveryResult(
            sink=self.name,
            ok=response.is_success,
            status_code=response.status_code,
            output=output,
        )
        return result, response


def response_json(response: Optional[httpx.Response]) -> Any:
    """Decoded JSON body, or None when absent or not JSON."""
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return None
