"""
Health Monitor
==============
Probes service health endpoints and raises a Discord alert for each one
that is down.

A service is up only when its health endpoint answers HTTP 200. Any other
status, or a transport error (timeout, refused connection, DNS), is down.
Checks run concurrently; one slow endpoint does not delay the others
beyond the shared timeout.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx

from bugrelay.core.config import HTTP_TIMEOUT_SECONDS
from bugrelay.integrations.discord_notifier import DiscordNotifier

logger = logging.getLogger(__name__)


@dataclass
class ServiceStatus:
    name: str
    url: str
    expected: str
    ok: bool
    status: Optional[int] = None
    error: str = ""


class HealthMonitor:
    """Checks every configured service once per call to check_all()."""

    def __init__(
        self,
        services: List[Dict[str, str]],
        notifier: Optional[DiscordNotifier] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.services = services
        self.notifier = notifier
        self.timeout = timeout

    async def check(self, client: httpx.AsyncClient, service: Dict[str, str]) -> ServiceStatus:
        name = service.get("name", service.get("url", "?"))
        url = service.get("url", "")
        expected = service.get("expected", "ok")
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Health check %s failed: %s", name, exc)
            return ServiceStatus(name=name, url=url, expected=expected, ok=False, error=str(exc))

        ok = response.status_code == 200
        if not ok:
            logger.warning("Health check %s returned HTTP %d", name, response.status_code)
        return ServiceStatus(name=name, url=url, expected=expected, ok=ok, status=response.status_code)

    async def alert(self, status: ServiceStatus) -> None:
        if self.notifier is None:
            return
        await self.notifier.notify_service_down({
            "service_name": status.name,
            "url": status.url,
            "status": status.status if status.status is not None else status.error,
            "expected": status.expected,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def check_all(self, alert: bool = True) -> List[ServiceStatus]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            statuses = await asyncio.gather(*(self.check(client, s) for s in self.services))

        down = [s for s in statuses if not s.ok]
        logger.info("Health check: %d/%d services up", len(statuses) - len(down), len(statuses))
        if alert:
            for status in down:
                await self.alert(status)
        return list(statuses)
