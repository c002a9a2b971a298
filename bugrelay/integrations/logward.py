"""
LogWard Client
==============
Forwards bug-report events and crash telemetry to the LogWard ingest API.

    POST {LOGWARD_URL}/api/v1/ingest   Authorization: Bearer <key>

Forwarding is best effort: disabled when no API key is configured, 5s
timeout, and any failure is logged as a warning and never raised.
"""
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from bugrelay.core.config import LOGWARD_TIMEOUT_SECONDS, LOGWARD_URL, SERVICE_NAME
from bugrelay.integrations.http_sink import HttpSink
from bugrelay.models.bug_report import BugReport, LogWardEntry
from bugrelay.models.delivery import DeliveryResult

logger = logging.getLogger(__name__)

CHANNEL = "bug-report"


def build_report_entry(report: BugReport) -> LogWardEntry:
    return LogWardEntry(
        time=report.timestamp.isoformat(),
        service=SERVICE_NAME,
        level="info",
        message=f"Bug report submitted: {report.title}",
        channel=CHANNEL,
        context={
            "report_id": report.id,
            "title": report.title,
            "current_route": report.current_route,
            "platform": report.device_info.platform,
            "app_version": report.device_info.app_version,
            "has_screenshot": bool(report.screenshot_url),
            "navigation_history": report.navigation_history,
        },
        trace_id=report.trace_id,
    )


class LogWardClient(HttpSink):
    name = "logward"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = LOGWARD_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = LOGWARD_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.api_key = api_key or ""
        self.ingest_url = f"{base_url.rstrip('/')}/api/v1/ingest"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send_entry(self, entry: LogWardEntry) -> Optional[DeliveryResult]:
        if not self.enabled:
            return None
        result, _ = await self._post(
            self.ingest_url,
            json=entry.model_dump(exclude_none=True),
            headers={"Content-Type": "application/json", "Authorization": f"Bearer {self.api_key}"},
        )
        if result.status_code not in (200, 201):
            logger.warning("LogWard returned status %s", result.status_code)
        return result

    async def ingest(self, report: BugReport) -> Optional[DeliveryResult]:
        """Forward a submitted report; None when LogWard is not configured."""
        return await self.send_entry(build_report_entry(report))

    async def capture_exception(
        self, exc: BaseException, context: Optional[Dict[str, Any]] = None
    ) -> Optional[DeliveryResult]:
        """Crash telemetry: one error-level entry with the traceback."""
        entry = LogWardEntry(
            time=datetime.now(timezone.utc).isoformat(),
            service=SERVICE_NAME,
            level="error",
            message=f"{type(exc).__name__}: {exc}",
            channel=CHANNEL,
            context={
                **(context or {}),
                "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            },
        )
        return await self.send_entry(entry)
