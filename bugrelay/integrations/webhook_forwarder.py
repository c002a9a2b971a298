"""
Webhook Forwarder
Relays a stored bug report (with derived labels) to the pipeline webhook.
"""
import logging
from typing import Optional

import httpx

from bugrelay.integrations.http_sink import HttpSink
from bugrelay.models.bug_report import BugReport
from bugrelay.models.delivery import DeliveryResult

logger = logging.getLogger(__name__)


class WebhookForwarder(HttpSink):
    name = "webhook"

    def __init__(self, webhook_url: str, client: Optional[httpx.AsyncClient] = None, **kwargs) -> None:
        super().__init__(client=client, **kwargs)
        self.webhook_url = webhook_url

    async def forward(self, report: BugReport) -> DeliveryResult:
        result, _ = await self._post(self.webhook_url, json=report.to_payload())
        if not result.ok:
            logger.warning("Pipeline webhook rejected report %s", report.id)
        return result
