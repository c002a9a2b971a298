"""
Report Relay
============
Everything that happens to a bug report after the intake API accepted it:

    1. Forward to LogWard (when configured).
    2. Hand the labelled report to the pipeline:
         PIPELINE_MODE=forward → POST to PIPELINE_WEBHOOK_URL
         PIPELINE_MODE=local   → run BugReportPipeline in-process

Runs as a FastAPI background task, so failures are logged and returned as
DeliveryResults but never reach the client that submitted the report.
"""
import logging
from typing import List, Optional

from bugrelay.core import config
from bugrelay.integrations.logward import LogWardClient
from bugrelay.integrations.webhook_forwarder import WebhookForwarder
from bugrelay.models.bug_report import BugReport
from bugrelay.models.delivery import DeliveryResult
from bugrelay.pipeline.bug_report_pipeline import BugReportPipeline

logger = logging.getLogger(__name__)

MODE_FORWARD = "forward"
MODE_LOCAL = "local"


class ReportRelay:
    def __init__(
        self,
        logward: Optional[LogWardClient] = None,
        forwarder: Optional[WebhookForwarder] = None,
        pipeline: Optional[BugReportPipeline] = None,
        mode: str = MODE_FORWARD,
    ) -> None:
        self.logward = logward
        self.forwarder = forwarder
        self.pipeline = pipeline
        self.mode = mode

    @classmethod
    def from_config(cls) -> "ReportRelay":
        mode = config.PIPELINE_MODE if config.PIPELINE_MODE in (MODE_FORWARD, MODE_LOCAL) else MODE_FORWARD
        return cls(
            logward=LogWardClient(config.LOGWARD_API_KEY) if config.LOGWARD_API_KEY else None,
            forwarder=WebhookForwarder(config.PIPELINE_WEBHOOK_URL) if config.PIPELINE_WEBHOOK_URL else None,
            pipeline=BugReportPipeline.from_config() if mode == MODE_LOCAL else None,
            mode=mode,
        )

    async def relay(self, report: BugReport) -> List[DeliveryResult]:
        results: List[DeliveryResult] = []

        if self.logward is not None:
            logged = await self.logward.ingest(report)
            if logged is not None:
                results.append(logged)

        if self.mode == MODE_LOCAL and self.pipeline is not None:
            outcome = await self.pipeline.process(report.to_payload())
            results.extend(outcome.deliveries)
        elif self.forwarder is not None:
            results.append(await self.forwarder.forward(report))
        else:
            logger.info("Report %s stored; no pipeline configured", report.id)

        return results

    async def close(self) -> None:
        for sink in (self.logward, self.forwarder, self.pipeline):
            if sink is not None:
                await sink.close()
