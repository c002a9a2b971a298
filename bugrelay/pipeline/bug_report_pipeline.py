"""
Bug Report Pipeline
===================
Runs one bug-report webhook event through the relay:

    payload → format_report → test filter ─┬─> Linear issue
                                           ├─> GitHub issue
                                           └─> Discord embed

Fan-out Rules:
    - Sinks run concurrently via asyncio.gather.
    - A sink is present only when its configuration is complete
      (Linear: API key + team id, GitHub: token + repo, Discord: webhook URL).
    - One sink failing (or raising) never cancels or hides the others;
      every sink yields exactly one DeliveryResult.
    - Events flagged is_test are dropped before any sink is called.
"""
import asyncio
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from bugrelay.core import config
from bugrelay.integrations.discord_notifier import DiscordNotifier
from bugrelay.integrations.github_issues import GitHubIssueClient
from bugrelay.integrations.linear_client import LinearClient
from bugrelay.models.delivery import DeliveryResult, PipelineResult
from bugrelay.models.formatted_report import FormattedReport
from bugrelay.transforms.report_formatter import format_report
from bugrelay.transforms.revenue_formatter import format_revenue_event
from bugrelay.transforms.tag_filter import filter_test_event

logger = logging.getLogger(__name__)


async def _deliver_all(jobs: List[Tuple[str, Awaitable[DeliveryResult]]]) -> List[DeliveryResult]:
    results = await asyncio.gather(*(job for _, job in jobs), return_exceptions=True)
    deliveries: List[DeliveryResult] = []
    for (sink, _), result in zip(jobs, results):
        if isinstance(result, BaseException):
            logger.error("[%s] Sink raised: %s", sink, result, exc_info=result)
            result = DeliveryResult(sink=sink, ok=False, output=f"{type(result).__name__}: {result}")
        deliveries.append(result)
    return deliveries


class BugReportPipeline:
    """Formatter, test filter and sink fan-out for bug-report events."""

    def __init__(
        self,
        linear: Optional[LinearClient] = None,
        github: Optional[GitHubIssueClient] = None,
        discord: Optional[DiscordNotifier] = None,
        label_ids: Optional[Mapping[str, str]] = None,
        team_id: str = "",
        inspector_base_url: str = "",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.linear = linear
        self.github = github
        self.discord = discord
        self.label_ids = dict(label_ids or {})
        self.team_id = team_id
        self.inspector_base_url = inspector_base_url
        self.clock = clock

    @classmethod
    def from_config(cls) -> "BugReportPipeline":
        linear = None
        if config.LINEAR_API_KEY and config.LINEAR_TEAM_ID:
            linear = LinearClient(config.LINEAR_API_KEY, api_url=config.LINEAR_API_URL)
        github = None
        if config.GITHUB_TOKEN and config.GITHUB_REPO:
            github = GitHubIssueClient(config.GITHUB_TOKEN, config.GITHUB_REPO, api_url=config.GITHUB_API_URL)
        discord = DiscordNotifier(config.DISCORD_WEBHOOK_URL) if config.DISCORD_WEBHOOK_URL else None
        return cls(
            linear=linear,
            github=github,
            discord=discord,
            label_ids=config.LINEAR_LABEL_IDS,
            team_id=config.LINEAR_TEAM_ID or "",
            inspector_base_url=config.INSPECTOR_BASE_URL,
        )

    @property
    def sink_names(self) -> List[str]:
        sinks = {"linear": self.linear, "github": self.github, "discord": self.discord}
        return [name for name, sink in sinks.items() if sink is not None]

    def format(self, payload: Any) -> FormattedReport:
        return format_report(
            payload if isinstance(payload, Mapping) else {},
            label_ids=self.label_ids,
            team_id=self.team_id,
            inspector_base_url=self.inspector_base_url,
            now=self.clock() if self.clock else None,
        )

    async def process(self, payload: Any) -> PipelineResult:
        formatted = self.format(payload)

        if filter_test_event(formatted) is None:
            logger.info("Dropped test report %s", formatted.report_id or "<no id>")
            return PipelineResult(report_id=formatted.report_id, dropped=True, reason="test report")

        jobs: List[Tuple[str, Awaitable[DeliveryResult]]] = []
        if self.linear:
            jobs.append(("linear", self.linear.create_issue(formatted)))
        if self.github:
            jobs.append(("github", self.github.create_issue(formatted)))
        if self.discord:
            jobs.append(("discord", self.discord.notify(formatted)))

        if not jobs:
            logger.warning("No sinks configured; report %s was formatted but not delivered", formatted.report_id)

        deliveries = await _deliver_all(jobs)
        logger.info(
            "Report %s (%s, priority %d) → %s",
            formatted.report_id,
            formatted.severity,
            formatted.linear_priority,
            ", ".join(f"{d.sink}:{'ok' if d.ok else 'failed'}" for d in deliveries) or "nowhere",
        )
        return PipelineResult(report_id=formatted.report_id, deliveries=deliveries)

    async def close(self) -> None:
        for sink in (self.linear, self.github, self.discord):
            if sink is not None:
                await sink.close()


class RevenuePipeline:
    """Revenue formatter → Discord."""

    def __init__(self, discord: Optional[DiscordNotifier] = None) -> None:
        self.discord = discord

    @classmethod
    def from_config(cls) -> "RevenuePipeline":
        url = config.DISCORD_REVENUE_WEBHOOK_URL
        return cls(discord=DiscordNotifier(url) if url else None)

    async def process(self, payload: Any) -> PipelineResult:
        event = format_revenue_event(payload)
        if event is None:
            return PipelineResult(dropped=True, reason="alias event")
        if self.discord is None:
            logger.warning("Revenue event %s not delivered: no Discord webhook", event.event_type)
            return PipelineResult()
        deliveries = await _deliver_all([("discord", self.discord.notify_revenue(event))])
        return PipelineResult(deliveries=deliveries)

    async def close(self) -> None:
        if self.discord is not None:
            await self.discord.close()
