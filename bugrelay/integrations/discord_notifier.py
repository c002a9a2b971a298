"""
Discord Notifier
================
Posts Discord embeds built from static JSON templates.

Each template is plain data with {{ placeholder }} strings; the event
fields are substituted by transforms.template.render_template at send time.
Templates are kept as module constants so the exact payload shape is
reviewable in one place.

Discord limits enforced on every embed (truncated with an ellipsis):
    title        ≤ 256 characters
    description  ≤ 4096 characters
    field value  ≤ 1024 characters
"""
import logging
from typing import Any, Dict, Optional

import httpx

from bugrelay.core.constants import (
    DISCORD_BLURPLE,
    DISCORD_DESCRIPTION_LIMIT,
    DISCORD_FIELD_LIMIT,
    DISCORD_RED,
    DISCORD_TITLE_LIMIT,
    NO_DESCRIPTION,
)
from bugrelay.integrations.http_sink import HttpSink
from bugrelay.models.delivery import DeliveryResult
from bugrelay.models.formatted_report import FormattedReport
from bugrelay.models.revenue_event import RevenueEvent
from bugrelay.transforms.template import render_template

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Embed templates
# ---------------------------------------------------------------------------
BUG_REPORT_TEMPLATE: Dict[str, Any] = {
    "embeds": [
        {
            "title": "{{ emoji }} Bug Report: {{ title }}",
            "description": f'{{{{ description_raw | default: "{NO_DESCRIPTION}" }}}}',
            "color": DISCORD_RED,
            "fields": [
                {"name": "Severity", "value": "{{ severity }}", "inline": True},
                {"name": "Platform", "value": "{{ platform }}", "inline": True},
                {"name": "OS", "value": "{{ os }}", "inline": True},
                {"name": "App Version", "value": "{{ app_version }}", "inline": True},
                {"name": "Route", "value": "`{{ route_domain }}`", "inline": True},
                {"name": "User Tier", "value": '{{ user_tier | default: "unknown" }}', "inline": True},
                {"name": "User Email", "value": '{{ user_email | default: "anonymous" }}', "inline": False},
                {"name": "Labels", "value": '{{ linear_label_names | join: ", " | default: "none" }}', "inline": False},
            ],
            "footer": {"text": "Report ID: {{ report_id }}"},
            "timestamp": "{{ timestamp }}",
        }
    ]
}

REVENUE_TEMPLATE: Dict[str, Any] = {
    "embeds": [
        {
            "title": "{{ emoji }} {{ event_type }}",
            "color": DISCORD_BLURPLE,
            "fields": [
                {"name": "Amount", "value": "${{ amount }} {{ currency }}", "inline": True},
                {"name": "Product", "value": "{{ product }}", "inline": True},
                {"name": "Source", "value": "{{ source }}", "inline": True},
                {"name": "Customer", "value": "`{{ customer }}`", "inline": False},
            ],
            "timestamp": "{{ timestamp }}",
        }
    ]
}

SERVICE_DOWN_TEMPLATE: Dict[str, Any] = {
    "embeds": [
        {
            "title": "\U0001F6A8 SERVICE DOWN",
            "description": "**{{ service_name }}** is not responding!",
            "color": DISCORD_RED,
            "fields": [
                {"name": "URL", "value": "{{ url }}", "inline": False},
                {"name": "Status", "value": '{{ status | default: "no response" }}', "inline": True},
                {"name": "Expected", "value": "{{ expected }}", "inline": True},
            ],
            "timestamp": "{{ timestamp }}",
        }
    ]
}


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def fit_embeds(payload: Dict[str, Any]) -> Dict[str, Any]:
    for embed in payload.get("embeds", []):
        if "title" in embed:
            embed["title"] = truncate(embed["title"], DISCORD_TITLE_LIMIT)
        if "description" in embed:
            embed["description"] = truncate(embed["description"], DISCORD_DESCRIPTION_LIMIT)
        for field in embed.get("fields", []):
            field["value"] = truncate(field["value"], DISCORD_FIELD_LIMIT)
    return payload


def build_bug_report_payload(report: FormattedReport) -> Dict[str, Any]:
    return fit_embeds(render_template(BUG_REPORT_TEMPLATE, report))


class DiscordNotifier(HttpSink):
    name = "discord"

    def __init__(self, webhook_url: str, client: Optional[httpx.AsyncClient] = None, **kwargs) -> None:
        super().__init__(client=client, **kwargs)
        self.webhook_url = webhook_url

    async def send(self, payload: Dict[str, Any]) -> DeliveryResult:
        result, _ = await self._post(
            self.webhook_url, json=payload, headers={"Content-Type": "application/json"}
        )
        return result

    async def notify(self, report: FormattedReport) -> DeliveryResult:
        return await self.send(build_bug_report_payload(report))

    async def notify_revenue(self, event: RevenueEvent) -> DeliveryResult:
        return await self.send(fit_embeds(render_template(REVENUE_TEMPLATE, event)))

    async def notify_service_down(self, context: Dict[str, Any]) -> DeliveryResult:
        return await self.send(fit_embeds(render_template(SERVICE_DOWN_TEMPLATE, context)))
