"""
Linear Client
=============
Creates Linear issues through the GraphQL API.

The formatter already built the complete GraphQL body and shipped it base64
encoded (linear_graphql_body_b64); this client decodes it and posts it as
is, so the ticket content is fixed at format time.

Auth:
    Linear personal API keys go in the Authorization header verbatim
    (no "Bearer" prefix); OAuth tokens already carry their own prefix.

Success:
    HTTP 2xx, no top-level "errors", and data.issueCreate.success == true.
    The issue URL is surfaced on the DeliveryResult when Linear returns it.
"""
import base64
import binascii
import logging
from typing import Optional

import httpx

from bugrelay.core.config import LINEAR_API_URL
from bugrelay.integrations.http_sink import HttpSink, response_json
from bugrelay.models.delivery import DeliveryResult
from bugrelay.models.formatted_report import FormattedReport

logger = logging.getLogger(__name__)


class LinearClient(HttpSink):
    name = "linear"

    def __init__(
        self,
        api_key: str,
        api_url: str = LINEAR_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs,
    ) -> None:
        super().__init__(client=client, **kwargs)
        self.api_key = api_key
        self.api_url = api_url

    def _request_body(self, report: FormattedReport) -> bytes:
        if report.linear_graphql_body_b64:
            try:
                return base64.b64decode(report.linear_graphql_body_b64, validate=True)
            except (binascii.Error, ValueError):
                logger.warning("[linear] Undecodable base64 body for %s, using raw body", report.report_id)
        return report.linear_graphql_body.encode("utf-8")

    async def create_issue(self, report: FormattedReport) -> DeliveryResult:
        result, response = await self._post(
            self.api_url,
            content=self._request_body(report),
            headers={"Content-Type": "application/json", "Authorization": self.api_key},
        )
        if not result.ok:
            return result

        data = response_json(response)
        if not isinstance(data, dict) or data.get("errors"):
            logger.warning("[linear] Rejected report %s: %s", report.report_id, result.output)
            return result.model_copy(update={"ok": False})

        created = (data.get("data") or {}).get("issueCreate") or {}
        if not created.get("success"):
            logger.warning("[linear] issueCreate unsuccessful for %s", report.report_id)
            return result.model_copy(update={"ok": False})

        issue = created.get("issue") or {}
        logger.info("[linear] Created %s for report %s", issue.get("identifier", "?"), report.report_id)
        return result.model_copy(update={"url": issue.get("url")})
