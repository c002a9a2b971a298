"""
GitHub Issue Client
===================
Opens a GitHub issue per bug report through the REST API.

    POST {api}/repos/{owner}/{repo}/issues   {title, body, labels}

Labels are the formatter's label names. "user:<email>" labels are never
sent: issue labels are visible to everyone who can read the repository.
"""
import logging
from typing import List, Optional

import httpx

from bugrelay.core.config import GITHUB_API_URL
from bugrelay.integrations.http_sink import HttpSink, response_json
from bugrelay.models.delivery import DeliveryResult
from bugrelay.models.formatted_report import FormattedReport

logger = logging.getLogger(__name__)

PRIVATE_LABEL_PREFIXES = ("user:",)


def issue_labels(report: FormattedReport) -> List[str]:
    return [name for name in report.linear_label_names if not name.startswith(PRIVATE_LABEL_PREFIXES)]


class GitHubIssueClient(HttpSink):
    name = "github"

    def __init__(
        self,
        token: str,
        repo: str,
        api_url: str = GITHUB_API_URL,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs,
    ) -> None:
        super().__init__(client=client, **kwargs)
        self.repo = repo.strip("/")
        self.api_url = api_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "User-Agent": "bugrelay",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def create_issue(self, report: FormattedReport) -> DeliveryResult:
        result, response = await self._post(
            f"{self.api_url}/repos/{self.repo}/issues",
            json={
                "title": report.linear_title,
                "body": report.linear_description,
                "labels": issue_labels(report),
            },
            headers=self.headers,
        )
        if result.status_code != 201:
            return result.model_copy(update={"ok": False})

        data = response_json(response) or {}
        logger.info("[github] Opened #%s for report %s", data.get("number", "?"), report.report_id)
        return result.model_copy(update={"url": data.get("html_url")})
