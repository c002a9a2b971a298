"""
Integration Client Tests
========================
Linear, GitHub, Discord, LogWard and the pipeline webhook forwarder, each
against an httpx.MockTransport. No network access.
"""
import asyncio
import base64
import json
from datetime import datetime, timezone

import httpx

from bugrelay.integrations.discord_notifier import DiscordNotifier, build_bug_report_payload, fit_embeds, truncate
from bugrelay.integrations.github_issues import GitHubIssueClient, issue_labels
from bugrelay.integrations.linear_client import LinearClient
from bugrelay.integrations.logward import LogWardClient, build_report_entry
from bugrelay.integrations.webhook_forwarder import WebhookForwarder
from bugrelay.models.bug_report import BugReport, DeviceInfo
from bugrelay.transforms.report_formatter import format_report

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _mock_client(handler, captured=None):
    def wrapped(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return handler(request)
    return httpx.AsyncClient(transport=httpx.MockTransport(wrapped))


def _formatted(**labels):
    return format_report(
        {
            "id": "br_1",
            "title": "Crash on launch",
            "description": "It crashes",
            "deviceInfo": {"platform": "ios", "appVersion": "1.0"},
            "labels": {"platform": "ios", "severity": "critical", "userEmail": "a@example.com", **labels},
        },
        label_ids={"platform:ios": "lbl-ios", "severity:critical": "lbl-crit"},
        team_id="team-1",
        now=NOW,
    )


# ===================================================================
# Linear
# ===================================================================
class TestLinearClient:

    def test_posts_decoded_body_with_verbatim_key(self):
        captured = []
        response = {"data": {"issueCreate": {"success": True, "issue": {
            "identifier": "BUG-7", "url": "https://linear.app/t/issue/BUG-7"}}}}
        client = _mock_client(lambda r: httpx.Response(200, json=response), captured)
        report = _formatted()

        async def run_test():
            return await LinearClient("lin_api_key", api_url="https://linear.test/graphql", client=client).create_issue(report)

        result = asyncio.run(run_test())
        assert result.ok is True
        assert result.sink == "linear"
        assert result.url == "https://linear.app/t/issue/BUG-7"

        request = captured[0]
        assert request.headers["Authorization"] == "lin_api_key"
        assert request.content == base64.b64decode(report.linear_graphql_body_b64)
        assert json.loads(request.content)["variables"]["labelIds"] == ["lbl-ios", "lbl-crit"]

    def test_graphql_errors_are_failures(self):
        client = _mock_client(lambda r: httpx.Response(200, json={"errors": [{"message": "bad team"}]}))

        result = asyncio.run(LinearClient("k", client=client).create_issue(_formatted()))
        assert result.ok is False
        assert "bad team" in result.output

    def test_unsuccessful_issue_create(self):
        client = _mock_client(lambda r: httpx.Response(200, json={"data": {"issueCreate": {"success": False}}}))
        assert asyncio.run(LinearClient("k", client=client).create_issue(_formatted())).ok is False

    def test_http_error_status(self):
        client = _mock_client(lambda r: httpx.Response(401, text="unauthorized"))
        result = asyncio.run(LinearClient("k", client=client).create_issue(_formatted()))
        assert result.ok is False
        assert result.status_code == 401
        assert result.output == "unauthorized"

    def test_bad_base64_falls_back_to_raw_body(self):
        captured = []
        client = _mock_client(lambda r: httpx.Response(200, json={"data": {"issueCreate": {"success": True}}}), captured)
        report = _formatted().model_copy(update={"linear_graphql_body_b64": "%%%"})

        asyncio.run(LinearClient("k", client=client).create_issue(report))
        assert captured[0].content == report.linear_graphql_body.encode("utf-8")


# ===================================================================
# GitHub
# ===================================================================
class TestGitHubIssueClient:

    def test_issue_labels_exclude_user_email(self):
        assert issue_labels(_formatted()) == ["platform:ios", "severity:critical"]

    def test_creates_issue(self):
        captured = []
        client = _mock_client(
            lambda r: httpx.Response(201, json={"number": 12, "html_url": "https://github.com/o/r/issues/12"}),
            captured,
        )
        report = _formatted()
        github = GitHubIssueClient("ghp_x", "o/r", api_url="https://api.github.test", client=client)

        result = asyncio.run(github.create_issue(report))
        assert result.ok is True
        assert result.url == "https://github.com/o/r/issues/12"

        request = captured[0]
        assert str(request.url) == "https://api.github.test/repos/o/r/issues"
        assert request.headers["Authorization"] == "Bearer ghp_x"
        body = json.loads(request.content)
        assert body["title"] == "[Bug] Crash on launch"
        assert body["body"] == report.linear_description
        assert "user:a@example.com" not in body["labels"]

    def test_non_201_is_failure(self):
        client = _mock_client(lambda r: httpx.Response(200, json={}))
        result = asyncio.run(GitHubIssueClient("t", "o/r", client=client).create_issue(_formatted()))
        assert result.ok is False


# ===================================================================
# Discord
# ===================================================================
class TestDiscordNotifier:

    def test_bug_report_embed(self):
        embed = build_bug_report_payload(_formatted())["embeds"][0]
        assert embed["title"] == "\U0001F6A8 Bug Report: Crash on launch"
        assert embed["description"] == "It crashes"
        assert embed["color"] == 15158332
        fields = {f["name"]: f["value"] for f in embed["fields"]}
        assert fields["Severity"] == "critical"
        assert fields["User Tier"] == "unknown"
        assert fields["User Email"] == "a@example.com"
        assert fields["Labels"] == "platform:ios, severity:critical, user:a@example.com"
        assert embed["footer"]["text"] == "Report ID: br_1"
        assert embed["timestamp"] == "2025-03-01T12:00:00Z"

    def test_missing_description_placeholder(self):
        report = format_report({"title": "x"}, now=NOW)
        embed = build_bug_report_payload(report)["embeds"][0]
        assert embed["description"] == "No description provided"

    def test_long_description_truncated(self):
        report = format_report({"title": "x", "description": "a" * 5000}, now=NOW)
        embed = build_bug_report_payload(report)["embeds"][0]
        assert len(embed["description"]) == 4096
        assert embed["description"].endswith("…")

    def test_long_title_and_field_values_truncated(self):
        report = format_report(
            {"title": "t" * 400, "labels": {"userEmail": "e" * 1500 + "@example.com"}},
            now=NOW,
        )
        embed = build_bug_report_payload(report)["embeds"][0]
        assert len(embed["title"]) == 256
        assert embed["title"].endswith("…")
        fields = {f["name"]: f["value"] for f in embed["fields"]}
        assert len(fields["User Email"]) == 1024
        assert len(fields["Labels"]) == 1024
        assert fields["Labels"].endswith("…")
        assert all(len(f["value"]) <= 1024 for f in embed["fields"])

    def test_revenue_embed_fields_truncated(self):
        payload = fit_embeds({"embeds": [{"title": "x", "fields": [{"name": "Customer", "value": "c" * 2000}]}]})
        assert len(payload["embeds"][0]["fields"][0]["value"]) == 1024
        assert payload["embeds"][0]["title"] == "x"

    def test_truncate_short_text_unchanged(self):
        assert truncate("abc", 10) == "abc"

    def test_notify_posts_embed(self):
        captured = []
        client = _mock_client(lambda r: httpx.Response(204), captured)
        result = asyncio.run(DiscordNotifier("https://discord.test/hook", client=client).notify(_formatted()))
        assert result.ok is True
        assert json.loads(captured[0].content)["embeds"][0]["footer"]["text"] == "Report ID: br_1"

    def test_transport_error_is_failed_result(self):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        client = _mock_client(boom)
        result = asyncio.run(DiscordNotifier("https://discord.test/hook", client=client).notify(_formatted()))
        assert result.ok is False
        assert result.status_code is None
        assert "refused" in result.output

    def test_service_down_embed(self):
        captured = []
        client = _mock_client(lambda r: httpx.Response(204), captured)
        asyncio.run(DiscordNotifier("https://discord.test/hook", client=client).notify_service_down({
            "service_name": "API", "url": "https://x/health", "status": 503, "expected": "ok",
            "timestamp": "2025-01-01T00:00:00Z",
        }))
        embed = json.loads(captured[0].content)["embeds"][0]
        assert embed["description"] == "**API** is not responding!"
        assert embed["fields"][1]["value"] == "503"


# ===================================================================
# LogWard
# ===================================================================
class TestLogWardClient:

    def _report(self):
        return BugReport(
            id="br_5",
            title="Broken chart",
            current_route="/stats",
            device_info=DeviceInfo(platform="web", app_version="3.0"),
            timestamp=NOW,
            trace_id="tr-1",
        )

    def test_entry_shape(self):
        entry = build_report_entry(self._report())
        assert entry.service == "bug-report-api"
        assert entry.channel == "bug-report"
        assert entry.message == "Bug report submitted: Broken chart"
        assert entry.context["report_id"] == "br_5"
        assert entry.context["has_screenshot"] is False
        assert entry.trace_id == "tr-1"

    def test_disabled_without_key(self):
        client = _mock_client(lambda r: httpx.Response(500))
        logward = LogWardClient(None, client=client)
        assert logward.enabled is False
        assert asyncio.run(logward.ingest(self._report())) is None

    def test_ingest_posts_bearer(self):
        captured = []
        client = _mock_client(lambda r: httpx.Response(201), captured)
        result = asyncio.run(LogWardClient("lw_key", base_url="https://lw.test", client=client).ingest(self._report()))
        assert result.ok is True
        assert str(captured[0].url) == "https://lw.test/api/v1/ingest"
        assert captured[0].headers["Authorization"] == "Bearer lw_key"

    def test_capture_exception_includes_traceback(self):
        captured = []
        client = _mock_client(lambda r: httpx.Response(200), captured)
        try:
            raise RuntimeError("render exploded")
        except RuntimeError as exc:
            asyncio.run(LogWardClient("k", client=client).capture_exception(exc, {"view": "settings"}))
        body = json.loads(captured[0].content)
        assert body["level"] == "error"
        assert body["message"] == "RuntimeError: render exploded"
        assert body["context"]["view"] == "settings"
        assert "Traceback" in body["context"]["traceback"]


# ===================================================================
# Pipeline webhook forwarder
# ===================================================================
def test_forwarder_posts_camel_case_payload():
    captured = []
    client = _mock_client(lambda r: httpx.Response(200), captured)
    report = BugReport(id="br_2", title="t", current_route="/x", timestamp=NOW)

    result = asyncio.run(WebhookForwarder("https://hooks.test/in", client=client).forward(report))
    assert result.ok is True
    body = json.loads(captured[0].content)
    assert body["id"] == "br_2"
    assert body["currentRoute"] == "/x"
    assert "current_route" not in body
