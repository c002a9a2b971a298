"""
Report Formatter
================
Turns a raw bug-report payload into the FormattedReport every sink consumes.

DETERMINISM CONTRACT:
  - This module NEVER performs I/O.
  - This module NEVER reads environment variables; the label table, team id
    and inspector URL are passed in by the caller.
  - Given the same payload and clock, it ALWAYS returns the same output.
  - It NEVER raises on malformed input. Missing fields, wrong types and
    non-object sub-documents fall back to placeholder values ("Unknown",
    "No description provided", "Anonymous").

Derived fields:
  priority    critical → 1 (Urgent), high → 2 (High), low → 4 (Low),
              anything else → 3 (Normal)
  emoji       critical 🚨, high ⚠️, low 💡, otherwise 🐛
  labels      "platform:<p>", "os:<o>", "severity:<s>", "tier:<t>" resolved to
              Linear ids through the label table; "route:<d>" and
              "user:<email>" are names only (never pre-created in Linear)
  graphql     complete {"query", "variables"} body, raw and base64 encoded
"""
import base64
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bugrelay.core.constants import (
    ANONYMOUS,
    DEFAULT_EMOJI,
    DEFAULT_PRIORITY,
    DEFAULT_SEVERITY,
    DEFAULT_TITLE,
    EMOJI_BY_SEVERITY,
    NAV_SEPARATOR,
    NAVIGATION_TAIL,
    NO_DESCRIPTION,
    PRIORITY_BY_SEVERITY,
    PRIORITY_LABELS,
    TITLE_PREFIX,
    UNKNOWN,
    UNKNOWN_LOWER,
)
from bugrelay.models.bug_report import BugReport
from bugrelay.models.formatted_report import FormattedReport


# ---------------------------------------------------------------------------
# GraphQL mutations
# ---------------------------------------------------------------------------
CREATE_ISSUE_WITH_LABELS = (
    "mutation CreateIssue($title: String!, $description: String!, $teamId: String!, "
    "$labelIds: [String!]) { issueCreate(input: { title: $title, description: $description, "
    "teamId: $teamId, labelIds: $labelIds }) { success issue { id identifier url "
    "labels { nodes { id name } } } } }"
)

CREATE_ISSUE = (
    "mutation CreateIssue($title: String!, $description: String!, $teamId: String!) "
    "{ issueCreate(input: { title: $title, description: $description, teamId: $teamId }) "
    "{ success issue { id identifier url } } }"
)


# ---------------------------------------------------------------------------
# Lenient field access
# ---------------------------------------------------------------------------
def _obj(value: Any) -> Optional[Mapping]:
    return value if isinstance(value, Mapping) else None


def _text(value: Any) -> Optional[str]:
    """Non-empty string form of a scalar, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value:
        return value
    return None


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------
def priority_for(severity: Optional[str]) -> int:
    return PRIORITY_BY_SEVERITY.get(severity or "", DEFAULT_PRIORITY)


def priority_label_for(priority: int) -> str:
    return PRIORITY_LABELS.get(priority, PRIORITY_LABELS[DEFAULT_PRIORITY])


def emoji_for(severity: Optional[str]) -> str:
    return EMOJI_BY_SEVERITY.get(severity or "", DEFAULT_EMOJI)


def resolve_labels(
    labels: Mapping,
    label_ids: Mapping[str, str],
) -> Tuple[List[str], List[str]]:
    """
    Compute label names and the Linear ids they resolve to.

    Returns (label_ids, label_names). Ids are kept in label order and
    never contain empty strings.
    """
    names: List[str] = []
    ids: List[str] = []

    def add(key: str, resolvable: bool = True) -> None:
        names.append(key)
        if resolvable and label_ids.get(key):
            ids.append(label_ids[key])

    platform = _text(labels.get("platform"))
    if platform and platform != UNKNOWN_LOWER:
        add(f"platform:{platform}")

    os_name = _text(labels.get("os"))
    if os_name and os_name != UNKNOWN:
        add(f"os:{os_name}")

    severity = _text(labels.get("severity"))
    if severity:
        add(f"severity:{severity}")

    tier = _text(labels.get("userTier"))
    if tier:
        add(f"tier:{tier}")

    domain = _text(labels.get("routeDomain"))
    if domain and domain != UNKNOWN_LOWER:
        add(f"route:{domain}", resolvable=False)

    email = _text(labels.get("userEmail"))
    if email:
        add(f"user:{email}", resolvable=False)

    return ids, names


def build_description(report: Mapping, labels: Mapping, inspector_base_url: str = "") -> str:
    """Markdown ticket body, sections in fixed order."""
    lines: List[str] = ["## Description", _text(report.get("description")) or NO_DESCRIPTION, ""]

    steps = _text(report.get("stepsToReproduce"))
    if steps:
        lines += ["## Steps to Reproduce", steps, ""]

    lines.append("## Device Info")
    device = _obj(report.get("deviceInfo"))
    if device is not None:
        os_line = f"{_text(device.get('os')) or UNKNOWN} {_text(device.get('osVersion')) or ''}".rstrip()
        lines += [
            f"- **Platform:** {_text(device.get('platform')) or UNKNOWN}",
            f"- **OS:** {os_line}",
            f"- **App Version:** {_text(device.get('appVersion')) or UNKNOWN}",
            f"- **Device:** {_text(device.get('deviceModel')) or UNKNOWN}",
        ]
    lines.append("")

    lines += ["## Context", f"- **Route:** {_text(report.get('currentRoute')) or UNKNOWN}"]
    history = report.get("navigationHistory")
    if isinstance(history, list) and history:
        tail = [str(step) for step in history[-NAVIGATION_TAIL:]]
        lines.append(f"- **Navigation:** {NAV_SEPARATOR.join(tail)}")
    lines.append("")

    user = _obj(report.get("userInfo"))
    if user is not None:
        lines += ["## User", f"- **ID:** {_text(user.get('userId')) or ANONYMOUS}"]
        if _text(user.get("email")):
            lines.append(f"- **Email:** {user['email']}")
        if _text(user.get("tier")):
            lines.append(f"- **Tier:** {user['tier']}")
        lines.append("")

    if any(_text(labels.get(k)) for k in ("platform", "os", "severity", "userTier")):
        lines.append("## Labels")
        for key, title in (
            ("platform", "Platform"),
            ("os", "OS"),
            ("routeDomain", "Route"),
            ("severity", "Severity"),
            ("userTier", "Tier"),
        ):
            if _text(labels.get(key)):
                lines.append(f"- **{title}:** {labels[key]}")
        lines.append("")

    screenshot = _text(report.get("screenshotUrl"))
    if screenshot:
        lines += ["## Screenshot", f"![Screenshot]({screenshot})", ""]

    report_id = _text(report.get("id")) or UNKNOWN_LOWER
    lines += [
        "---",
        f"**[View Full Report]({inspector_base_url.rstrip('/')}/{report_id})**",
        "",
        f"*Report ID: {report_id}*",
    ]
    trace_id = _text(report.get("traceId"))
    if trace_id:
        lines.append(f"*Trace ID: {trace_id}*")

    return "\n".join(lines)


def build_graphql_body(title: str, description: str, team_id: str, label_ids: List[str]) -> str:
    variables: Dict[str, Any] = {"title": title, "description": description, "teamId": team_id}
    if label_ids:
        variables["labelIds"] = label_ids
        query = CREATE_ISSUE_WITH_LABELS
    else:
        query = CREATE_ISSUE
    return json.dumps({"query": query, "variables": variables}, ensure_ascii=False)


def encode_body(body: str) -> str:
    """Base64 of the UTF-8 body, safe to hand to a shell or template."""
    return base64.b64encode(body.encode("utf-8")).decode("ascii")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def format_report(
    payload: Union[Mapping, BugReport],
    label_ids: Optional[Mapping[str, str]] = None,
    team_id: str = "",
    inspector_base_url: str = "",
    now: Optional[datetime] = None,
) -> FormattedReport:
    """
    Format a bug-report payload for Linear, GitHub and Discord.

    Parameters
    ----------
    payload : Mapping | BugReport
        camelCase bug-report JSON as received by the webhook.
    label_ids : Mapping[str, str]
        "<group>:<value>" → Linear label id. Empty values are ignored.
    team_id : str
        Linear team receiving the issue.
    inspector_base_url : str
        Base URL of the report viewer; the report id is appended.
    now : datetime
        Clock override for the event timestamp.
    """
    if isinstance(payload, BugReport):
        payload = payload.to_payload()
    report: Mapping = payload if isinstance(payload, Mapping) else {}
    labels: Mapping = _obj(report.get("labels")) or {}
    device = _obj(report.get("deviceInfo"))
    user = _obj(report.get("userInfo"))

    severity = _text(labels.get("severity"))
    priority = priority_for(severity)
    ids, names = resolve_labels(labels, label_ids or {})

    title = _text(report.get("title")) or DEFAULT_TITLE
    linear_title = f"{TITLE_PREFIX}{title}"
    description = build_description(report, labels, inspector_base_url)
    body = build_graphql_body(linear_title, description, team_id, ids)

    timestamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    return FormattedReport(
        report_id=_text(report.get("id")) or "",
        title=title,
        description_raw=_text(report.get("description")),
        platform=_text(labels.get("platform"))
        or (_text(device.get("platform")) if device else None)
        or UNKNOWN,
        os=_text(labels.get("os")) or UNKNOWN,
        app_version=(_text(device.get("appVersion")) if device else None) or UNKNOWN,
        current_route=_text(report.get("currentRoute")),
        route_domain=_text(labels.get("routeDomain")) or UNKNOWN_LOWER,
        user_id=_text(user.get("userId")) if user else None,
        user_email=_text(labels.get("userEmail")),
        user_tier=_text(labels.get("userTier")),
        screenshot_url=_text(report.get("screenshotUrl")),
        trace_id=_text(report.get("traceId")),
        severity=severity or DEFAULT_SEVERITY,
        linear_graphql_body=body,
        linear_graphql_body_b64=encode_body(body),
        linear_title=linear_title,
        linear_description=description,
        linear_priority=priority,
        linear_label_ids=ids,
        linear_label_names=names,
        emoji=emoji_for(severity),
        priority_label=priority_label_for(priority),
        timestamp=timestamp.isoformat().replace("+00:00", "Z"),
        is_test=bool(report.get("isTest") or report.get("is_test")),
    )
