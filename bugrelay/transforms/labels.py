"""
Label Derivation
================
Classifies an incoming bug report into the label groups used downstream:
platform, os, routeDomain, severity, userTier and userEmail.

Labels already present on the report are kept; only missing groups are
derived. Derivation is deterministic and never calls out to anything.

Severity keywords are matched case-insensitively against the title,
description and reproduction steps. Groups are checked from most to least
severe and the first group with a hit wins; no hit means "medium".
"""
import re
from typing import Optional

from bugrelay.core.constants import (
    DEFAULT_SEVERITY,
    OPERATING_SYSTEMS,
    PLATFORMS,
    UNKNOWN,
    UNKNOWN_LOWER,
    USER_TIERS,
)
from bugrelay.models.bug_report import BugReport, ReportLabels

SEVERITY_KEYWORDS: list[tuple[str, list[str]]] = [
    ("critical", ["crash", "data loss", "cannot login", "can't log in", "freeze", "security"]),
    ("high", ["error", "broken", "fail", "not working", "unable"]),
    ("low", ["typo", "cosmetic", "alignment", "color", "suggestion"]),
]

_OS_ALIASES = {
    "ios": "iOS",
    "ipados": "iOS",
    "android": "Android",
    "macos": "macOS",
    "mac os": "macOS",
    "darwin": "macOS",
    "linux": "Linux",
}

_ROUTE_GROUP_RE = re.compile(r"^\(.*\)$")


def normalize_platform(value: Optional[str]) -> str:
    platform = (value or "").strip().lower()
    return platform if platform in PLATFORMS else UNKNOWN_LOWER


def normalize_os(value: Optional[str]) -> str:
    name = (value or "").strip().lower()
    if not name:
        return UNKNOWN
    if name.startswith("win"):
        return "Windows"
    if name in _OS_ALIASES:
        return _OS_ALIASES[name]
    for os_name in OPERATING_SYSTEMS:
        if name == os_name.lower():
            return os_name
    return UNKNOWN


def route_domain(route: Optional[str]) -> str:
    """First meaningful path segment: "/(tabs)/settings/profile?x=1" → "settings"."""
    path = (route or "").split("?", 1)[0].split("#", 1)[0]
    for segment in path.split("/"):
        segment = segment.strip()
        if segment and not _ROUTE_GROUP_RE.match(segment):
            return segment.lower()
    return UNKNOWN_LOWER


def classify_severity(*texts: Optional[str]) -> str:
    haystack = " ".join(t for t in texts if t).lower()
    for severity, keywords in SEVERITY_KEYWORDS:
        if any(keyword in haystack for keyword in keywords):
            return severity
    return DEFAULT_SEVERITY


def normalize_tier(value: Optional[str]) -> Optional[str]:
    tier = (value or "").strip().lower()
    return tier if tier in USER_TIERS else None


def derive_labels(report: BugReport) -> ReportLabels:
    """Fill every missing label group on the report."""
    existing = report.labels or ReportLabels()
    device = report.device_info
    user = report.user_info

    return ReportLabels(
        platform=existing.platform or normalize_platform(device.platform),
        os=existing.os or normalize_os(device.os),
        route_domain=existing.route_domain or route_domain(report.current_route),
        severity=existing.severity or classify_severity(
            report.title, report.description, report.steps_to_reproduce
        ),
        user_tier=existing.user_tier or normalize_tier(user.tier if user else None),
        user_email=existing.user_email or (user.email if user and user.email else None),
    )
