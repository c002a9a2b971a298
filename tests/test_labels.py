"""
Unit Tests — Label Derivation
=============================
Platform / OS normalisation, route domains, keyword severity and tiers.
"""
import pytest

from bugrelay.models.bug_report import BugReport, DeviceInfo, ReportLabels, UserInfo
from bugrelay.transforms.labels import (
    classify_severity,
    derive_labels,
    normalize_os,
    normalize_platform,
    normalize_tier,
    route_domain,
)


@pytest.mark.parametrize("value,expected", [
    ("ios", "ios"), ("Android", "android"), (" web ", "web"), ("tvos", "unknown"), (None, "unknown"),
])
def test_normalize_platform(value, expected):
    assert normalize_platform(value) == expected


@pytest.mark.parametrize("value,expected", [
    ("ios", "iOS"), ("iPadOS", "iOS"), ("android", "Android"), ("Darwin", "macOS"),
    ("Windows 11", "Windows"), ("win32", "Windows"), ("linux", "Linux"), ("", "Unknown"),
    ("haiku", "Unknown"),
])
def test_normalize_os(value, expected):
    assert normalize_os(value) == expected


@pytest.mark.parametrize("route,expected", [
    ("/(tabs)/settings/profile", "settings"),
    ("/chat/123?ref=push", "chat"),
    ("/Paywall#plans", "paywall"),
    ("/(auth)/(modal)", "unknown"),
    ("", "unknown"),
    (None, "unknown"),
])
def test_route_domain(route, expected):
    assert route_domain(route) == expected


class TestClassifySeverity:

    def test_critical_keyword_wins_over_high(self):
        assert classify_severity("Error after crash", None) == "critical"

    def test_high(self):
        assert classify_severity("Upload broken", "") == "high"

    def test_low(self):
        assert classify_severity("Typo in footer") == "low"

    def test_case_insensitive_across_fields(self):
        assert classify_severity("Settings", "I CANNOT LOGIN anymore") == "critical"

    def test_default_medium(self):
        assert classify_severity("Button feels slow", None, None) == "medium"


def test_normalize_tier():
    assert normalize_tier("Pro") == "pro"
    assert normalize_tier("enterprise") is None
    assert normalize_tier(None) is None


class TestDeriveLabels:

    def _report(self, **kwargs):
        defaults = dict(
            id="br_1",
            title="Chat is broken",
            description="Messages fail to send",
            current_route="/(tabs)/chat",
            device_info=DeviceInfo(platform="android", os="android"),
            user_info=UserInfo(user_id="u1", email="x@example.com", tier="max"),
        )
        defaults.update(kwargs)
        return BugReport(**defaults)

    def test_derives_every_group(self):
        labels = derive_labels(self._report())
        assert labels == ReportLabels(
            platform="android",
            os="Android",
            route_domain="chat",
            severity="high",
            user_tier="max",
            user_email="x@example.com",
        )

    def test_existing_labels_are_kept(self):
        report = self._report(labels=ReportLabels(severity="low", platform="web"))
        labels = derive_labels(report)
        assert labels.severity == "low"
        assert labels.platform == "web"
        assert labels.os == "Android"

    def test_anonymous_report_has_no_user_labels(self):
        labels = derive_labels(self._report(user_info=None))
        assert labels.user_tier is None
        assert labels.user_email is None
