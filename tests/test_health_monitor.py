"""
Health Monitor Tests
====================
Service probes against an httpx.MockTransport; Discord alerts mocked.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from bugrelay.services.health_monitor import HealthMonitor

SERVICES = [
    {"name": "API", "url": "https://api.test/ready", "expected": "ready"},
    {"name": "Search", "url": "https://search.test/health", "expected": "ok"},
    {"name": "Gateway", "url": "https://gateway.test/health", "expected": "ok"},
]


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "api.test":
        return httpx.Response(200, text="ready")
    if request.url.host == "search.test":
        return httpx.Response(503, text="unavailable")
    raise httpx.ConnectTimeout("timed out", request=request)


def _patched_client():
    real_client = httpx.AsyncClient
    return patch(
        "bugrelay.services.health_monitor.httpx.AsyncClient",
        side_effect=lambda **kwargs: real_client(transport=httpx.MockTransport(_handler), **kwargs),
    )


def _notifier():
    notifier = MagicMock()
    notifier.notify_service_down = AsyncMock()
    return notifier


def test_statuses_per_service():
    with _patched_client():
        statuses = asyncio.run(HealthMonitor(SERVICES).check_all(alert=False))

    by_name = {s.name: s for s in statuses}
    assert by_name["API"].ok is True
    assert by_name["Search"].ok is False
    assert by_name["Search"].status == 503
    assert by_name["Gateway"].ok is False
    assert by_name["Gateway"].status is None
    assert "timed out" in by_name["Gateway"].error


def test_alerts_once_per_down_service():
    notifier = _notifier()
    with _patched_client():
        asyncio.run(HealthMonitor(SERVICES, notifier=notifier).check_all())

    contexts = [call.args[0] for call in notifier.notify_service_down.await_args_list]
    assert [c["service_name"] for c in contexts] == ["Search", "Gateway"]
    assert contexts[0]["status"] == 503
    assert contexts[0]["expected"] == "ok"
    assert contexts[1]["status"] == "timed out"


def test_no_alert_flag():
    notifier = _notifier()
    with _patched_client():
        asyncio.run(HealthMonitor(SERVICES, notifier=notifier).check_all(alert=False))
    notifier.notify_service_down.assert_not_awaited()


def test_all_healthy_sends_nothing():
    notifier = _notifier()
    with _patched_client():
        statuses = asyncio.run(HealthMonitor(SERVICES[:1], notifier=notifier).check_all())
    assert all(s.ok for s in statuses)
    notifier.notify_service_down.assert_not_awaited()
