"""
Configuration and Webhook Secret Tests
======================================
"""
from unittest.mock import patch

import pytest

from bugrelay.core import config
from bugrelay.core.errors import BugRelayError, ConfigError
from bugrelay.pipeline.webhook_secrets import generate_webhook_secret, verify_secret, webhook_path


# ---------------------------------------------------------------------------
# 1. require_env
# ---------------------------------------------------------------------------
def test_require_env_returns_values(monkeypatch):
    monkeypatch.setenv("LINEAR_API_KEY", "k")
    monkeypatch.setenv("LINEAR_TEAM_ID", "t")
    assert config.require_env("LINEAR_API_KEY", "LINEAR_TEAM_ID") == {"LINEAR_API_KEY": "k", "LINEAR_TEAM_ID": "t"}


def test_require_env_lists_every_missing_name(monkeypatch):
    monkeypatch.setenv("LINEAR_API_KEY", "k")
    monkeypatch.delenv("LINEAR_TEAM_ID", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "")
    with pytest.raises(ConfigError) as exc_info:
        config.require_env("LINEAR_API_KEY", "LINEAR_TEAM_ID", "GITHUB_TOKEN")
    assert str(exc_info.value) == "Missing required environment: LINEAR_TEAM_ID, GITHUB_TOKEN"
    assert isinstance(exc_info.value, BugRelayError)


# ---------------------------------------------------------------------------
# 2. validate_pipeline_config
# ---------------------------------------------------------------------------
def test_validate_without_webhook_secret_is_noop():
    with patch.object(config, "BUG_REPORT_WEBHOOK_SECRET", ""):
        config.validate_pipeline_config()


@pytest.mark.parametrize("linear_key,team,discord", [("k", "t", None), (None, None, "https://discord")])
def test_validate_with_a_sink(linear_key, team, discord):
    with patch.object(config, "BUG_REPORT_WEBHOOK_SECRET", "s"), \
         patch.object(config, "LINEAR_API_KEY", linear_key), \
         patch.object(config, "LINEAR_TEAM_ID", team), \
         patch.object(config, "GITHUB_TOKEN", None), \
         patch.object(config, "DISCORD_WEBHOOK_URL", discord):
        config.validate_pipeline_config()


def test_validate_linear_key_without_team_is_no_sink():
    with patch.object(config, "BUG_REPORT_WEBHOOK_SECRET", "s"), \
         patch.object(config, "LINEAR_API_KEY", "k"), \
         patch.object(config, "LINEAR_TEAM_ID", None), \
         patch.object(config, "GITHUB_TOKEN", None), \
         patch.object(config, "DISCORD_WEBHOOK_URL", None):
        with pytest.raises(ConfigError):
            config.validate_pipeline_config()


# ---------------------------------------------------------------------------
# 3. Label table and health services
# ---------------------------------------------------------------------------
def test_label_table_has_every_group():
    assert len(config.LINEAR_LABEL_IDS) == 16
    assert {key.split(":")[0] for key in config.LINEAR_LABEL_IDS} == {"platform", "os", "severity", "tier"}


def test_health_services_override(monkeypatch):
    monkeypatch.setenv("HEALTH_CHECK_SERVICES", '[{"name": "X", "url": "https://x/health"}]')
    assert config._load_health_services() == [{"name": "X", "url": "https://x/health"}]


@pytest.mark.parametrize("raw", ["{not json", '{"name": "X"}'])
def test_health_services_override_must_be_json_list(monkeypatch, raw):
    monkeypatch.setenv("HEALTH_CHECK_SERVICES", raw)
    with pytest.raises(ConfigError):
        config._load_health_services()


@pytest.mark.parametrize("raw", [
    '["api"]',
    '[{"name": "X"}]',
    '[{"name": "X", "url": ""}]',
    '[{"name": "X", "url": 5}]',
    '[{"url": "https://ok/health"}, null]',
])
def test_health_services_items_need_a_url(monkeypatch, raw):
    monkeypatch.setenv("HEALTH_CHECK_SERVICES", raw)
    with pytest.raises(ConfigError) as exc_info:
        config._load_health_services()
    assert "url" in str(exc_info.value)


# ---------------------------------------------------------------------------
# 4. Webhook secrets
# ---------------------------------------------------------------------------
def test_generated_secrets_are_unique_hex():
    first, second = generate_webhook_secret(), generate_webhook_secret()
    assert first != second
    assert len(first) == 40
    int(first, 16)


def test_verify_secret():
    assert verify_secret("abc", "abc") is True
    assert verify_secret("abd", "abc") is False
    assert verify_secret("", "") is False
    assert verify_secret("abc", "") is False


def test_webhook_path():
    assert webhook_path("bug-reports", "abc") == "/hooks/bug-reports/abc"
