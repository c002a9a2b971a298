"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    LINEAR_API_KEY              — Linear API key (sent verbatim in Authorization)
    LINEAR_TEAM_ID              — Linear team that receives bug tickets
    GITHUB_TOKEN                — Token used to open GitHub issues
    GITHUB_REPO                 — "owner/repo" receiving GitHub issues
    DISCORD_WEBHOOK_URL         — Discord channel webhook for bug notifications
    DISCORD_REVENUE_WEBHOOK_URL — Discord channel webhook for revenue events
    LOGWARD_API_KEY             — LogWard ingest key (forwarding disabled when unset)
    BUG_REPORT_WEBHOOK_SECRET   — Secret path segment of the bug-report webhook
    REVENUE_WEBHOOK_SECRET      — Secret path segment of the revenue webhook
    PIPELINE_WEBHOOK_URL        — Where the intake API relays new reports
    PIPELINE_MODE               — "forward" (default) or "local" (run pipeline in-process)
    STORAGE_DIR                 — Root directory for stored reports (storage disabled when unset)

Label Table:
    LINEAR_LABEL_IDS maps "<group>:<value>" label names to Linear label ids.
    Each entry is overridable via env var (e.g. LINEAR_LABEL_OS_IOS=uuid).
    Unset entries stay empty and are skipped when resolving label ids.
"""
import json
import os
from dotenv import load_dotenv

from bugrelay.core.errors import ConfigError

load_dotenv()

SERVICE_NAME = "bug-report-api"
SERVICE_VERSION = "1.0.0"

PORT = int(os.getenv("PORT", 8080))
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

# Storage
STORAGE_DIR = os.getenv("STORAGE_DIR", "")
STORAGE_CONTAINER = os.getenv("STORAGE_CONTAINER", "bug-reports")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8080").rstrip("/")
INSPECTOR_BASE_URL = os.getenv("INSPECTOR_BASE_URL", f"{PUBLIC_BASE_URL}/reports").rstrip("/")

# Linear
LINEAR_API_KEY = os.getenv("LINEAR_API_KEY")
LINEAR_TEAM_ID = os.getenv("LINEAR_TEAM_ID")
LINEAR_API_URL = os.getenv("LINEAR_API_URL", "https://api.linear.app/graphql")

# GitHub
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_REPO = os.getenv("GITHUB_REPO")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")

# Discord
DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL")
DISCORD_REVENUE_WEBHOOK_URL = os.getenv("DISCORD_REVENUE_WEBHOOK_URL") or DISCORD_WEBHOOK_URL

# LogWard
LOGWARD_API_KEY = os.getenv("LOGWARD_API_KEY")
LOGWARD_URL = os.getenv("LOGWARD_URL", "https://logging.scenextras.com").rstrip("/")

# Pipeline
BUG_REPORT_WEBHOOK_SECRET = os.getenv("BUG_REPORT_WEBHOOK_SECRET", "")
REVENUE_WEBHOOK_SECRET = os.getenv("REVENUE_WEBHOOK_SECRET", "")
PIPELINE_WEBHOOK_URL = os.getenv("PIPELINE_WEBHOOK_URL", "")
PIPELINE_MODE = os.getenv("PIPELINE_MODE", "forward").lower()

# Outbound HTTP timeout in seconds, single attempt per sink
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 10))
LOGWARD_TIMEOUT_SECONDS = 5.0

# Reporter profile (CLI)
PROFILE_PATH = os.getenv(
    "PROFILE_PATH", os.path.join(os.path.expanduser("~"), ".bugrelay", "profile.json")
)
INTAKE_API_URL = os.getenv("INTAKE_API_URL", PUBLIC_BASE_URL).rstrip("/")

# Health monitor: name, url, expected body marker
DEFAULT_HEALTH_SERVICES: list[dict[str, str]] = [
    {"name": "API", "url": "https://api.scenextras.com/healthcheck/ready", "expected": "ready"},
    {"name": "Search", "url": "https://api.scenextras.com/search/health", "expected": "ok"},
    {"name": "Gateway", "url": "https://api.scenextras.com/gateway/health", "expected": "ok"},
    {"name": "LogWard", "url": "https://logging.scenextras.com/health", "expected": "ok"},
]


def _load_health_services() -> list[dict[str, str]]:
    raw = os.getenv("HEALTH_CHECK_SERVICES")
    if not raw:
        return DEFAULT_HEALTH_SERVICES
    try:
        services = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"HEALTH_CHECK_SERVICES is not valid JSON: {exc}") from exc
    if not isinstance(services, list):
        raise ConfigError("HEALTH_CHECK_SERVICES must be a JSON list")
    for index, service in enumerate(services):
        if not isinstance(service, dict) or not isinstance(service.get("url"), str) or not service["url"]:
            raise ConfigError(f"HEALTH_CHECK_SERVICES[{index}] must be an object with a \"url\" string")
    return services


HEALTH_CHECK_SERVICES = _load_health_services()

# Linear label ids, populated per workspace
LINEAR_LABEL_IDS: dict[str, str] = {
    # Platform labels
    "platform:ios":      os.getenv("LINEAR_LABEL_PLATFORM_IOS", ""),
    "platform:android":  os.getenv("LINEAR_LABEL_PLATFORM_ANDROID", ""),
    "platform:web":      os.getenv("LINEAR_LABEL_PLATFORM_WEB", ""),
    # OS labels
    "os:iOS":            os.getenv("LINEAR_LABEL_OS_IOS", ""),
    "os:Android":        os.getenv("LINEAR_LABEL_OS_ANDROID", ""),
    "os:macOS":          os.getenv("LINEAR_LABEL_OS_MACOS", ""),
    "os:Windows":        os.getenv("LINEAR_LABEL_OS_WINDOWS", ""),
    "os:Linux":          os.getenv("LINEAR_LABEL_OS_LINUX", ""),
    # Severity labels
    "severity:critical": os.getenv("LINEAR_LABEL_SEVERITY_CRITICAL", ""),
    "severity:high":     os.getenv("LINEAR_LABEL_SEVERITY_HIGH", ""),
    "severity:medium":   os.getenv("LINEAR_LABEL_SEVERITY_MEDIUM", ""),
    "severity:low":      os.getenv("LINEAR_LABEL_SEVERITY_LOW", ""),
    # Tier labels
    "tier:free":         os.getenv("LINEAR_LABEL_TIER_FREE", ""),
    "tier:max":          os.getenv("LINEAR_LABEL_TIER_MAX", ""),
    "tier:pro":          os.getenv("LINEAR_LABEL_TIER_PRO", ""),
    "tier:creator":      os.getenv("LINEAR_LABEL_TIER_CREATOR", ""),
}


def require_env(*names: str) -> dict[str, str]:
    """
    Return the values of the named environment variables.

    Raises ConfigError naming every missing variable at once, so a
    misconfigured deploy aborts before anything is wired up.
    """
    values = {name: os.getenv(name, "") for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigError(f"Missing required environment: {', '.join(missing)}")
    return values


def validate_pipeline_config() -> None:
    """Abort when the bug-report webhook is enabled but no sink is configured."""
    if not BUG_REPORT_WEBHOOK_SECRET:
        return
    has_linear = bool(LINEAR_API_KEY and LINEAR_TEAM_ID)
    has_github = bool(GITHUB_TOKEN and GITHUB_REPO)
    if not (has_linear or has_github or DISCORD_WEBHOOK_URL):
        raise ConfigError(
            "BUG_REPORT_WEBHOOK_SECRET is set but no sink is configured: "
            "set LINEAR_API_KEY + LINEAR_TEAM_ID, GITHUB_TOKEN + GITHUB_REPO "
            "or DISCORD_WEBHOOK_URL"
        )
