"""
bugrelay CLI
============
Commands:
  bugrelay serve                  — run the intake API and webhooks (uvicorn)
  bugrelay format PAYLOAD_FILE    — print the formatted report for a payload
  bugrelay submit                 — file a bug report against the intake API
  bugrelay profile show|set|clear — manage the local reporter profile
  bugrelay secret                 — generate a webhook secret
  bugrelay health-check           — probe service health, alert Discord
"""
import asyncio
import json
import logging
import platform
import sys
import uuid
from pathlib import Path
from typing import Optional

import click
import httpx

from bugrelay.core import config
from bugrelay.core.errors import ConfigError
from bugrelay.integrations.discord_notifier import DiscordNotifier
from bugrelay.integrations.logward import LogWardClient
from bugrelay.models.profile import ReporterProfile
from bugrelay.pipeline.webhook_secrets import generate_webhook_secret, webhook_path
from bugrelay.services.health_monitor import HealthMonitor
from bugrelay.services.settings_view import RenderGuard, render_settings
from bugrelay.services.user_store import UserStore
from bugrelay.transforms.report_formatter import format_report
from bugrelay.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _load_store() -> UserStore:
    store = UserStore(config.PROFILE_PATH)
    asyncio.run(store.initialize())
    return store


def _report_crash(exc: BaseException) -> None:
    async def send() -> None:
        client = LogWardClient(config.LOGWARD_API_KEY)
        try:
            await client.capture_exception(exc, {"view": "settings"})
        finally:
            await client.close()

    asyncio.run(send())


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------
@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(config.SERVICE_VERSION, "--version", "-V", message="bugrelay %(version)s")
@click.option("--log-level", default="WARNING", help="Log level for console output.")
def cli(log_level: str) -> None:
    """Bug-report intake and relay tooling."""
    setup_logging(level=getattr(logging, log_level.upper(), logging.WARNING), log_dir=None)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=config.PORT, show_default=True, type=int)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes (development)")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the intake API and the pipeline webhooks."""
    import uvicorn

    try:
        config.validate_pipeline_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc))
    uvicorn.run("main:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# format
# ---------------------------------------------------------------------------
@cli.command("format")
@click.argument("payload_file", type=click.File("r"))
def format_cmd(payload_file) -> None:
    """Print the formatted report for a bug-report JSON payload ("-" for stdin)."""
    try:
        payload = json.load(payload_file)
    except ValueError as exc:
        raise click.ClickException(f"Payload is not valid JSON: {exc}")
    formatted = format_report(
        payload,
        label_ids=config.LINEAR_LABEL_IDS,
        team_id=config.LINEAR_TEAM_ID or "",
        inspector_base_url=config.INSPECTOR_BASE_URL,
    )
    click.echo(formatted.model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------
@cli.command()
@click.option("--title", required=True)
@click.option("--description", required=True)
@click.option("--route", required=True, help="App route the bug was seen on")
@click.option("--steps", default="", help="Steps to reproduce")
@click.option("--platform", "platform_name", default="web", show_default=True,
              type=click.Choice(["ios", "android", "web"]))
@click.option("--os", "os_name", default=platform.system(), show_default=True)
@click.option("--app-version", default=config.SERVICE_VERSION, show_default=True)
@click.option("--screenshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", "api_url", default=config.INTAKE_API_URL, show_default=True,
              help="Intake API base URL")
def submit(
    title: str,
    description: str,
    route: str,
    steps: str,
    platform_name: str,
    os_name: str,
    app_version: str,
    screenshot: Optional[Path],
    api_url: str,
) -> None:
    """File a bug report with the intake API."""
    store = _load_store()
    data = {
        "title": title,
        "description": description,
        "stepsToReproduce": steps,
        "currentRoute": route,
        "navigationHistory": json.dumps([route]),
        "deviceInfo": json.dumps({
            "platform": platform_name,
            "os": os_name,
            "osVersion": platform.release(),
            "appVersion": app_version,
            "buildNumber": "",
            "deviceModel": platform.node() or None,
        }),
        "logs": "[]",
    }
    if store.user is not None:
        data["userInfo"] = json.dumps({
            "userId": store.user.id,
            "username": store.user.name,
            "email": store.user.email,
        })

    files = None
    if screenshot is not None:
        files = {"screenshot": (screenshot.name, screenshot.read_bytes(), "image/png")}

    try:
        response = httpx.post(
            f"{api_url.rstrip('/')}/api/reports",
            data=data,
            files=files,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Could not reach {api_url}: {exc}")

    try:
        body = response.json()
    except ValueError:
        body = {}
    if not response.is_success or not body.get("success"):
        raise click.ClickException(body.get("error") or f"HTTP {response.status_code}: {response.text}")
    click.echo(f"Submitted {body['reportId']}")


# ---------------------------------------------------------------------------
# profile
# ---------------------------------------------------------------------------
@cli.group()
def profile() -> None:
    """Local reporter profile attached to submitted reports."""


@profile.command("show")
def profile_show() -> None:
    store = _load_store()
    guard = RenderGuard(lambda: render_settings(store), on_error=_report_crash)
    click.echo(guard.render())
    if guard.error is not None:
        sys.exit(1)


@profile.command("set")
@click.option("--id", "user_id", default=None, help="Reporter id (generated when omitted)")
@click.option("--name", default=None)
@click.option("--email", default=None)
def profile_set(user_id: Optional[str], name: Optional[str], email: Optional[str]) -> None:
    store = _load_store()
    if store.user is not None and user_id in (None, store.user.id):
        saved = store.update_user(name=name, email=email)
    else:
        saved = store.set_user(ReporterProfile(id=user_id or str(uuid.uuid4()), name=name, email=email))
    if not saved:
        raise click.ClickException(store.error or "Failed to save profile")
    click.echo(render_settings(store))


@profile.command("clear")
def profile_clear() -> None:
    store = _load_store()
    if not store.clear_user():
        raise click.ClickException(store.error or "Failed to clear profile")
    click.echo("Profile cleared.")


# ---------------------------------------------------------------------------
# secret
# ---------------------------------------------------------------------------
@cli.command()
@click.option("--kind", type=click.Choice(["bug-reports", "revenue"]), default="bug-reports",
              show_default=True)
def secret(kind: str) -> None:
    """Generate a webhook secret and print the path it protects."""
    value = generate_webhook_secret()
    click.echo(value)
    click.echo(f"{config.PUBLIC_BASE_URL}{webhook_path(kind, value)}")


# ---------------------------------------------------------------------------
# health-check
# ---------------------------------------------------------------------------
@cli.command("health-check")
@click.option("--alert/--no-alert", default=True, help="Post a Discord alert per service down")
def health_check(alert: bool) -> None:
    """Probe every configured service once; exit 1 when any is down."""
    if alert:
        try:
            config.require_env("DISCORD_WEBHOOK_URL")
        except ConfigError as exc:
            raise click.ClickException(str(exc))

    async def run():
        notifier = DiscordNotifier(config.DISCORD_WEBHOOK_URL) if alert else None
        try:
            return await HealthMonitor(config.HEALTH_CHECK_SERVICES, notifier=notifier).check_all(alert=alert)
        finally:
            if notifier is not None:
                await notifier.close()

    statuses = asyncio.run(run())
    for status in statuses:
        state = "up" if status.ok else "DOWN"
        detail = status.status if status.status is not None else status.error
        click.echo(f"{status.name:<10} {state:<5} {detail}  {status.url}")

    if any(not s.ok for s in statuses):
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
