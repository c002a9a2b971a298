"""
Bug Report Intake API
=====================
    POST /api/reports        — submit a report (multipart form)
    GET  /api/reports        — list stored reports, newest first
    GET  /api/reports/{id}   — one stored report
    GET  /screenshots/{id}   — stored screenshot (PNG)

Form fields (POST):
    title, description, currentRoute   — required
    navigationHistory                  — JSON array of routes
    deviceInfo                         — JSON object
    userInfo                           — optional JSON object
    logs                               — JSON array of entries, or raw text
    stepsToReproduce, traceId          — optional text
    timestamp                          — RFC 3339, defaults to now
    screenshot                         — optional file

Errors are returned as {"success": false, "error": "<message>"}.
Storage is optional: without STORAGE_DIR reports are logged, not kept.
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from pydantic import ValidationError

from bugrelay.api.dependencies import get_relay, get_report_store
from bugrelay.core.constants import REPORT_ID_PREFIX
from bugrelay.core.errors import ReportNotFoundError, StorageError
from bugrelay.models.bug_report import BugReport, DeviceInfo, LogEntry, UserInfo
from bugrelay.services.report_relay import ReportRelay
from bugrelay.storage.report_store import ReportStore
from bugrelay.transforms.labels import derive_labels

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])

# Upload ceiling for screenshots
MAX_SCREENSHOT_BYTES = 32 << 20


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return datetime.now(timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_logs(raw: str) -> List[LogEntry]:
    """JSON array of entries, or raw text kept as a single info entry."""
    if not raw:
        return []
    try:
        entries = json.loads(raw)
        if isinstance(entries, list):
            return [LogEntry.model_validate(entry) for entry in entries]
    except (ValueError, ValidationError):
        pass
    return [LogEntry(level="info", message=raw, timestamp=datetime.now(timezone.utc).isoformat())]


@router.post("/api/reports")
async def submit_report(
    background_tasks: BackgroundTasks,
    title: str = Form(""),
    description: str = Form(""),
    steps_to_reproduce: str = Form("", alias="stepsToReproduce"),
    current_route: str = Form("", alias="currentRoute"),
    navigation_history: str = Form("", alias="navigationHistory"),
    logs: str = Form(""),
    device_info: str = Form("", alias="deviceInfo"),
    user_info: str = Form("", alias="userInfo"),
    timestamp: str = Form(""),
    trace_id: str = Form("", alias="traceId"),
    screenshot: Optional[UploadFile] = File(None),
    store: Optional[ReportStore] = Depends(get_report_store),
    relay: ReportRelay = Depends(get_relay),
):
    if not title or not description or not current_route:
        return _error(400, "Missing required fields: title, description, currentRoute")

    try:
        history = json.loads(navigation_history)
        if history is not None and not (isinstance(history, list) and all(isinstance(h, str) for h in history)):
            raise ValueError("navigationHistory must be a list of strings")
    except ValueError:
        return _error(400, "Invalid navigationHistory JSON")

    try:
        device = DeviceInfo.model_validate(json.loads(device_info))
    except (ValueError, ValidationError):
        return _error(400, "Invalid deviceInfo JSON")

    user = None
    if user_info:
        try:
            user = UserInfo.model_validate(json.loads(user_info))
        except (ValueError, ValidationError):
            return _error(400, "Invalid userInfo JSON")

    report = BugReport(
        id=f"{REPORT_ID_PREFIX}{uuid.uuid4()}",
        title=title,
        description=description,
        steps_to_reproduce=steps_to_reproduce or None,
        current_route=current_route,
        navigation_history=history or [],
        logs=_parse_logs(logs),
        device_info=device,
        user_info=user,
        timestamp=_parse_timestamp(timestamp),
        trace_id=trace_id or None,
    )

    if screenshot is not None and store is not None:
        data = await screenshot.read(MAX_SCREENSHOT_BYTES + 1)
        if len(data) > MAX_SCREENSHOT_BYTES:
            logger.warning("Screenshot for %s exceeds %d bytes, dropped", report.id, MAX_SCREENSHOT_BYTES)
        elif data:
            try:
                report.screenshot_url = store.save_screenshot(report.id, data)
            except StorageError as exc:
                logger.warning("Failed to upload screenshot: %s", exc)

    report.labels = derive_labels(report)

    if store is not None:
        try:
            store.save_report(report)
        except StorageError as exc:
            logger.error("Failed to save report %s: %s", report.id, exc)
            return _error(500, "Failed to save report")
    else:
        logger.info("Bug report received (no storage): %s", report.model_dump_json(by_alias=True, exclude_none=True))

    background_tasks.add_task(relay.relay, report)

    logger.info("Accepted report %s (%s, %s)", report.id, report.labels.severity, report.labels.platform)
    return {"success": True, "reportId": report.id}


@router.get("/api/reports")
async def list_reports(store: Optional[ReportStore] = Depends(get_report_store)):
    if store is None:
        return _error(503, "Report storage is not configured")
    try:
        reports = store.list_reports()
    except StorageError as exc:
        logger.error("Failed to list reports: %s", exc)
        return _error(500, "Failed to list reports")
    return {"success": True, "reports": [r.to_payload() for r in reports], "count": len(reports)}


@router.get("/api/reports/{report_id}")
async def get_report(report_id: str, store: Optional[ReportStore] = Depends(get_report_store)):
    if store is None:
        return _error(404, "Report not found")
    try:
        return store.get_report(report_id).to_payload()
    except StorageError as exc:
        if not isinstance(exc, ReportNotFoundError):
            logger.error("Failed to read report %s: %s", report_id, exc)
        return _error(404, "Report not found")


@router.get("/screenshots/{report_id}")
async def get_screenshot(report_id: str, store: Optional[ReportStore] = Depends(get_report_store)):
    if store is None:
        return _error(404, "Screenshot not found")
    try:
        path = store.screenshot_path(report_id)
    except ReportNotFoundError:
        return _error(404, "Screenshot not found")
    return FileResponse(path, media_type="image/png")
