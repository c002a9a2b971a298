"""
Report Inspector
================
Server-rendered HTML views over the report store, linked from every
Linear ticket (INSPECTOR_BASE_URL/<id>).

    GET /                    — redirect to the report list
    GET /reports             — all stored reports, newest first
    GET /reports/{id}        — one report: metadata, labels, logs, screenshot

Failures render error.html: 503 without storage, 500 when the list
cannot be read, 404 for an unknown or unreadable report.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from bugrelay.api.dependencies import get_report_store
from bugrelay.core import config
from bugrelay.core.errors import ReportNotFoundError, StorageError
from bugrelay.storage.report_store import ReportStore

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
templates.env.filters["datetime"] = _format_time
templates.env.globals["service_name"] = config.SERVICE_NAME

router = APIRouter(tags=["Inspector"])


def _error_page(request: Request, status_code: int, message: str) -> HTMLResponse:
    return templates.TemplateResponse(request, "error.html", {"error": message}, status_code=status_code)


@router.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url="/reports")


@router.get("/reports", response_class=HTMLResponse)
async def index(request: Request, store: Optional[ReportStore] = Depends(get_report_store)):
    if store is None:
        return _error_page(request, 503, "Report storage is not configured")
    try:
        reports = store.list_reports()
    except (StorageError, OSError) as exc:
        logger.error("Failed to load reports: %s", exc)
        return _error_page(request, 500, "Failed to load reports")
    return templates.TemplateResponse(request, "index.html", {"reports": reports, "count": len(reports)})


@router.get("/reports/{report_id}", response_class=HTMLResponse)
async def detail(request: Request, report_id: str, store: Optional[ReportStore] = Depends(get_report_store)):
    if store is None:
        return _error_page(request, 404, "Report not found")
    try:
        report = store.get_report(report_id)
    except StorageError as exc:
        if not isinstance(exc, ReportNotFoundError):
            logger.error("Failed to read report %s: %s", report_id, exc)
        return _error_page(request, 404, "Report not found")
    return templates.TemplateResponse(request, "detail.html", {"report": report})
