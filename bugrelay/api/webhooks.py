"""
Inbound Webhooks
================
    POST /hooks/bug-reports/{secret}  — bug-report JSON → BugReportPipeline
    POST /hooks/revenue/{secret}      — RevenueCat / Stripe JSON → RevenuePipeline

The secret path segment is the only authentication. A wrong secret gets a
plain 404 (indistinguishable from an unknown route); a webhook whose secret
is not configured answers 503.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from bugrelay.api.dependencies import get_bug_report_pipeline, get_revenue_pipeline
from bugrelay.core import config
from bugrelay.pipeline.bug_report_pipeline import BugReportPipeline, RevenuePipeline
from bugrelay.pipeline.webhook_secrets import verify_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hooks", tags=["Webhooks"])


def _check_secret(provided: str, expected: str, name: str) -> None:
    if not expected:
        raise HTTPException(status_code=503, detail=f"{name} webhook is not configured")
    if not verify_secret(provided, expected):
        logger.warning("Rejected %s webhook call with an invalid secret", name)
        raise HTTPException(status_code=404, detail="Not Found")


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    return payload


@router.post("/bug-reports/{secret}")
async def bug_report_webhook(
    secret: str,
    request: Request,
    pipeline: BugReportPipeline = Depends(get_bug_report_pipeline),
):
    _check_secret(secret, config.BUG_REPORT_WEBHOOK_SECRET, "bug-report")
    payload = await _json_object(request)
    result = await pipeline.process(payload)
    return result.model_dump()


@router.post("/revenue/{secret}")
async def revenue_webhook(
    secret: str,
    request: Request,
    pipeline: RevenuePipeline = Depends(get_revenue_pipeline),
):
    _check_secret(secret, config.REVENUE_WEBHOOK_SECRET, "revenue")
    payload = await _json_object(request)
    result = await pipeline.process(payload)
    return result.model_dump()
