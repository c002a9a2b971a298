"""
API Dependencies
Process-wide singletons resolved through FastAPI's Depends(), so tests can
swap any of them with app.dependency_overrides.
"""
import logging
from functools import lru_cache
from typing import Optional

from bugrelay.core import config
from bugrelay.pipeline.bug_report_pipeline import BugReportPipeline, RevenuePipeline
from bugrelay.services.report_relay import ReportRelay
from bugrelay.storage.report_store import ReportStore

logger = logging.getLogger(__name__)


@lru_cache
def get_report_store() -> Optional[ReportStore]:
    if not config.STORAGE_DIR:
        return None
    store = ReportStore(config.STORAGE_DIR, config.STORAGE_CONTAINER, config.PUBLIC_BASE_URL)
    try:
        store.ensure_container()
    except OSError as exc:
        logger.warning("Failed to create storage container %s: %s", store.container_path, exc)
    return store


@lru_cache
def get_relay() -> ReportRelay:
    return ReportRelay.from_config()


@lru_cache
def get_bug_report_pipeline() -> BugReportPipeline:
    return BugReportPipeline.from_config()


@lru_cache
def get_revenue_pipeline() -> RevenuePipeline:
    return RevenuePipeline.from_config()


async def close_singletons() -> None:
    """Close HTTP clients of every singleton that was created."""
    for factory in (get_relay, get_bug_report_pipeline, get_revenue_pipeline):
        if factory.cache_info().currsize:
            await factory().close()
        factory.cache_clear()
    get_report_store.cache_clear()
