"""
DocSummarizer Backend: Health Check Route
==========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Probes the database (SELECT 1), the storage root (write + delete a
       probe file) and the configured LLM provider (cheap list call).

Status levels:
    - healthy:   everything reachable (HTTP 200)
    - degraded:  LLM provider unreachable or not configured (HTTP 200);
                 upload/get/list still work, analyze will fail
    - unhealthy: database or storage down (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text

from docsummarizer import __version__
from docsummarizer.config import Settings
from docsummarizer.database import engine
from docsummarizer.dependencies import get_analysis_client, get_blob_store, get_settings
from docsummarizer.schemas.document import HealthResponse
from docsummarizer.services.blob_store import BlobStore
from docsummarizer.services.llm_base import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database or storage unavailable", "model": HealthResponse}},
)
async def health_check(
    response: Response,
    config: Settings = Depends(get_settings),
    blob_store: BlobStore = Depends(get_blob_store),
    analysis_client: LLMService = Depends(get_analysis_client),
) -> HealthResponse:
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    db_status = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Storage ───────────────────────────────────────────────────────────
    storage_status = "writable"
    if not await blob_store.is_writable():
        storage_status = "unavailable"
        overall = "unhealthy"

    # ── LLM provider ──────────────────────────────────────────────────────
    try:
        config.validate_required_for_production()
    except ValueError:
        llm_status = "not_configured"
    else:
        llm_status = "available" if await analysis_client.health_check() else "unavailable"
    if llm_status != "available" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        llm=llm_status,
        llm_provider=config.llm_provider,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
