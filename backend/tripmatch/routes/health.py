"""
TripMatch Backend — Health Check Route
========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Runs SELECT 1 against the database and asks the storage backend
       for a cheap health probe.

Status levels:
    - healthy:   database and storage operational
    - degraded:  storage unavailable or its circuit is open
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from tripmatch import __version__
from tripmatch.database import engine
from tripmatch.schemas.common import HealthResponse
from tripmatch.services.file_service import file_service
from tripmatch.services.webdav_storage import CircuitBreaker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports database and image storage status plus uptime.",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    storage = file_service.storage
    breaker = getattr(storage, "circuit_breaker", None)
    try:
        if breaker is not None and breaker.state == CircuitBreaker.OPEN:
            storage_status = "circuit_open"
        elif not await storage.health_check():
            storage_status = "unavailable"
    except Exception as e:
        storage_status = "unavailable"
        logger.warning("Health check: storage unreachable: %s", str(e))

    if storage_status != "available" and overall != "unhealthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
