"""
PDF Notes Backend - Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database and the configured blob store, returns status.
Who:   Called by Docker health checks, load balancers, and monitoring systems.
When:  Periodically (e.g., every 30 seconds by Docker).

Status levels:
    - healthy:   Database reachable and blob store usable (HTTP 200)
    - unhealthy: Either one is down (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from pdfnotes import __version__
from pdfnotes.database import engine
from pdfnotes.schemas.note import HealthResponse
from pdfnotes.services.blob_store import blob_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track when the service started for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "A storage dependency is down", "model": HealthResponse}},
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its storage "
        "dependencies. Used by Docker health checks and load balancers."
    ),
)
async def health_check(response: Response) -> HealthResponse:
    """
    Check database connectivity and blob store usability.

    Check details:
        Database: Executes SELECT 1 to verify connection and query execution
        Storage:  Inline always passes; external checks the storage root is
                  a writable directory
    """
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

    # ── Check Blob Store ──────────────────────────────────────────────────
    if not await blob_store.health_check():
        storage_status = "unavailable"
        overall = "unhealthy"
        logger.warning("Health check: %s blob store unavailable", blob_store.kind)

    if overall != "healthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage_backend=blob_store.kind,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
