"""
Academia API — Health Check Route
==================================

What:  Health check endpoint for monitoring and container probes.
How:   Executes SELECT 1 against the engine and reports the result.
       The endpoint itself always answers 200; `status` carries the verdict.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from academia import __version__
from academia.database import engine
from academia.schemas.student import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
