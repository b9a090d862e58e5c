"""
Wanderlust Backend - Health Check Route
========================================

What:  Liveness + database probe for monitoring and load balancers.
How:   Runs SELECT 1 on a fresh connection and reports uptime.
Who:   Docker health checks, load balancers.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (the app cannot serve any page)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from wanderlust import __version__
from wanderlust.database import engine
from wanderlust.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

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
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
