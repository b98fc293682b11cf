"""
Gatherly Backend: Health Check Route
======================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs SELECT 1 against the database and asks the notifier whether it
       can deliver.

Status levels:
    - healthy:   database and notifier available
    - degraded:  notifier unavailable or its circuit is open
    - unhealthy: database unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import text

from gatherly import __version__
from gatherly.database import engine
from gatherly.schemas.common import HealthResponse
from gatherly.services.notifications import get_notifier
from gatherly.services.notifier_base import Notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(notifier: Notifier = Depends(get_notifier)) -> HealthResponse:
    db_status = "connected"
    notifier_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    breaker = getattr(notifier, "circuit_breaker", None)
    if breaker is not None and breaker.state == breaker.OPEN:
        notifier_status = "circuit_open"
    elif not await notifier.health_check():
        notifier_status = "unavailable"
    if notifier_status != "available" and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        notifier=notifier_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
