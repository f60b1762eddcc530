"""
Checkins Backend — Health Check Route
=======================================

What:  GET /health for container and load balancer probes.
How:   Runs `SELECT 1` through the connection pool and reports pool accounting.
       200 when the database answers, 503 otherwise.
"""

import logging

from fastapi import APIRouter, Request, Response

from checkins import __version__
from checkins.exceptions import CheckinsError
from checkins.schemas.checkin import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    pool = request.app.state.pool
    db_status = "connected"
    overall = "healthy"

    try:
        await pool.verify()
    except CheckinsError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e.message)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        pool=pool.stats(),
    )
