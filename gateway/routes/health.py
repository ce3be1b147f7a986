"""
Gateway — Health Check Route
=============================

What:  Liveness endpoint for load balancer and container probes.
How:   The gateway has no dependencies of its own to probe (persistence and
       business logic live behind the resource handlers), so being able to
       answer means being healthy.

Note: /health goes through the full pipeline, rate limiting included.
"""

import time

from fastapi import APIRouter, Request

from gateway import __version__
from gateway.schemas import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    settings = request.app.state.settings
    limiter = request.app.state.rate_limiter
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _start_time, 2),
        rate_limited_clients=len(limiter.store),
    )
