"""
Health Check Endpoints

Provides the plain-text root check plus JSON liveness and readiness probes
for monitoring and load balancers.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from scheduler.config import settings
from scheduler.infra.redis import check_redis_health

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

ROOT_MESSAGE = "Zero-Cost AI Scheduler Backend – Running!"
VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: datetime
    version: str
    environment: str


class ReadyResponse(BaseModel):
    """Readiness check response with dependency status."""
    status: str
    timestamp: datetime
    checks: dict[str, str]


@router.get(
    "/",
    response_class=PlainTextResponse,
    summary="Root check",
)
async def root() -> str:
    """Plain-text banner; 200 whenever the process is serving."""
    return ROOT_MESSAGE


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the application is running. Does not check dependencies.",
)
async def health() -> HealthResponse:
    """
    Basic health check.

    Always returns 200 if the application is running.
    Use /health/ready for dependency checks.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=VERSION,
        environment=settings.app_env,
    )


@router.get(
    "/health/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks Redis connectivity. Returns 503 if the history store is unavailable.",
    responses={
        200: {"description": "All dependencies are ready"},
        503: {"description": "One or more dependencies are unavailable"},
    },
)
async def ready() -> ReadyResponse:
    """
    Readiness probe.

    Checks:
    - Redis connectivity (chat history store)

    Returns 503 if any check fails.
    """
    redis_ok = await check_redis_health()
    checks = {"redis": "ok" if redis_ok else "failed"}

    if not redis_ok:
        logger.warning("Readiness check: Redis unhealthy")

    response = ReadyResponse(
        status="ready" if redis_ok else "not_ready",
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )

    # Return 503 if not ready
    if not redis_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response
