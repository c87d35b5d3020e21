"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from clinicbook.config import settings
from clinicbook.core.redis_client import check_redis_connection
from clinicbook.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Detailed health check response model."""

    database: str
    redis: str
    lock_backend: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Detailed health check with database and Redis status.

    Redis is only a dependency when provider locks are held in Redis; with the
    local lock backend it is reported as ``disabled`` and does not degrade the
    overall status.
    """
    db_healthy = await check_database_connection()

    if settings.provider_lock_backend == "redis":
        redis_healthy = await check_redis_connection()
        redis_status = "healthy" if redis_healthy else "unhealthy"
    else:
        redis_healthy = True
        redis_status = "disabled"

    return DetailedHealthResponse(
        status="healthy" if db_healthy and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        redis=redis_status,
        lock_backend=settings.provider_lock_backend,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """Simple ping endpoint."""
    return {"message": "pong"}
