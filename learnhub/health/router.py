"""Health check endpoints."""

from fastapi import APIRouter, Response, status

from learnhub.config import get_settings
from learnhub.core.database.async_cassandra import AsyncCassandraConnection
from learnhub.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(response: Response) -> dict[str, str | bool]:
    """Readiness probe - 503 until Cassandra is connected.

    Redis is optional and only reported.
    """
    settings = get_settings()
    cassandra = AsyncCassandraConnection.is_connected()
    if not cassandra:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ready" if cassandra else "not_ready",
        "environment": settings.environment,
        "debug": settings.debug,
        "cassandra": cassandra,
        "redis": get_redis() is not None,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
