"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from recording_sync.api.deps import ReconcilerDep
from recording_sync.config import settings
from recording_sync.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool
    directory: dict[str, Any] | None = None
    storage: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Basic health check - is the API up?

    Returns which adapters are configured with a real provider.
    """
    from recording_sync import __version__

    components = {
        "directory": settings.directory_provider,
        "storage": settings.storage_provider,
        "notifier": settings.notifier_provider,
    }

    return HealthResponse(
        status="healthy",
        version=__version__,
        components={k: v != "stub" for k, v in components.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Verifies the database, Redis, directory credentials and bucket.",
)
async def readiness_check(reconciler: ReconcilerDep) -> ReadinessResponse:
    """Comprehensive readiness check including dependencies."""
    # Check database
    database_ok = False
    try:
        from sqlalchemy import text

        from recording_sync.db.session import engine

        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            database_ok = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    # Check Redis
    redis_ok = False
    try:
        import redis

        r = redis.from_url(settings.redis_url)
        r.ping()
        redis_ok = True
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))

    directory = await reconciler.directory.test_connection()

    storage_ok = False
    try:
        storage_ok = await reconciler.store.health_check()
    except Exception as e:
        logger.error("storage_health_check_failed", error=str(e))

    ready = database_ok and redis_ok and bool(directory.get("success")) and storage_ok

    return ReadinessResponse(
        ready=ready,
        database=database_ok,
        redis=redis_ok,
        directory=directory,
        storage=storage_ok,
    )


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
