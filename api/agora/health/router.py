"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from agora.core.dependencies import SettingsDep


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request, settings: SettingsDep) -> ORJSONResponse:
    """Readiness probe - ready once the datastore and job queue are wired."""
    state = request.app.state
    checks = {
        "database": getattr(state, "database", None) is not None,
        "job_queue": getattr(state, "job_queue", None) is not None,
    }
    ready = all(checks.values())
    return ORJSONResponse(
        status_code=(
            status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
        ),
        content={
            "status": "ready" if ready else "degraded",
            "environment": settings.environment,
            "checks": checks,
        },
    )


@router.get("")
async def health(settings: SettingsDep) -> dict[str, str]:
    """General health check endpoint."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
