"""FastAPI dependencies for shared infrastructure.

Collaborators are built once in the application lifespan and stored on
``app.state``; routes reach them through these dependencies so tests can
swap them by setting attributes on ``app.state``.
"""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from agora.config.settings import Settings
from agora.core.database import Database


def get_state_service(request: Request, name: str, label: str) -> Any:
    """Fetch a collaborator from app state or answer 503."""
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not available",
        )
    return service


async def get_app_settings(request: Request) -> Settings:
    """Settings the application was started with."""
    return get_state_service(request, "settings", "Configuration")


async def get_database(request: Request) -> Database:
    return get_state_service(request, "database", "Database")


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
DatabaseDep = Annotated[Database, Depends(get_database)]
