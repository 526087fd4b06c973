"""FastAPI dependencies for projects.

Provides dependency injection for:
- Project service
- The ``check_and_set_project`` access policy
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request

from agora.auth.dependencies import OptionalUser
from agora.communities.dependencies import CommunityServiceDep
from agora.core.dependencies import get_state_service
from agora.core.policy import (
    PolicyError,
    ResourceNotFoundError,
    handle_policy_error,
)
from agora.projects.models import Project
from agora.projects.service import ProjectService, check_project_access


async def get_project_service(request: Request) -> ProjectService:
    return get_state_service(request, "project_service", "Project service")


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]


async def check_and_set_project(
    project_id: UUID,
    user: OptionalUser,
    projects: ProjectServiceDep,
    communities: CommunityServiceDep,
) -> Project:
    """Load the project and enforce the project access policy.

    Raises:
        HTTPException(404): Unknown project
        HTTPException(403): Policy failed
    """
    try:
        project = await projects.get_project(project_id)
        if project is None:
            raise ResourceNotFoundError("Project not found")
        return await check_project_access(
            project, user.id if user else None, projects, communities
        )
    except PolicyError as e:
        raise handle_policy_error(e) from e


AllowedProject = Annotated[Project, Depends(check_and_set_project)]
