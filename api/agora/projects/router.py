"""Project API endpoints."""

from fastapi import APIRouter

from agora.projects.dependencies import AllowedProject
from agora.projects.schemas import ProjectResponse


router = APIRouter(prefix="/noo/project", tags=["projects"])


@router.get("/{project_id}", response_model=ProjectResponse, summary="Get project")
async def get_project(project: AllowedProject) -> ProjectResponse:
    """Project details, subject to the project access policy."""
    return ProjectResponse(
        id=project.id,
        title=project.title,
        user_id=project.user_id,
        community_id=project.community_id,
        visibility=project.visibility,
        is_draft=project.is_draft(),
        published_at=project.published_at,
        created_at=project.created_at,
    )
