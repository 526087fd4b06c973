"""Project lookups and the project access policy."""

from typing import TYPE_CHECKING
from uuid import UUID

from agora.communities.service import CommunityService
from agora.core.policy import PolicyForbiddenError
from agora.projects.models import Project, ProjectMembership


if TYPE_CHECKING:
    from cassandra.cluster import Session


POLICY_NAME = "check_and_set_project"


class ProjectService:
    """Read access to projects and their contributors."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_project = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.projects WHERE project_id = ?"
        )
        self._get_membership = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.project_memberships
            WHERE project_id = ? AND user_id = ?
        """)

    async def get_project(self, project_id: UUID) -> Project | None:
        result = await self.session.aexecute(self._get_project, [project_id])
        row = result.one()
        return Project.from_row(row) if row else None

    async def get_membership(
        self, user_id: UUID, project_id: UUID
    ) -> ProjectMembership | None:
        result = await self.session.aexecute(
            self._get_membership, [project_id, user_id]
        )
        row = result.one()
        return ProjectMembership.from_row(row) if row else None


async def check_project_access(
    project: Project,
    user_id: UUID | None,
    projects: ProjectService,
    communities: CommunityService,
) -> Project:
    """Decide whether ``user_id`` may see ``project``.

    Exactly one branch applies, in this order:

    1. the creator always passes;
    2. a draft requires a contributor membership;
    3. a published public project passes;
    4. anything else requires membership of the project's community.

    Raises:
        PolicyForbiddenError: The applicable membership check failed
    """
    if user_id is not None and user_id == project.user_id:
        return project

    if project.is_draft():
        membership = (
            await projects.get_membership(user_id, project.id) if user_id else None
        )
        if membership is None:
            raise PolicyForbiddenError(POLICY_NAME, "not a contributor")
        return project

    if project.is_public():
        return project

    membership = (
        await communities.get_membership(user_id, project.community_id)
        if user_id
        else None
    )
    if membership is None:
        raise PolicyForbiddenError(POLICY_NAME, "not in community")
    return project
