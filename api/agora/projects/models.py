"""Database models for projects.

Cassandra table definitions for:
- Projects: drafts until ``published_at`` is set
- Project memberships: contributors invited to a project
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from agora.communities.models import Visibility
from agora.utils import ensure_utc_aware, utcnow


class ProjectRole(str, Enum):
    CONTRIBUTOR = "contributor"
    MODERATOR = "moderator"


PROJECT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.projects (
    project_id UUID PRIMARY KEY,
    user_id UUID,
    community_id UUID,
    title TEXT,
    visibility TEXT,
    published_at TIMESTAMP,
    created_at TIMESTAMP
)
"""

PROJECT_MEMBERSHIP_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.project_memberships (
    project_id UUID,
    user_id UUID,
    role TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((project_id), user_id)
)
"""

PROJECTS_TABLES_CQL = [
    PROJECT_TABLE_CQL,
    PROJECT_MEMBERSHIP_TABLE_CQL,
]


class Project:
    """Project entity.

    Attributes:
        id: Project identifier
        user_id: Creator
        community_id: Owning community
        title: Display title
        visibility: ``public`` or ``community`` once published
        published_at: None while the project is a draft
        created_at: Creation timestamp
    """

    def __init__(
        self,
        user_id: UUID,
        community_id: UUID | None,
        title: str = "",
        visibility: str = Visibility.COMMUNITY.value,
        published_at: datetime | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.community_id = community_id
        self.title = title
        self.visibility = visibility
        self.published_at = ensure_utc_aware(published_at)
        self.created_at = ensure_utc_aware(created_at) or utcnow()

    @classmethod
    def from_row(cls, row: Any) -> "Project":
        return cls(
            id=row.project_id,
            user_id=row.user_id,
            community_id=row.community_id,
            title=row.title or "",
            visibility=row.visibility or Visibility.COMMUNITY.value,
            published_at=row.published_at,
            created_at=row.created_at,
        )

    def is_draft(self) -> bool:
        return self.published_at is None

    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC.value


class ProjectMembership:
    """A contributor's membership in a project."""

    def __init__(
        self,
        project_id: UUID,
        user_id: UUID,
        role: str = ProjectRole.CONTRIBUTOR.value,
        created_at: datetime | None = None,
    ):
        self.project_id = project_id
        self.user_id = user_id
        self.role = role
        self.created_at = ensure_utc_aware(created_at) or utcnow()

    @classmethod
    def from_row(cls, row: Any) -> "ProjectMembership":
        return cls(
            project_id=row.project_id,
            user_id=row.user_id,
            role=row.role or ProjectRole.CONTRIBUTOR.value,
            created_at=row.created_at,
        )
