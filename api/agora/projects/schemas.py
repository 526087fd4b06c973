"""Pydantic schemas for projects."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ProjectResponse(BaseModel):
    """Project as returned to clients that passed the access policy."""

    id: UUID
    title: str
    user_id: UUID
    community_id: UUID | None = None
    visibility: str
    is_draft: bool
    published_at: datetime | None = None
    created_at: datetime
