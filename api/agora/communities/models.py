"""Database models for communities.

Cassandra table definitions for:
- Community memberships: who belongs to which community
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from agora.utils import ensure_utc_aware, utcnow


class Visibility(str, Enum):
    """Who may see a post or a published project."""

    PUBLIC = "public"
    COMMUNITY = "community"


class MembershipRole(str, Enum):
    MEMBER = "member"
    MODERATOR = "moderator"


COMMUNITY_MEMBERSHIP_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.community_memberships (
    community_id UUID,
    user_id UUID,
    role TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY ((community_id), user_id)
)
"""

COMMUNITIES_TABLES_CQL = [
    COMMUNITY_MEMBERSHIP_TABLE_CQL,
]


class Membership:
    """A user's membership in a community."""

    def __init__(
        self,
        community_id: UUID,
        user_id: UUID,
        role: str = MembershipRole.MEMBER.value,
        created_at: datetime | None = None,
    ):
        self.community_id = community_id
        self.user_id = user_id
        self.role = role
        self.created_at = ensure_utc_aware(created_at) or utcnow()

    @classmethod
    def from_row(cls, row: Any) -> "Membership":
        return cls(
            community_id=row.community_id,
            user_id=row.user_id,
            role=row.role or MembershipRole.MEMBER.value,
            created_at=row.created_at,
        )

    @property
    def is_moderator(self) -> bool:
        return self.role == MembershipRole.MODERATOR.value
