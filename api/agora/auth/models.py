"""Database models for users.

Cassandra table definitions for:
- Users: profile rows with secondary indexes for email and name lookups
- User notification counts: counter of unseen notifications per user

Note: Uses cassandra-driver directly (not ORM) for flexibility.
Tables are created via CQL statements at startup.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from agora.auth.permissions import UserRole
from agora.utils import ensure_utc_aware, utcnow


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    avatar_url TEXT,
    role TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

# Mentions are resolved by exact display name
USER_NAME_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_name_idx ON {keyspace}.users (name)
"""

# Counter tables cannot share a batch with regular writes
USER_NOTIFICATION_COUNT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_notification_counts (
    user_id UUID PRIMARY KEY,
    new_notification_count COUNTER
)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
    USER_NAME_INDEX_CQL,
    USER_NOTIFICATION_COUNT_TABLE_CQL,
]


class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID)
        email: Lower-cased email address
        name: Display name, also the handle used in @mentions
        avatar_url: Profile picture URL
        role: User role (user, moderator, admin)
        is_active: Account status
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        email: str = "",
        name: str = "",
        avatar_url: str | None = None,
        role: str = UserRole.USER.value,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.email = email.lower().strip()
        self.name = name
        self.avatar_url = avatar_url
        self.role = role
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or utcnow()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email or "",
            name=row.name or "",
            avatar_url=row.avatar_url,
            role=row.role or UserRole.USER.value,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
