"""Database models for comments.

Cassandra table definitions for:
- Comments: partitioned by post, ordered by time-based id (oldest first)
- Comments by id: lookup of a comment's post
- Thanks: one row per (comment, user), mirrored per user
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid1

from agora.utils import ensure_utc_aware, utcnow


COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    post_id UUID,
    comment_id TIMEUUID,
    user_id UUID,
    comment_text TEXT,
    date_commented TIMESTAMP,
    active BOOLEAN,
    deactivated_by_id UUID,
    deactivated_on TIMESTAMP,
    PRIMARY KEY ((post_id), comment_id)
) WITH CLUSTERING ORDER BY (comment_id ASC)
"""

COMMENT_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_id (
    comment_id TIMEUUID PRIMARY KEY,
    post_id UUID
)
"""

# The primary keys make a second thank by the same user an overwrite
COMMENT_THANKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_thanks (
    comment_id TIMEUUID,
    thanked_by_id UUID,
    date_thanked TIMESTAMP,
    PRIMARY KEY ((comment_id), thanked_by_id)
)
"""

USER_COMMENT_THANKS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_comment_thanks (
    thanked_by_id UUID,
    comment_id TIMEUUID,
    date_thanked TIMESTAMP,
    PRIMARY KEY ((thanked_by_id), comment_id)
)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENT_BY_ID_TABLE_CQL,
    COMMENT_THANKS_TABLE_CQL,
    USER_COMMENT_THANKS_TABLE_CQL,
]


class Comment:
    """Comment entity.

    Attributes:
        id: Time-based identifier, so ids sort in creation order
        post_id: Post the comment belongs to
        user_id: Author
        text: Sanitized comment text
        date_commented: Creation timestamp
        active: False once retracted
        deactivated_by_id: Who retracted it
        deactivated_on: When it was retracted
    """

    def __init__(
        self,
        post_id: UUID,
        user_id: UUID,
        text: str,
        id: UUID | None = None,
        date_commented: datetime | None = None,
        active: bool = True,
        deactivated_by_id: UUID | None = None,
        deactivated_on: datetime | None = None,
    ):
        self.id = id or uuid1()
        self.post_id = post_id
        self.user_id = user_id
        self.text = text
        self.date_commented = ensure_utc_aware(date_commented) or utcnow()
        self.active = active
        self.deactivated_by_id = deactivated_by_id
        self.deactivated_on = ensure_utc_aware(deactivated_on)

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        return cls(
            id=row.comment_id,
            post_id=row.post_id,
            user_id=row.user_id,
            text=row.comment_text or "",
            date_commented=row.date_commented,
            active=row.active if row.active is not None else True,
            deactivated_by_id=row.deactivated_by_id,
            deactivated_on=row.deactivated_on,
        )

    def deactivate(self, by_user_id: UUID) -> None:
        self.active = False
        self.deactivated_by_id = by_user_id
        self.deactivated_on = utcnow()

    def __repr__(self) -> str:
        return f"<Comment {self.id} on {self.post_id}>"


class Thank:
    """A user's thank on a comment."""

    def __init__(
        self,
        comment_id: UUID,
        thanked_by_id: UUID,
        date_thanked: datetime | None = None,
    ):
        self.comment_id = comment_id
        self.thanked_by_id = thanked_by_id
        self.date_thanked = ensure_utc_aware(date_thanked) or utcnow()

    @classmethod
    def from_row(cls, row: Any) -> "Thank":
        return cls(
            comment_id=row.comment_id,
            thanked_by_id=row.thanked_by_id,
            date_thanked=row.date_thanked,
        )
