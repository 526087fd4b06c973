"""Database models for posts.

Cassandra table definitions for:
- Posts: with the denormalized comment count and last activity time
- Post followers: users notified about activity on a post
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from agora.communities.models import Visibility
from agora.utils import ensure_utc_aware, utcnow


POST_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.posts (
    post_id UUID PRIMARY KEY,
    user_id UUID,
    name TEXT,
    community_id UUID,
    visibility TEXT,
    num_comments INT,
    last_updated TIMESTAMP,
    created_at TIMESTAMP
)
"""

POST_FOLLOWERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.post_followers (
    post_id UUID,
    user_id UUID,
    added_by_id UUID,
    date_added TIMESTAMP,
    PRIMARY KEY ((post_id), user_id)
)
"""

POSTS_TABLES_CQL = [
    POST_TABLE_CQL,
    POST_FOLLOWERS_TABLE_CQL,
]


class Post:
    """Post entity.

    Attributes:
        id: Post identifier
        user_id: Author
        name: Title
        community_id: Community the post was shared in
        visibility: ``public`` or ``community``
        num_comments: Number of active comments
        last_updated: Time of the latest activity
        created_at: Creation timestamp
    """

    def __init__(
        self,
        user_id: UUID,
        name: str = "",
        community_id: UUID | None = None,
        visibility: str = Visibility.COMMUNITY.value,
        num_comments: int = 0,
        last_updated: datetime | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.name = name
        self.community_id = community_id
        self.visibility = visibility
        self.num_comments = num_comments
        self.created_at = ensure_utc_aware(created_at) or utcnow()
        self.last_updated = ensure_utc_aware(last_updated) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "Post":
        return cls(
            id=row.post_id,
            user_id=row.user_id,
            name=row.name or "",
            community_id=row.community_id,
            visibility=row.visibility or Visibility.COMMUNITY.value,
            num_comments=row.num_comments or 0,
            last_updated=row.last_updated,
            created_at=row.created_at,
        )

    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC.value


class Follower:
    """A user following a post."""

    def __init__(
        self,
        post_id: UUID,
        user_id: UUID,
        added_by_id: UUID | None = None,
        date_added: datetime | None = None,
    ):
        self.post_id = post_id
        self.user_id = user_id
        self.added_by_id = added_by_id
        self.date_added = ensure_utc_aware(date_added) or utcnow()

    @classmethod
    def from_row(cls, row: Any) -> "Follower":
        return cls(
            post_id=row.post_id,
            user_id=row.user_id,
            added_by_id=row.added_by_id,
            date_added=row.date_added,
        )
