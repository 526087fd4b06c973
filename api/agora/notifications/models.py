"""Database models for notifications.

Cassandra table definitions for:
- Activities: feed events per reader, newest first
- Activities by comment: lets a retracted comment take its events with it

Activity actions:
- COMMENT: someone commented on a post the reader follows
- MENTION: the reader was @mentioned in a comment
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid1

from agora.utils import ensure_utc_aware, utcnow


if TYPE_CHECKING:
    from agora.comments.models import Comment


COMMENT_NOTIFICATION_JOB = "comment.send_notification_email"


class ActivityAction(str, Enum):
    COMMENT = "comment"
    MENTION = "mention"


class NotificationVersion(str, Enum):
    """Flavor of the comment notification email."""

    DEFAULT = "default"
    MENTION = "mention"

    @classmethod
    def for_action(cls, action: ActivityAction) -> "NotificationVersion":
        return cls.MENTION if action == ActivityAction.MENTION else cls.DEFAULT


ACTIVITY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.activities (
    reader_id UUID,
    activity_id TIMEUUID,
    actor_id UUID,
    post_id UUID,
    comment_id TIMEUUID,
    action TEXT,
    unread BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY ((reader_id), activity_id)
) WITH CLUSTERING ORDER BY (activity_id DESC)
"""

ACTIVITY_BY_COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.activities_by_comment (
    comment_id TIMEUUID,
    reader_id UUID,
    activity_id TIMEUUID,
    PRIMARY KEY ((comment_id), reader_id, activity_id)
)
"""

NOTIFICATIONS_TABLES_CQL = [
    ACTIVITY_TABLE_CQL,
    ACTIVITY_BY_COMMENT_TABLE_CQL,
]


class Activity:
    """A feed event for one reader."""

    def __init__(
        self,
        reader_id: UUID,
        actor_id: UUID,
        action: str,
        post_id: UUID | None = None,
        comment_id: UUID | None = None,
        unread: bool = True,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid1()
        self.reader_id = reader_id
        self.actor_id = actor_id
        self.action = action
        self.post_id = post_id
        self.comment_id = comment_id
        self.unread = unread
        self.created_at = ensure_utc_aware(created_at) or utcnow()

    @classmethod
    def for_comment(
        cls, comment: "Comment", reader_id: UUID, action: ActivityAction
    ) -> "Activity":
        """Activity telling ``reader_id`` about ``comment``."""
        return cls(
            reader_id=reader_id,
            actor_id=comment.user_id,
            action=action.value,
            post_id=comment.post_id,
            comment_id=comment.id,
        )

    @classmethod
    def from_row(cls, row: Any) -> "Activity":
        return cls(
            id=row.activity_id,
            reader_id=row.reader_id,
            actor_id=row.actor_id,
            action=row.action,
            post_id=row.post_id,
            comment_id=row.comment_id,
            unread=row.unread if row.unread is not None else True,
            created_at=row.created_at,
        )
