"""Notification service.

Handles:
- Parsing @mentions from comment text
- Writing activities (feed events) inside the caller's transaction
- Unseen-notification counters and notification email jobs, dispatched
  once the transaction has committed
"""

import re
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from agora.core.database import Transaction
from agora.notifications.models import (
    COMMENT_NOTIFICATION_JOB,
    Activity,
    ActivityAction,
    NotificationVersion,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from agora.auth.service import UserService
    from agora.comments.models import Comment
    from agora.core.queue import JobQueue


logger = structlog.get_logger(__name__)


# Pattern for @mentions (supports spaces with quotes: @"User Name" or @Username).
# Unquoted names stop at whitespace and trailing punctuation. An @ preceded by a
# word character (as in an email address) is not a mention.
MENTION_PATTERN = re.compile(
    r'(?<!\w)@(?:"([^"<>]+)"|(\w(?:[\w.\-]*\w)?))', re.UNICODE
)


def extract_mentions(content: str) -> list[str]:
    """Extract distinct @mentioned names from content, in order of appearance.

    Supports:
    - @username (single word)
    - @"User Name" (quoted for names with spaces)
    """
    mentions: dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(content):
        # Group 1 is quoted name, group 2 is unquoted
        name = (match.group(1) or match.group(2) or "").strip()
        if name:
            mentions[name] = None
    return list(mentions)


class NotificationService:
    """Activities and the side effects that tell users about them."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        users: "UserService",
        queue: "JobQueue",
    ):
        self.session = session
        self.keyspace = keyspace
        self.users = users
        self.queue = queue
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._insert_activity = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.activities
            (reader_id, activity_id, actor_id, post_id, comment_id, action,
             unread, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_activity_by_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.activities_by_comment
            (comment_id, reader_id, activity_id)
            VALUES (?, ?, ?)
        """)
        self._get_activities_by_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.activities_by_comment
            WHERE comment_id = ?
        """)
        self._delete_activity = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.activities
            WHERE reader_id = ? AND activity_id = ?
        """)
        self._delete_activities_by_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.activities_by_comment
            WHERE comment_id = ?
        """)

    def add_activity(self, trx: Transaction, activity: Activity) -> Activity:
        """Queue the activity rows."""
        trx.add(
            self._insert_activity,
            [
                activity.reader_id,
                activity.id,
                activity.actor_id,
                activity.post_id,
                activity.comment_id,
                activity.action,
                activity.unread,
                activity.created_at,
            ],
        )
        if activity.comment_id is not None:
            trx.add(
                self._insert_activity_by_comment,
                [activity.comment_id, activity.reader_id, activity.id],
            )
        return activity

    async def notify_comment(
        self,
        trx: Transaction,
        comment: "Comment",
        reader_id: UUID,
        action: ActivityAction,
    ) -> Activity:
        """Tell ``reader_id`` about ``comment``.

        The activity is written with the transaction; the counter increment
        and the notification email job only go out after it commits.
        """
        activity = self.add_activity(
            trx, Activity.for_comment(comment, reader_id, action)
        )
        version = NotificationVersion.for_action(action)

        trx.after_commit(
            "increment_new_notification_count",
            lambda: self.users.increment_new_notification_count(reader_id),
        )
        trx.after_commit(
            "enqueue_comment_notification_email",
            lambda: self.queue.add_job(
                COMMENT_NOTIFICATION_JOB,
                {
                    "recipient_id": str(reader_id),
                    "comment_id": str(comment.id),
                    "version": version.value,
                },
            ),
        )
        return activity

    async def delete_for_comment(self, trx: Transaction, comment_id: UUID) -> int:
        """Queue removal of every activity referencing the comment.

        Returns:
            Number of activities removed
        """
        rows = list(
            await self.session.aexecute(self._get_activities_by_comment, [comment_id])
        )
        for row in rows:
            trx.add(self._delete_activity, [row.reader_id, row.activity_id])
        trx.add(self._delete_activities_by_comment, [comment_id])

        logger.debug(
            "comment_activities_removed",
            comment_id=str(comment_id),
            count=len(rows),
        )
        return len(rows)
