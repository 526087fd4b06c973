"""Comment storage.

Handles:
- Sanitizing comment text
- Comment reads and writes
- Thanks
"""

import html
from typing import TYPE_CHECKING
from uuid import UUID

from agora.comments.models import Comment, Thank
from agora.core.database import Transaction


if TYPE_CHECKING:
    from cassandra.cluster import Session


# Attribute-less formatting tags that survive sanitizing
ALLOWED_TAGS = (
    "b",
    "i",
    "em",
    "strong",
    "code",
    "pre",
    "p",
    "br",
    "ul",
    "ol",
    "li",
    "blockquote",
)


def sanitize_content(content: str) -> str:
    """Sanitize comment text to prevent XSS.

    - Escapes ``&``, ``<`` and ``>`` (quotes are kept, they carry
      ``@"Full Name"`` mentions)
    - Re-enables the allowed formatting tags, without attributes
    """
    escaped = html.escape(content.strip(), quote=False)

    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")
        escaped = escaped.replace(f"&lt;{tag}/&gt;", f"<{tag}/>")

    return escaped


class CommentService:
    """Comments and thanks tables."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments
            (post_id, comment_id, user_id, comment_text, date_commented, active,
             deactivated_by_id, deactivated_on)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_comment_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_id (comment_id, post_id)
            VALUES (?, ?)
        """)
        self._get_comment_post = self.session.prepare(
            f"SELECT post_id FROM {self.keyspace}.comments_by_id WHERE comment_id = ?"
        )
        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments
            WHERE post_id = ? AND comment_id = ?
        """)
        self._get_comments_by_post = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments
            WHERE post_id = ?
            ORDER BY comment_id ASC
        """)
        self._deactivate_comment = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments
            SET active = false, deactivated_by_id = ?, deactivated_on = ?
            WHERE post_id = ? AND comment_id = ?
        """)

        # Thanks
        self._get_thank = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comment_thanks
            WHERE comment_id = ? AND thanked_by_id = ?
        """)
        self._get_user_thanks = self.session.prepare(f"""
            SELECT comment_id FROM {self.keyspace}.user_comment_thanks
            WHERE thanked_by_id = ? AND comment_id IN ?
        """)
        self._insert_thank = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_thanks
            (comment_id, thanked_by_id, date_thanked)
            VALUES (?, ?, ?)
        """)
        self._insert_user_thank = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_comment_thanks
            (thanked_by_id, comment_id, date_thanked)
            VALUES (?, ?, ?)
        """)
        self._delete_thank = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comment_thanks
            WHERE comment_id = ? AND thanked_by_id = ?
        """)
        self._delete_user_thank = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.user_comment_thanks
            WHERE thanked_by_id = ? AND comment_id = ?
        """)

    # ==========================================================================
    # Comments
    # ==========================================================================

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        """Find a comment by id, whatever post it belongs to."""
        result = await self.session.aexecute(self._get_comment_post, [comment_id])
        ref = result.one()
        if not ref:
            return None

        result = await self.session.aexecute(
            self._get_comment, [ref.post_id, comment_id]
        )
        row = result.one()
        return Comment.from_row(row) if row else None

    async def list_active_for_post(self, post_id: UUID) -> list[Comment]:
        """Active comments on a post, oldest (lowest id) first."""
        rows = await self.session.aexecute(self._get_comments_by_post, [post_id])
        comments = (Comment.from_row(row) for row in rows)
        return [comment for comment in comments if comment.active]

    async def count_active(self, post_id: UUID) -> int:
        return len(await self.list_active_for_post(post_id))

    def insert(self, trx: Transaction, comment: Comment) -> Comment:
        """Queue a new comment."""
        trx.add(
            self._insert_comment,
            [
                comment.post_id,
                comment.id,
                comment.user_id,
                comment.text,
                comment.date_commented,
                comment.active,
                comment.deactivated_by_id,
                comment.deactivated_on,
            ],
        )
        trx.add(self._insert_comment_by_id, [comment.id, comment.post_id])
        return comment

    def deactivate(
        self, trx: Transaction, comment: Comment, by_user_id: UUID
    ) -> Comment:
        """Queue the soft delete. The row itself is kept."""
        comment.deactivate(by_user_id)
        trx.add(
            self._deactivate_comment,
            [
                comment.deactivated_by_id,
                comment.deactivated_on,
                comment.post_id,
                comment.id,
            ],
        )
        return comment

    # ==========================================================================
    # Thanks
    # ==========================================================================

    async def get_thank(self, comment_id: UUID, user_id: UUID) -> Thank | None:
        result = await self.session.aexecute(self._get_thank, [comment_id, user_id])
        row = result.one()
        return Thank.from_row(row) if row else None

    async def thanked_comment_ids(
        self, user_id: UUID, comment_ids: list[UUID]
    ) -> set[UUID]:
        """Which of ``comment_ids`` the user has thanked."""
        if not comment_ids:
            return set()
        rows = await self.session.aexecute(
            self._get_user_thanks, [user_id, list(comment_ids)]
        )
        return {row.comment_id for row in rows}

    def add_thank(self, trx: Transaction, thank: Thank) -> Thank:
        trx.add(
            self._insert_thank,
            [thank.comment_id, thank.thanked_by_id, thank.date_thanked],
        )
        trx.add(
            self._insert_user_thank,
            [thank.thanked_by_id, thank.comment_id, thank.date_thanked],
        )
        return thank

    def remove_thank(self, trx: Transaction, thank: Thank) -> None:
        trx.add(self._delete_thank, [thank.comment_id, thank.thanked_by_id])
        trx.add(self._delete_user_thank, [thank.thanked_by_id, thank.comment_id])
