"""Post service layer.

Business logic for:
- Post lookups and the post access policy
- Followers
- The denormalized comment count
"""

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from agora.communities.service import CommunityService
from agora.core.database import Transaction
from agora.core.policy import PolicyForbiddenError
from agora.posts.models import Follower, Post
from agora.utils import utcnow


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

POLICY_NAME = "check_and_set_post"


class PostService:
    """Posts, followers and comment counters."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_post = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.posts WHERE post_id = ?"
        )
        self._get_followers = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.post_followers WHERE post_id = ?"
        )
        self._insert_follower = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.post_followers
            (post_id, user_id, added_by_id, date_added)
            VALUES (?, ?, ?, ?)
        """)
        self._update_comment_stats = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET num_comments = ?, last_updated = ?
            WHERE post_id = ?
        """)
        self._update_comment_count = self.session.prepare(f"""
            UPDATE {self.keyspace}.posts
            SET num_comments = ?
            WHERE post_id = ?
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_post(self, post_id: UUID) -> Post | None:
        result = await self.session.aexecute(self._get_post, [post_id])
        row = result.one()
        return Post.from_row(row) if row else None

    async def get_followers(self, post_id: UUID) -> list[Follower]:
        rows = await self.session.aexecute(self._get_followers, [post_id])
        return [Follower.from_row(row) for row in rows]

    async def get_follower_ids(self, post_id: UUID) -> list[UUID]:
        return [f.user_id for f in await self.get_followers(post_id)]

    # ==========================================================================
    # Writes
    # ==========================================================================

    def add_followers(
        self,
        trx: Transaction,
        post_id: UUID,
        user_ids: Iterable[UUID],
        added_by_id: UUID,
    ) -> list[Follower]:
        """Queue follower rows for ``user_ids`` (duplicates collapsed)."""
        followers = [
            Follower(post_id=post_id, user_id=user_id, added_by_id=added_by_id)
            for user_id in dict.fromkeys(user_ids)
        ]
        for follower in followers:
            trx.add(
                self._insert_follower,
                [
                    follower.post_id,
                    follower.user_id,
                    follower.added_by_id,
                    follower.date_added,
                ],
            )
        return followers

    def set_comment_stats(
        self,
        trx: Transaction,
        post: Post,
        num_comments: int,
        last_updated: datetime | None = None,
    ) -> Post:
        """Queue the new comment count and activity time."""
        post.num_comments = num_comments
        post.last_updated = last_updated or utcnow()
        trx.add(self._update_comment_stats, [num_comments, post.last_updated, post.id])
        return post

    def decrement_comment_count(self, trx: Transaction, post: Post) -> Post:
        """Queue ``num_comments - 1`` (never below zero)."""
        post.num_comments = max(0, post.num_comments - 1)
        trx.add(self._update_comment_count, [post.num_comments, post.id])
        return post

    async def store_comment_count(self, post: Post, num_comments: int) -> Post:
        """Write the comment count right away, outside any transaction."""
        post.num_comments = num_comments
        await self.session.aexecute(
            self._update_comment_count, [num_comments, post.id]
        )
        return post


async def check_post_access(
    post: Post,
    user_id: UUID | None,
    communities: CommunityService,
) -> Post:
    """Decide whether ``user_id`` may read and comment on ``post``.

    The author passes, public posts pass, anything else requires membership
    of the post's community.

    Raises:
        PolicyForbiddenError: Not in the post's community
    """
    if user_id is not None and user_id == post.user_id:
        return post

    if post.is_public():
        return post

    membership = (
        await communities.get_membership(user_id, post.community_id)
        if user_id
        else None
    )
    if membership is None:
        raise PolicyForbiddenError(POLICY_NAME, "not in community")
    return post
