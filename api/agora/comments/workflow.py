"""Comment workflows.

Each public method is one operation that owns its transaction:

- ``create_comment``: store the comment, refresh the post's counters, notify
  mentioned users and followers, and make the commenter and the mentioned
  users followers, all in one batch
- ``create_from_email``: same, for a reply sent to a reply address
- ``toggle_thank``: thank or un-thank a comment
- ``deactivate``: retract a comment and its activities
- ``list_for_post``: listing projection with the requester's thanks
"""

from typing import TYPE_CHECKING
from uuid import UUID

from agora.auth.permissions import is_moderator
from agora.comments.models import Comment, Thank
from agora.comments.schemas import CommentAuthor, CommentResponse
from agora.comments.service import CommentService, sanitize_content
from agora.core.database import Database, Transaction, gather_all
from agora.core.logging import get_logger
from agora.email.reply_address import InvalidReplyAddressError, ReplyAddressCodec
from agora.notifications.models import ActivityAction
from agora.notifications.service import NotificationService, extract_mentions
from agora.posts.models import Post
from agora.posts.service import PostService


if TYPE_CHECKING:
    from agora.analytics.service import AnalyticsService
    from agora.auth.models import User
    from agora.auth.schemas import CurrentUserClaims
    from agora.auth.service import UserService


logger = get_logger(__name__)

EMAIL_COMMENT_EVENT = "Post: Comment: Add by Email"


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CommentNotFoundError(CommentError):
    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class PostNotFoundError(CommentError):
    def __init__(self, message: str = "Post not found"):
        super().__init__(message, "post_not_found")


class CommenterNotFoundError(CommentError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


class CommentPermissionError(CommentError):
    def __init__(self, message: str = "Not allowed to remove this comment"):
        super().__init__(message, "permission_denied")


class EmptyCommentError(CommentError):
    def __init__(self, message: str = "Comment text must not be blank"):
        super().__init__(message, "empty_comment")


# ==============================================================================
# Workflow
# ==============================================================================


class CommentWorkflow:
    """Comment operations spanning several services."""

    def __init__(
        self,
        db: Database,
        comments: CommentService,
        posts: PostService,
        users: "UserService",
        notifications: NotificationService,
        analytics: "AnalyticsService",
        reply_codec: ReplyAddressCodec,
    ):
        self.db = db
        self.comments = comments
        self.posts = posts
        self.users = users
        self.notifications = notifications
        self.analytics = analytics
        self.reply_codec = reply_codec

    # ==========================================================================
    # Creation
    # ==========================================================================

    async def resolve_mentions(self, text: str, commenter_id: UUID) -> list[UUID]:
        """Distinct users @mentioned in ``text`` (already sanitized).

        Names that match no user are ignored, and so is the commenter.
        """
        names = extract_mentions(text)
        if not names:
            return []
        users = await self.users.get_users_by_names(names)
        mentioned = dict.fromkeys(u.id for u in users if u.id != commenter_id)
        return list(mentioned)

    async def create_comment(
        self, commenter_id: UUID, text: str, post: Post
    ) -> Comment:
        """Create a comment and fan out its notifications.

        Nothing is written unless every step succeeds. Notification counters
        and email jobs are dispatched only once the batch is committed.

        Raises:
            EmptyCommentError: Nothing left after sanitizing
        """
        text = sanitize_content(text)
        if not text:
            raise EmptyCommentError

        comment = Comment(post_id=post.id, user_id=commenter_id, text=text)

        async with self.db.transaction() as trx:
            self.comments.insert(trx, comment)

            active_count, existing, mentioned = await gather_all(
                self.comments.count_active(post.id),
                self.posts.get_follower_ids(post.id),
                self.resolve_mentions(text, commenter_id),
            )
            self.posts.set_comment_stats(
                trx, post, active_count + 1, comment.date_commented
            )

            # A follower who is also mentioned only hears about the mention
            mentioned_ids = set(mentioned)
            followers = [
                user_id
                for user_id in dict.fromkeys(existing)
                if user_id != commenter_id and user_id not in mentioned_ids
            ]
            existing_ids = set(existing)
            new_followers = [
                user_id
                for user_id in dict.fromkeys([*mentioned, commenter_id])
                if user_id not in existing_ids
            ]

            await gather_all(
                *(
                    self.notifications.notify_comment(
                        trx, comment, user_id, ActivityAction.MENTION
                    )
                    for user_id in mentioned
                ),
                *(
                    self.notifications.notify_comment(
                        trx, comment, user_id, ActivityAction.COMMENT
                    )
                    for user_id in followers
                ),
            )
            if new_followers:
                self.posts.add_followers(trx, post.id, new_followers, commenter_id)
            self.recount_after_commit(trx, post)

        logger.info(
            "comment_created",
            comment_id=str(comment.id),
            post_id=str(post.id),
            mentioned=len(mentioned),
            followers_notified=len(followers),
        )
        return comment

    def recount_after_commit(self, trx: Transaction, post: Post) -> None:
        """Rewrite the post's comment count from the stored comments.

        The in-batch count is read before the commit and can be stale when
        comments on the post are written concurrently.
        """

        async def recount() -> None:
            count = await self.comments.count_active(post.id)
            await self.posts.store_comment_count(post, count)

        trx.after_commit("post_comment_recount", recount)

    async def create_from_email(self, to_address: str, text: str) -> Comment:
        """Create a comment from an email sent to a reply address.

        Raises:
            InvalidReplyAddressError: The address cannot be decoded
            PostNotFoundError: The post no longer exists
            CommenterNotFoundError: The user no longer exists
        """
        try:
            reply = self.reply_codec.decode(to_address)
            post_id, user_id = UUID(reply.post_id), UUID(reply.user_id)
        except InvalidReplyAddressError as e:
            logger.warning("reply_address_invalid", reason=e.reason)
            raise
        except ValueError as e:
            logger.warning("reply_address_invalid", reason="ids are not UUIDs")
            raise InvalidReplyAddressError(to_address, "ids are not UUIDs") from e

        post, user = await gather_all(
            self.posts.get_post(post_id),
            self.users.get_user(user_id),
        )
        if post is None:
            raise PostNotFoundError
        if user is None or not user.is_active:
            raise CommenterNotFoundError

        await self.analytics.track(
            user.id, EMAIL_COMMENT_EVENT, {"post_id": str(post.id)}
        )
        return await self.create_comment(user.id, text, post)

    # ==========================================================================
    # Thanks and retraction
    # ==========================================================================

    async def get_comment(self, comment_id: UUID) -> Comment:
        comment = await self.comments.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError
        return comment

    async def toggle_thank(self, comment: Comment, user_id: UUID) -> bool:
        """Thank the comment, or take an existing thank back.

        Returns:
            True when the comment is thanked afterwards
        """
        thank = await self.comments.get_thank(comment.id, user_id)

        async with self.db.transaction() as trx:
            if thank is not None:
                self.comments.remove_thank(trx, thank)
            else:
                self.comments.add_thank(trx, Thank(comment.id, user_id))

        thanked = thank is None
        logger.info(
            "comment_thank_toggled",
            comment_id=str(comment.id),
            thanked=thanked,
        )
        return thanked

    async def deactivate(
        self, comment: Comment, user: "CurrentUserClaims"
    ) -> Comment:
        """Retract a comment.

        The comment author, the post author and moderators may retract.
        Retracting an inactive comment changes nothing.

        Raises:
            CommentPermissionError: Anyone else
        """
        post = await self.posts.get_post(comment.post_id)
        allowed = (
            user.id == comment.user_id
            or (post is not None and user.id == post.user_id)
            or is_moderator(user.role)
        )
        if not allowed:
            raise CommentPermissionError

        if not comment.active:
            return comment

        async with self.db.transaction() as trx:
            await self.notifications.delete_for_comment(trx, comment.id)
            self.comments.deactivate(trx, comment, user.id)
            if post is not None:
                self.posts.decrement_comment_count(trx, post)
                self.recount_after_commit(trx, post)

        logger.info(
            "comment_deactivated",
            comment_id=str(comment.id),
            post_id=str(comment.post_id),
        )
        return comment

    # ==========================================================================
    # Listing
    # ==========================================================================

    async def list_for_post(
        self, post: Post, viewer_id: UUID | None
    ) -> list[CommentResponse]:
        """Active comments, oldest first, with the viewer's thanks."""
        comments = await self.comments.list_active_for_post(post.id)
        ids = [comment.id for comment in comments]

        authors, thanked = await gather_all(
            self.users.get_users([comment.user_id for comment in comments]),
            self.comments.thanked_comment_ids(viewer_id, ids)
            if viewer_id
            else _no_thanks(),
        )
        return [
            self.to_response(
                comment, authors.get(comment.user_id), comment.id in thanked
            )
            for comment in comments
        ]

    async def to_new_comment_response(self, comment: Comment) -> CommentResponse:
        author = await self.users.get_user(comment.user_id)
        return self.to_response(comment, author, is_thanked=False)

    def to_response(
        self, comment: Comment, author: "User | None", is_thanked: bool
    ) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            text=comment.text,
            created_at=comment.date_commented,
            user=CommentAuthor(
                id=author.id, name=author.name, avatar_url=author.avatar_url
            )
            if author
            else None,
            is_thanked=is_thanked,
        )


async def _no_thanks() -> set[UUID]:
    return set()
