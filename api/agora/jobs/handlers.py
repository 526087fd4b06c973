"""Job handlers.

Each handler receives the job payload and the process-wide ``Services``.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from agora.core.logging import get_logger
from agora.email.schemas import EmailSender
from agora.notifications.models import NotificationVersion


if TYPE_CHECKING:
    from agora.services import Services


logger = get_logger(__name__)


async def send_comment_notification_email(
    payload: dict[str, Any], services: "Services"
) -> None:
    """Email a follower or mentioned user about a new comment.

    The email's reply-to is the recipient's reply address for the post, so
    answering the email comments on the post.
    """
    recipient_id = UUID(payload["recipient_id"])
    comment_id = UUID(payload["comment_id"])
    version = NotificationVersion(payload.get("version", "default"))

    recipient = await services.user_service.get_user(recipient_id)
    comment = await services.comment_service.get_comment(comment_id)
    if recipient is None or comment is None or not comment.active:
        logger.info(
            "comment_notification_skipped",
            comment_id=str(comment_id),
            reason="recipient or comment gone",
        )
        return

    post = await services.post_service.get_post(comment.post_id)
    commenter = await services.user_service.get_user(comment.user_id)
    if post is None or commenter is None:
        logger.info(
            "comment_notification_skipped",
            comment_id=str(comment_id),
            reason="post or commenter gone",
        )
        return

    settings = services.settings
    email = services.email_service
    sender = EmailSender(
        name=f"{commenter.name} (via {settings.email_sender_name})",
        reply_to=services.reply_codec.encode(post.id, recipient.id),
    )
    data = {
        "commenter_name": commenter.name,
        "commenter_avatar_url": commenter.avatar_url,
        "comment_text": comment.text,
        "post_title": post.name,
        "post_url": f"{settings.base_url}/p/{post.id}",
        "unfollow_url": f"{settings.base_url}/p/{post.id}/unfollow",
    }

    if version == NotificationVersion.MENTION:
        await email.send_post_mention_notification(
            recipient.email, data, sender=sender
        )
    else:
        await email.send_new_comment_notification(
            recipient.email, data, version=version.value, sender=sender
        )

    logger.info(
        "comment_notification_sent",
        comment_id=str(comment_id),
        version=version.value,
    )
