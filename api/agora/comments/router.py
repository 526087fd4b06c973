"""Comment API endpoints.

Provides routes for:
- Listing and creating comments on a post
- Comments sent by email reply (inbound mail webhook)
- Thank toggle
- Retraction
"""

from typing import Annotated

from fastapi import APIRouter, Form

from agora.auth.dependencies import CurrentUser
from agora.comments.dependencies import (
    AllowedComment,
    CommentWorkflowDep,
    handle_comment_error,
)
from agora.comments.schemas import (
    CommentResponse,
    CreateCommentRequest,
    MessageResponse,
    ThankResponse,
)
from agora.comments.workflow import CommentError
from agora.core.logging import get_logger
from agora.email.reply_address import ReplyAddressError
from agora.posts.dependencies import AllowedPost


logger = get_logger(__name__)


router = APIRouter(prefix="/noo", tags=["comments"])


@router.get(
    "/post/{post_id}/comments",
    response_model=list[CommentResponse],
    summary="List comments",
)
async def list_comments(
    post: AllowedPost,
    user: CurrentUser,
    workflow: CommentWorkflowDep,
) -> list[CommentResponse]:
    """Active comments on the post, oldest first."""
    return await workflow.list_for_post(post, user.id)


@router.post(
    "/post/{post_id}/comment",
    response_model=CommentResponse,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    post: AllowedPost,
    user: CurrentUser,
    workflow: CommentWorkflowDep,
) -> CommentResponse:
    """Comment on the post and notify followers and mentioned users."""
    try:
        comment = await workflow.create_comment(user.id, data.text, post)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return await workflow.to_new_comment_response(comment)


@router.post(
    "/comment/email",
    response_model=MessageResponse,
    summary="Create comment from email reply",
)
async def create_comment_from_email(
    to: Annotated[str, Form(alias="To")],
    text: Annotated[str, Form(alias="stripped-text")],
    workflow: CommentWorkflowDep,
) -> MessageResponse:
    """Inbound mail webhook: ``To`` is the reply address."""
    try:
        await workflow.create_from_email(to, text)
    except (CommentError, ReplyAddressError) as e:
        logger.info("email_comment_rejected", reason=e.code)
        raise handle_comment_error(e) from e
    return MessageResponse(message="Comment created")


@router.post(
    "/comment/{comment_id}/thank",
    response_model=ThankResponse,
    summary="Toggle thank",
)
async def thank_comment(
    comment: AllowedComment,
    user: CurrentUser,
    workflow: CommentWorkflowDep,
) -> ThankResponse:
    """Thank the comment, or take the thank back."""
    thanked = await workflow.toggle_thank(comment, user.id)
    return ThankResponse(thanked=thanked)


@router.delete(
    "/comment/{comment_id}",
    response_model=MessageResponse,
    summary="Retract comment",
)
async def delete_comment(
    comment: AllowedComment,
    user: CurrentUser,
    workflow: CommentWorkflowDep,
) -> MessageResponse:
    """Soft delete: the comment stays stored but inactive."""
    try:
        await workflow.deactivate(comment, user)
    except CommentError as e:
        raise handle_comment_error(e) from e
    return MessageResponse(message="Comment removed")
