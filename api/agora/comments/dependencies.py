"""FastAPI dependencies for comments.

Provides dependency injection for:
- Comment workflow
- Loading a comment under the post access policy
- Error handlers
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from agora.auth.dependencies import CurrentUser
from agora.comments.models import Comment
from agora.comments.workflow import CommentError, CommentWorkflow
from agora.communities.dependencies import CommunityServiceDep
from agora.core.dependencies import get_state_service
from agora.core.policy import PolicyError, ResourceNotFoundError, handle_policy_error
from agora.email.reply_address import ReplyAddressError
from agora.posts.service import check_post_access


async def get_comment_workflow(request: Request) -> CommentWorkflow:
    return get_state_service(request, "comment_workflow", "Comment service")


CommentWorkflowDep = Annotated[CommentWorkflow, Depends(get_comment_workflow)]


def handle_comment_error(error: CommentError | ReplyAddressError) -> HTTPException:
    """Convert comment errors to HTTP exceptions."""
    status_map = {
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "post_not_found": status.HTTP_404_NOT_FOUND,
        "user_not_found": status.HTTP_404_NOT_FOUND,
        "permission_denied": status.HTTP_403_FORBIDDEN,
        "empty_comment": status.HTTP_400_BAD_REQUEST,
        "invalid_reply_address": status.HTTP_400_BAD_REQUEST,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )


async def check_and_set_comment(
    comment_id: UUID,
    user: CurrentUser,
    workflow: CommentWorkflowDep,
    communities: CommunityServiceDep,
) -> Comment:
    """Load a comment, requiring access to the post it belongs to."""
    try:
        comment = await workflow.get_comment(comment_id)
        post = await workflow.posts.get_post(comment.post_id)
        if post is None:
            raise ResourceNotFoundError("Post not found")
        await check_post_access(post, user.id, communities)
    except CommentError as e:
        raise handle_comment_error(e) from e
    except PolicyError as e:
        raise handle_policy_error(e) from e
    return comment


AllowedComment = Annotated[Comment, Depends(check_and_set_comment)]
