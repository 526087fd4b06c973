"""FastAPI dependencies for posts.

Provides dependency injection for:
- Post service
- The ``check_and_set_post`` access policy
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request

from agora.auth.dependencies import CurrentUser
from agora.communities.dependencies import CommunityServiceDep
from agora.core.dependencies import get_state_service
from agora.core.policy import PolicyError, ResourceNotFoundError, handle_policy_error
from agora.posts.models import Post
from agora.posts.service import PostService, check_post_access


async def get_post_service(request: Request) -> PostService:
    return get_state_service(request, "post_service", "Post service")


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


async def check_and_set_post(
    post_id: UUID,
    user: CurrentUser,
    posts: PostServiceDep,
    communities: CommunityServiceDep,
) -> Post:
    """Load the post and enforce the post access policy.

    Raises:
        HTTPException(404): Unknown post
        HTTPException(403): Not allowed to see the post
    """
    try:
        post = await posts.get_post(post_id)
        if post is None:
            raise ResourceNotFoundError("Post not found")
        return await check_post_access(post, user.id, communities)
    except PolicyError as e:
        raise handle_policy_error(e) from e


AllowedPost = Annotated[Post, Depends(check_and_set_post)]
