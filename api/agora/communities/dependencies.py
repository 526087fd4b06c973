"""FastAPI dependencies for communities."""

from typing import Annotated

from fastapi import Depends, Request

from agora.communities.service import CommunityService
from agora.core.dependencies import get_state_service


async def get_community_service(request: Request) -> CommunityService:
    return get_state_service(request, "community_service", "Community service")


CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]
