"""Pydantic schemas for authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agora.auth.permissions import UserRole


class UserResponse(BaseModel):
    """User data as seen by API clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    avatar_url: str | None = None
    role: UserRole
    is_active: bool = True
    created_at: datetime | None = None


class CurrentUserClaims(BaseModel):
    """Identity extracted from a validated access token."""

    id: UUID
    email: str
    role: UserRole = UserRole.USER


class TokenResponse(BaseModel):
    """Access token issued after a successful OAuth login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
