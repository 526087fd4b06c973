"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from JWT
- User service and OAuth client
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from agora.auth.oauth import OAuthClient
from agora.auth.permissions import UserRole
from agora.auth.schemas import CurrentUserClaims
from agora.auth.security import decode_access_token
from agora.auth.service import UserService
from agora.core.context import set_user_id
from agora.core.dependencies import SettingsDep, get_state_service


async def get_user_service(request: Request) -> UserService:
    return get_state_service(request, "user_service", "User service")


async def get_oauth_client(request: Request) -> OAuthClient:
    return get_state_service(request, "oauth_client", "Login")


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
OAuthClientDep = Annotated[OAuthClient, Depends(get_oauth_client)]


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _claims_from_token(token: str, settings: SettingsDep) -> CurrentUserClaims:
    payload = decode_access_token(token, settings)
    user_id = payload["sub"]

    # Set user_id in context for logging
    set_user_id(user_id)

    return CurrentUserClaims(
        id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", UserRole.USER.value),
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
    settings: SettingsDep,
) -> CurrentUserClaims:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return _claims_from_token(token, settings)
    except (JWTError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
    settings: SettingsDep,
) -> CurrentUserClaims | None:
    """Get current user if authenticated, None otherwise."""
    if not token:
        return None

    try:
        return _claims_from_token(token, settings)
    except (JWTError, ValueError):
        return None


CurrentUser = Annotated[CurrentUserClaims, Depends(get_current_user)]
OptionalUser = Annotated[CurrentUserClaims | None, Depends(get_current_user_optional)]
