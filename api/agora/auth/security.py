"""Security utilities for authentication.

Provides:
- JWT access token creation and validation
- OAuth ``state`` generation and timing-safe comparison
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt


if TYPE_CHECKING:
    from agora.config.settings import Settings


def create_access_token(
    data: dict[str, Any],
    settings: "Settings",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data (typically {"sub": user_id, "email": email, "role": role})
        settings: Application settings holding the signing key
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT string

    Token payload includes:
        - All provided data
        - exp: Expiration timestamp
        - iat: Issued at timestamp
        - type: "access" (for validation)
    """
    now = datetime.now(UTC)
    to_encode = data.copy()
    expire = now + (
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes)
    )

    to_encode.update({"exp": expire, "iat": now, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def decode_access_token(token: str, settings: "Settings") -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != "access":
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    if "sub" not in payload:
        msg = "Access token missing sub claim"
        raise JWTError(msg)

    return payload


def generate_oauth_state() -> str:
    """Random value tying an OAuth callback to the browser that started it."""
    return secrets.token_urlsafe(32)


def states_match(expected: str | None, received: str | None) -> bool:
    """Timing-safe comparison of the cookie state and the callback state."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected, received)
