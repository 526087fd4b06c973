"""Role-based permissions.

Hierarchical roles:
- ADMIN (level 2): staff, signs in through the admin login
- MODERATOR (level 1): may retract other people's comments
- USER (level 0): regular community member
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles, higher level = more permissions."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.USER: 0,
    UserRole.MODERATOR: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Permission level for a role, 0 for unknown roles."""
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.MODERATOR)
        True
        >>> has_permission("user", "moderator")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def is_moderator(role: UserRole | str) -> bool:
    """Check if role is MODERATOR or higher."""
    return has_permission(role, UserRole.MODERATOR)
