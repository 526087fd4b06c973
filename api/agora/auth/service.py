"""User service layer.

Business logic for:
- User lookups (by id, email, display name)
- Creating users on first OAuth login
- Unseen-notification counters
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from agora.auth.models import User
from agora.auth.permissions import UserRole, get_role_level
from agora.auth.schemas import UserResponse
from agora.core.database import Transaction, gather_all
from agora.utils import utcnow


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from agora.auth.oauth import OAuthProfile


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(Exception):
    """Base authentication error."""

    def __init__(self, message: str, code: str = "auth_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UserInactiveError(AuthError):
    """User account is inactive."""

    def __init__(self, message: str = "Account is inactive"):
        super().__init__(message, "user_inactive")


class LoginFailedError(AuthError):
    """The identity provider did not authenticate the user."""

    def __init__(self, message: str = "Login failed"):
        super().__init__(message, "login_failed")


class AdminNotAuthorizedError(AuthError):
    """Authenticated, but not allowed to use the admin login."""

    def __init__(self, domain: str):
        super().__init__(f"Not a {domain} address.", "admin_not_authorized")
        self.domain = domain


# ==============================================================================
# User Service
# ==============================================================================


class UserService:
    """User lookups and notification counters."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_users_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id IN ?"
        )
        self._get_user_by_email = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE email = ?"
        )
        self._get_users_by_name = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE name = ?"
        )
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users
            (id, email, name, avatar_url, role, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_profile = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET name = ?, avatar_url = ?, updated_at = ?
            WHERE id = ?
        """)
        self._update_role = self.session.prepare(f"""
            UPDATE {self.keyspace}.users
            SET role = ?, updated_at = ?
            WHERE id = ?
        """)
        self._increment_notification_count = self.session.prepare(f"""
            UPDATE {self.keyspace}.user_notification_counts
            SET new_notification_count = new_notification_count + ?
            WHERE user_id = ?
        """)
        self._get_notification_count = self.session.prepare(f"""
            SELECT new_notification_count
            FROM {self.keyspace}.user_notification_counts
            WHERE user_id = ?
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def get_users(self, user_ids: list[UUID]) -> dict[UUID, User]:
        """Get several users at once, keyed by ID. Unknown IDs are skipped."""
        if not user_ids:
            return {}
        rows = await self.session.aexecute(
            self._get_users_by_ids, [list(set(user_ids))]
        )
        users = (User.from_row(row) for row in rows)
        return {user.id: user for user in users}

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email (case insensitive)."""
        result = await self.session.aexecute(
            self._get_user_by_email, [email.lower().strip()]
        )
        row = result.one()
        return User.from_row(row) if row else None

    async def get_users_by_names(self, names: list[str]) -> list[User]:
        """Resolve display names to active users.

        Names are matched exactly. When several users share a name, all of
        them are returned.
        """
        if not names:
            return []

        results = await gather_all(
            *(self.session.aexecute(self._get_users_by_name, [name]) for name in names)
        )
        users: dict[UUID, User] = {}
        for rows in results:
            for row in rows:
                user = User.from_row(row)
                if user.is_active:
                    users[user.id] = user
        return list(users.values())

    # ==========================================================================
    # Writes
    # ==========================================================================

    def create_user(self, trx: Transaction, user: User) -> User:
        """Queue the insert of a new user."""
        trx.add(
            self._insert_user,
            [
                user.id,
                user.email,
                user.name,
                user.avatar_url,
                user.role,
                user.is_active,
                user.created_at,
                user.updated_at,
            ],
        )
        return user

    def update_profile(
        self, trx: Transaction, user: User, name: str, avatar_url: str | None
    ) -> User:
        """Queue a profile refresh (name and avatar from the identity provider)."""
        user.name = name
        user.avatar_url = avatar_url
        user.updated_at = utcnow()
        trx.add(self._update_profile, [name, avatar_url, user.updated_at, user.id])
        return user

    async def find_or_create_from_profile(
        self,
        trx: Transaction,
        profile: "OAuthProfile",
        role: UserRole = UserRole.USER,
    ) -> User:
        """Match an OAuth identity to a user by email, creating one if needed.

        Existing users are promoted to ``role`` when it is higher than what
        they have, never demoted.

        Raises:
            UserInactiveError: The matching account was deactivated
        """
        user = await self.get_user_by_email(profile.email)

        if user is None:
            user = User(
                email=profile.email,
                name=profile.name or profile.email.split("@")[0],
                avatar_url=profile.avatar_url,
                role=role.value,
            )
            self.create_user(trx, user)
            logger.info("user_created_from_oauth", provider=profile.provider)
            return user

        if not user.is_active:
            raise UserInactiveError

        if profile.name and (
            profile.name != user.name or profile.avatar_url != user.avatar_url
        ):
            self.update_profile(trx, user, profile.name, profile.avatar_url)

        if get_role_level(role) > get_role_level(user.role):
            user.role = role.value
            user.updated_at = utcnow()
            trx.add(self._update_role, [user.role, user.updated_at, user.id])

        return user

    # ==========================================================================
    # Notification counters
    # ==========================================================================

    async def increment_new_notification_count(
        self, user_id: UUID, amount: int = 1
    ) -> None:
        """Bump the unseen-notification counter.

        Counter columns cannot be batched with regular writes, so this runs
        as its own statement (usually as an after-commit hook).
        """
        await self.session.aexecute(
            self._increment_notification_count, [amount, user_id]
        )
        logger.debug("notification_count_incremented", user_id=str(user_id))

    async def get_new_notification_count(self, user_id: UUID) -> int:
        """Current unseen-notification counter (0 when never incremented)."""
        result = await self.session.aexecute(self._get_notification_count, [user_id])
        row = result.one()
        return int(row.new_notification_count) if row else 0

    def to_response(self, user: User) -> UserResponse:
        """Convert User model to response schema."""
        return UserResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            avatar_url=user.avatar_url,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
        )
