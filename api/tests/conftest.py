"""Shared fixtures.

Services are replaced by in-memory subclasses that keep the real business
logic and only swap the Cassandra reads and writes. Writes are queued on an
``InMemoryTransaction`` as callables and applied on commit, so a failing
operation leaves the stores untouched just like an aborted batch.
"""

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, Mock
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agora.auth.models import User
from agora.auth.permissions import UserRole
from agora.auth.security import create_access_token
from agora.auth.service import UserService
from agora.comments.models import Comment, Thank
from agora.comments.service import CommentService
from agora.comments.workflow import CommentWorkflow
from agora.communities.models import Membership
from agora.communities.service import CommunityService
from agora.config import Settings
from agora.core.database import Database, Transaction
from agora.core.queue import Job, JobQueue
from agora.email.reply_address import ReplyAddressCodec
from agora.notifications.models import Activity
from agora.notifications.service import NotificationService
from agora.posts.models import Follower, Post
from agora.posts.service import PostService
from agora.projects.models import Project, ProjectMembership
from agora.projects.service import ProjectService


# ==============================================================================
# Transactions
# ==============================================================================


class InMemoryTransaction(Transaction):
    """Applies queued callables in order instead of sending a CQL batch."""

    async def _execute(self, statements: list[tuple[Any, Any]]) -> None:
        for apply, parameters in statements:
            apply(*(parameters or []))


class FakeDatabase(Database):
    transaction_class = InMemoryTransaction

    def __init__(self) -> None:
        super().__init__(session=None, keyspace="test_keyspace")


# ==============================================================================
# In-memory services
# ==============================================================================


class InMemoryUserService(UserService):
    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.notification_counts: dict[UUID, int] = {}
        self._update_role = self._apply_role

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def _apply_role(self, role: str, updated_at: Any, user_id: UUID) -> None:
        self.users[user_id].role = role

    async def get_user(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    async def get_users(self, user_ids: list[UUID]) -> dict[UUID, User]:
        return {uid: self.users[uid] for uid in user_ids if uid in self.users}

    async def get_user_by_email(self, email: str) -> User | None:
        email = email.lower().strip()
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_users_by_names(self, names: list[str]) -> list[User]:
        return [u for u in self.users.values() if u.name in names and u.is_active]

    def create_user(self, trx: Transaction, user: User) -> User:
        trx.add(self.add, [user])
        return user

    def update_profile(
        self, trx: Transaction, user: User, name: str, avatar_url: str | None
    ) -> User:
        user.name = name
        user.avatar_url = avatar_url
        return user

    async def increment_new_notification_count(
        self, user_id: UUID, amount: int = 1
    ) -> None:
        self.notification_counts[user_id] = (
            self.notification_counts.get(user_id, 0) + amount
        )

    async def get_new_notification_count(self, user_id: UUID) -> int:
        return self.notification_counts.get(user_id, 0)


class InMemoryCommunityService(CommunityService):
    def __init__(self) -> None:
        self.memberships: set[tuple[UUID, UUID]] = set()

    def join(self, user_id: UUID, community_id: UUID) -> None:
        self.memberships.add((community_id, user_id))

    async def get_membership(
        self, user_id: UUID, community_id: UUID | None
    ) -> Membership | None:
        if (community_id, user_id) in self.memberships:
            return Membership(community_id=community_id, user_id=user_id)
        return None


class InMemoryProjectService(ProjectService):
    def __init__(self) -> None:
        self.projects: dict[UUID, Project] = {}
        self.contributors: set[tuple[UUID, UUID]] = set()

    def add(self, project: Project) -> Project:
        self.projects[project.id] = project
        return project

    async def get_project(self, project_id: UUID) -> Project | None:
        return self.projects.get(project_id)

    async def get_membership(
        self, user_id: UUID, project_id: UUID
    ) -> ProjectMembership | None:
        if (project_id, user_id) in self.contributors:
            return ProjectMembership(project_id=project_id, user_id=user_id)
        return None


class InMemoryPostService(PostService):
    def __init__(self) -> None:
        self.posts: dict[UUID, Post] = {}
        self.followers: dict[UUID, dict[UUID, Follower]] = {}

    def add(self, post: Post, followers: tuple[UUID, ...] = ()) -> Post:
        self.posts[post.id] = post
        self.followers.setdefault(post.id, {})
        for user_id in followers:
            self._store_follower(Follower(post_id=post.id, user_id=user_id))
        return post

    def _store_follower(self, follower: Follower) -> None:
        self.followers.setdefault(follower.post_id, {})[follower.user_id] = follower

    def _store_stats(self, post_id: UUID, num_comments: int, last_updated) -> None:
        self.posts[post_id].num_comments = num_comments
        if last_updated is not None:
            self.posts[post_id].last_updated = last_updated

    async def get_post(self, post_id: UUID) -> Post | None:
        return self.posts.get(post_id)

    async def get_followers(self, post_id: UUID) -> list[Follower]:
        return list(self.followers.get(post_id, {}).values())

    def add_followers(
        self, trx: Transaction, post_id: UUID, user_ids, added_by_id: UUID
    ) -> list[Follower]:
        followers = [
            Follower(post_id=post_id, user_id=user_id, added_by_id=added_by_id)
            for user_id in dict.fromkeys(user_ids)
        ]
        for follower in followers:
            trx.add(self._store_follower, [follower])
        return followers

    def set_comment_stats(
        self, trx: Transaction, post: Post, num_comments: int, last_updated=None
    ) -> Post:
        trx.add(self._store_stats, [post.id, num_comments, last_updated])
        return post

    def decrement_comment_count(self, trx: Transaction, post: Post) -> Post:
        trx.add(self._store_stats, [post.id, max(0, post.num_comments - 1), None])
        return post

    async def store_comment_count(self, post: Post, num_comments: int) -> Post:
        self._store_stats(post.id, num_comments, None)
        return post


class InMemoryCommentService(CommentService):
    def __init__(self) -> None:
        self.comments: dict[UUID, Comment] = {}
        self.thanks: dict[tuple[UUID, UUID], Thank] = {}

    def _store(self, comment: Comment) -> None:
        self.comments[comment.id] = comment

    def _store_thank(self, thank: Thank) -> None:
        self.thanks[(thank.comment_id, thank.thanked_by_id)] = thank

    def _drop_thank(self, thank: Thank) -> None:
        self.thanks.pop((thank.comment_id, thank.thanked_by_id), None)

    def _apply_deactivate(self, comment_id: UUID, by_user_id: UUID) -> None:
        self.comments[comment_id].deactivate(by_user_id)

    async def get_comment(self, comment_id: UUID) -> Comment | None:
        return self.comments.get(comment_id)

    async def list_active_for_post(self, post_id: UUID) -> list[Comment]:
        return [
            c for c in self.comments.values() if c.post_id == post_id and c.active
        ]

    def insert(self, trx: Transaction, comment: Comment) -> Comment:
        trx.add(self._store, [comment])
        return comment

    def deactivate(
        self, trx: Transaction, comment: Comment, by_user_id: UUID
    ) -> Comment:
        trx.add(self._apply_deactivate, [comment.id, by_user_id])
        return comment

    async def get_thank(self, comment_id: UUID, user_id: UUID) -> Thank | None:
        return self.thanks.get((comment_id, user_id))

    async def thanked_comment_ids(
        self, user_id: UUID, comment_ids: list[UUID]
    ) -> set[UUID]:
        return {cid for cid in comment_ids if (cid, user_id) in self.thanks}

    def add_thank(self, trx: Transaction, thank: Thank) -> Thank:
        trx.add(self._store_thank, [thank])
        return thank

    def remove_thank(self, trx: Transaction, thank: Thank) -> None:
        trx.add(self._drop_thank, [thank])


class InMemoryNotificationService(NotificationService):
    def __init__(self, users: UserService, queue: JobQueue) -> None:
        self.users = users
        self.queue = queue
        self.activities: list[Activity] = []

    def add_activity(self, trx: Transaction, activity: Activity) -> Activity:
        trx.add(self.activities.append, [activity])
        return activity

    async def delete_for_comment(self, trx: Transaction, comment_id: UUID) -> int:
        matching = [a for a in self.activities if a.comment_id == comment_id]
        for activity in matching:
            trx.add(self.activities.remove, [activity])
        return len(matching)

    def for_reader(self, reader_id: UUID) -> list[Activity]:
        return [a for a in self.activities if a.reader_id == reader_id]


class RecordingJobQueue(JobQueue):
    """Keeps enqueued jobs in a list."""

    def __init__(self) -> None:
        self.queue_name = "test"
        self.jobs: list[Job] = []
        self.failed: list[tuple[Job, str]] = []

    async def add_job(self, name: str, payload: dict[str, Any]) -> Job:
        job = Job(name=name, payload=payload)
        self.jobs.append(job)
        return job

    async def next_job(self, timeout: int = 5) -> Job | None:
        return self.jobs.pop(0) if self.jobs else None

    async def mark_failed(self, job: Job, error: str) -> None:
        self.failed.append((job, error))

    async def size(self) -> int:
        return len(self.jobs)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for tests: no .env, no outbound services."""
    return Settings(
        _env_file=None,
        environment="testing",
        log_dir=str(tmp_path / "logs"),
        log_level="INFO",
        log_requests=False,
        google_client_id="google-id",
        google_client_secret="google-secret",
        facebook_app_id="facebook-id",
        facebook_app_secret="facebook-secret",
        admin_google_client_id="admin-id",
        admin_google_client_secret="admin-secret",
        email_enabled=False,
        analytics_enabled=False,
    )


@pytest.fixture(scope="session")
def reply_codec() -> ReplyAddressCodec:
    return ReplyAddressCodec(
        secret="test-reply-secret", salt="test-salt", domain="reply.agora.test"
    )


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def job_queue() -> RecordingJobQueue:
    return RecordingJobQueue()


@pytest.fixture
def users() -> InMemoryUserService:
    return InMemoryUserService()


@pytest.fixture
def communities() -> InMemoryCommunityService:
    return InMemoryCommunityService()


@pytest.fixture
def projects() -> InMemoryProjectService:
    return InMemoryProjectService()


@pytest.fixture
def posts() -> InMemoryPostService:
    return InMemoryPostService()


@pytest.fixture
def comments() -> InMemoryCommentService:
    return InMemoryCommentService()


@pytest.fixture
def notifications(users, job_queue) -> InMemoryNotificationService:
    return InMemoryNotificationService(users, job_queue)


@pytest.fixture
def analytics() -> Mock:
    service = Mock()
    service.track = AsyncMock(return_value=True)
    return service


@pytest.fixture
def workflow(
    db, comments, posts, users, notifications, analytics, reply_codec
) -> CommentWorkflow:
    return CommentWorkflow(
        db=db,
        comments=comments,
        posts=posts,
        users=users,
        notifications=notifications,
        analytics=analytics,
        reply_codec=reply_codec,
    )


@pytest.fixture
def make_user(users):
    """Create and store a user."""

    def _make(name: str, role: UserRole = UserRole.USER, **kwargs) -> User:
        email = kwargs.pop("email", f"{name.lower().replace(' ', '.')}@example.com")
        return users.add(User(name=name, email=email, role=role.value, **kwargs))

    return _make


@pytest.fixture
def app(
    settings,
    db,
    job_queue,
    users,
    communities,
    projects,
    posts,
    comments,
    notifications,
    workflow,
    reply_codec,
) -> FastAPI:
    """Application wired with the in-memory services (lifespan not run)."""
    from agora.main import create_app

    application = create_app(settings)
    state = application.state
    state.database = db
    state.job_queue = job_queue
    state.user_service = users
    state.community_service = communities
    state.project_service = projects
    state.post_service = posts
    state.comment_service = comments
    state.notification_service = notifications
    state.comment_workflow = workflow
    state.reply_codec = reply_codec
    return application


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """Test client that does not run the lifespan (no Cassandra, no Redis)."""
    yield TestClient(app)


@pytest.fixture
def auth_headers(settings):
    """Bearer header for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(
            {"sub": str(user.id), "email": user.email, "role": user.role}, settings
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
