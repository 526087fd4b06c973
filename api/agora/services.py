"""Construction of the application's collaborators.

Both the API (``agora.main``) and the job worker (``agora.jobs``) build the
same set of services from one ``Settings`` instance, a Cassandra session and
a Redis client.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agora.analytics.service import AnalyticsService
from agora.auth.oauth import OAuthClient
from agora.auth.service import UserService
from agora.comments.service import CommentService
from agora.comments.workflow import CommentWorkflow
from agora.communities.service import CommunityService
from agora.core.database import Database
from agora.core.queue import JobQueue
from agora.email.reply_address import ReplyAddressCodec
from agora.email.service import TemplateEmailService
from agora.notifications.service import NotificationService
from agora.posts.service import PostService
from agora.projects.service import ProjectService


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from agora.config.settings import Settings


@dataclass
class Services:
    """Everything a request handler or job handler may need."""

    settings: "Settings"
    database: Database
    job_queue: JobQueue
    user_service: UserService
    community_service: CommunityService
    project_service: ProjectService
    post_service: PostService
    comment_service: CommentService
    notification_service: NotificationService
    email_service: TemplateEmailService
    analytics_service: AnalyticsService
    reply_codec: ReplyAddressCodec
    oauth_client: OAuthClient
    comment_workflow: CommentWorkflow

    def install(self, state: Any) -> None:
        """Expose every service as an attribute of ``state`` (``app.state``)."""
        for name, value in vars(self).items():
            setattr(state, name, value)

    async def aclose(self) -> None:
        """Close outbound HTTP clients."""
        await self.email_service.aclose()
        await self.analytics_service.aclose()
        await self.oauth_client.aclose()


def build_services(settings: "Settings", session: Any, redis: "Redis") -> Services:
    """Wire all services for one process."""
    keyspace = settings.cassandra_keyspace

    database = Database(session, keyspace)
    job_queue = JobQueue(redis, settings.job_queue_name)

    users = UserService(session=session, keyspace=keyspace)
    communities = CommunityService(session=session, keyspace=keyspace)
    projects = ProjectService(session=session, keyspace=keyspace)
    posts = PostService(session=session, keyspace=keyspace)
    comments = CommentService(session=session, keyspace=keyspace)
    notifications = NotificationService(
        session=session, keyspace=keyspace, users=users, queue=job_queue
    )

    email = TemplateEmailService(settings)
    analytics = AnalyticsService(settings)
    reply_codec = ReplyAddressCodec.from_settings(settings)

    workflow = CommentWorkflow(
        db=database,
        comments=comments,
        posts=posts,
        users=users,
        notifications=notifications,
        analytics=analytics,
        reply_codec=reply_codec,
    )

    return Services(
        settings=settings,
        database=database,
        job_queue=job_queue,
        user_service=users,
        community_service=communities,
        project_service=projects,
        post_service=posts,
        comment_service=comments,
        notification_service=notifications,
        email_service=email,
        analytics_service=analytics,
        reply_codec=reply_codec,
        oauth_client=OAuthClient(settings),
        comment_workflow=workflow,
    )
