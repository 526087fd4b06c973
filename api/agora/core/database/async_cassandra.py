"""Async Cassandra database connection using cassandra-asyncio-driver.

Provides:
- Cluster connection and session lifecycle
- Session with aexecute() for non-blocking queries
- Keyspace and table initialization

The cassandra-asyncio-driver extends the standard cassandra-driver
with `session.aexecute()` method for async/await support.
"""

from typing import TYPE_CHECKING

import structlog
from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from agora.auth.models import AUTH_TABLES_CQL
from agora.comments.models import COMMENTS_TABLES_CQL
from agora.communities.models import COMMUNITIES_TABLES_CQL
from agora.notifications.models import NOTIFICATIONS_TABLES_CQL
from agora.posts.models import POSTS_TABLES_CQL
from agora.projects.models import PROJECTS_TABLES_CQL


if TYPE_CHECKING:
    from agora.config.settings import Settings


logger = structlog.get_logger(__name__)


# Order matters only for readability of the startup log
SCHEMA = {
    "auth": AUTH_TABLES_CQL,
    "communities": COMMUNITIES_TABLES_CQL,
    "projects": PROJECTS_TABLES_CQL,
    "posts": POSTS_TABLES_CQL,
    "comments": COMMENTS_TABLES_CQL,
    "notifications": NOTIFICATIONS_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Async Cassandra connection manager.

    Connecting is synchronous; queries run through ``aexecute()``.
    """

    _cluster: Cluster | None = None
    _session = None  # Session type from cassandra_asyncio

    @classmethod
    def connect(cls, settings: "Settings"):
        """Establish connection to the Cassandra cluster.

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            cls._session = cls._cluster.connect()
            logger.info(
                "async_cassandra_connected",
                hosts=settings.cassandra_hosts,
                port=settings.cassandra_port,
            )
        except Exception as e:
            logger.error("async_cassandra_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        """Close connection to Cassandra."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
            logger.info("async_cassandra_session_closed")

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None


async def init_async_keyspace(session, settings: "Settings") -> None:
    """Create the keyspace if it does not exist."""
    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(f"""
        CREATE KEYSPACE IF NOT EXISTS {settings.cassandra_keyspace}
        WITH replication = {{{replication}}}
        AND durable_writes = true
    """)
    logger.info("async_keyspace_created", keyspace=settings.cassandra_keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every module's tables and indexes."""
    for module, statements in SCHEMA.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("async_tables_created", module=module, keyspace=keyspace)


async def init_async_cassandra(settings: "Settings"):
    """Connect, then create keyspace and tables.

    Returns:
        Configured Cassandra session with aexecute() support
    """
    session = AsyncCassandraConnection.connect(settings)

    await init_async_keyspace(session, settings)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("async_cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown async Cassandra connection."""
    AsyncCassandraConnection.disconnect()
