"""Async Cassandra connection using cassandra-asyncio-driver.

The driver's ``Cluster`` hands out sessions exposing ``aexecute()``, so
queries can be awaited from request handlers. Connecting itself is
synchronous and happens once during application startup.
"""

from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from storefront.auth.models import AUTH_TABLES_CQL
from storefront.catalog.models import CATALOG_TABLES_CQL
from storefront.comments.models import COMMENTS_TABLES_CQL
from storefront.config.settings import get_settings
from storefront.core.logging import get_logger
from storefront.notifications.models import NOTIFICATIONS_TABLES_CQL


logger = get_logger(__name__)

# Schema groups created at startup, in order
SCHEMA: dict[str, list[str]] = {
    "users": AUTH_TABLES_CQL,
    "catalog": CATALOG_TABLES_CQL,
    "comments": COMMENTS_TABLES_CQL,
    "notifications": NOTIFICATIONS_TABLES_CQL,
}


class AsyncCassandraConnection:
    """Process-wide cluster and session holder."""

    _cluster: Cluster | None = None
    _session = None

    @classmethod
    def connect(cls):
        """Connect to the cluster, reusing the session if already open.

        Raises:
            ConnectionError: If the cluster cannot be reached.
        """
        if cls._session is not None:
            return cls._session

        settings = get_settings()

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
        except Exception as e:
            logger.error("async_cassandra_connection_failed", error=str(e))
            msg = f"Failed to connect to Cassandra: {e}"
            raise ConnectionError(msg) from e

        logger.info(
            "async_cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return cls._session

    @classmethod
    def disconnect(cls) -> None:
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None
        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
        logger.info("async_cassandra_closed")

    @classmethod
    def is_connected(cls) -> bool:
        return cls._session is not None and not cls._session.is_shutdown


async def init_async_keyspace(session, keyspace: str) -> None:
    """Create the keyspace if it does not exist."""
    settings = get_settings()

    if settings.is_production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("async_keyspace_created", keyspace=keyspace)


async def init_async_tables(session, keyspace: str) -> None:
    """Create every table and index the application reads or writes."""
    for group, statements in SCHEMA.items():
        for cql_template in statements:
            await session.aexecute(cql_template.format(keyspace=keyspace))
        logger.info("async_tables_created", group=group, keyspace=keyspace)


async def init_async_cassandra():
    """Connect, then create keyspace and tables.

    Returns:
        Session with ``aexecute()`` support.
    """
    settings = get_settings()

    session = AsyncCassandraConnection.connect()
    await init_async_keyspace(session, settings.cassandra_keyspace)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_async_tables(session, settings.cassandra_keyspace)

    logger.info("async_cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    AsyncCassandraConnection.disconnect()
