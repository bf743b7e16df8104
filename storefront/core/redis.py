# ruff: noqa: PLW0603
"""Redis connection management.

Redis is optional: it carries the pub/sub channels used for realtime
notifications. The application keeps serving requests without it.
"""

import redis.asyncio as redis

from storefront.config import get_settings
from storefront.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Create the client and verify the connection with a ping."""
    global _redis_client

    settings = get_settings()
    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    logger.info("redis_connected", url=settings.redis_url)
    _redis_client = client
    return client


async def shutdown_redis() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    return _redis_client


def notification_channel(user_id: str) -> str:
    """Pub/sub channel carrying realtime events for one user."""
    return f"notifications:user:{user_id}"
