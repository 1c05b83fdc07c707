"""
Redis Connection Module

This module provides the asynchronous Redis client used by the shared
sliding-window strategies. Connecting is an explicit step: the client is
created, verified with ``PING``, and only then handed to a limiter, so a
wrong URL or an unreachable server surfaces to whoever builds the limiter
instead of being logged and forgotten.

**Security Note**: Never log the connection URL itself; it may carry a
password.

Functions:
    connect_redis: Create and verify a client.
    close_redis: Close a client, logging (not raising) disconnect errors.
"""

import asyncio

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ratewindow.core.exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)

# Every failure a Redis primitive can surface with
REDIS_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


async def connect_redis(url: str) -> Redis:
    """
    Creates a Redis client for ``url`` and verifies it answers ``PING``.

    Args:
        url: A ``redis://`` or ``rediss://`` connection URL.

    Returns:
        Redis: A connected client decoding responses as UTF-8 strings.

    Raises:
        StoreUnavailableError: If the server cannot be reached.
    """
    client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except REDIS_ERRORS as exc:
        await close_redis(client)
        raise StoreUnavailableError(
            f"Failed to connect to redis: {exc}", store="redis", operation="ping"
        ) from exc
    logger.info("redis_connected")
    return client


async def close_redis(client: Redis) -> None:
    """Closes ``client``; teardown must not block process exit, so errors are logged."""
    try:
        await client.aclose()
    except REDIS_ERRORS as exc:
        logger.warning("redis_disconnect_failed", error=str(exc))
        return
    logger.debug("redis_connection_closed")
