"""
Memcached Connection Module

Provides the asyncio memcached client (aiomcache) used by the shared
fixed-window strategy. aiomcache opens sockets lazily, so `connect_memcached`
issues a ``version`` command to prove the server is reachable before the
client is handed to a limiter.
"""

import asyncio
from typing import Tuple

import aiomcache
import structlog
from aiomcache.exceptions import ClientException

from ratewindow.core.exceptions import ConfigurationError, StoreUnavailableError

logger = structlog.get_logger(__name__)

# Every failure a memcached primitive can surface with
MEMCACHED_ERRORS = (ClientException, OSError, asyncio.TimeoutError)

DEFAULT_MEMCACHED_PORT = 11211

# Larger exptime values are read by memcached as absolute Unix timestamps
MAX_RELATIVE_EXPTIME = 30 * 24 * 60 * 60


def parse_memcached_url(url: str) -> Tuple[str, int]:
    """
    Splits a ``host:port`` target (an optional ``memcached://`` prefix is
    accepted) into its parts.

    Raises:
        ConfigurationError: If the target has no host or a non-numeric port.
    """
    target = url.strip()
    if "://" in target:
        target = target.split("://", 1)[1]
    target = target.rstrip("/")
    host, sep, port = target.rpartition(":")
    if not sep:
        host, port = target, str(DEFAULT_MEMCACHED_PORT)
    if not host or not port.isdigit():
        raise ConfigurationError(f"Invalid memcached target: {url!r}")
    return host, int(port)


async def connect_memcached(url: str, *, pool_size: int = 2) -> aiomcache.Client:
    """
    Creates an aiomcache client for ``url`` and verifies the server responds.

    Raises:
        ConfigurationError: If ``url`` is malformed.
        StoreUnavailableError: If the server cannot be reached.
    """
    host, port = parse_memcached_url(url)
    client = aiomcache.Client(host, port, pool_size=pool_size)
    try:
        await client.version()
    except MEMCACHED_ERRORS as exc:
        await close_memcached(client)
        raise StoreUnavailableError(
            f"Failed to connect to memcached at {host}:{port}: {exc}",
            store="memcached",
            operation="version",
        ) from exc
    logger.info("memcached_connected", host=host, port=port)
    return client


async def close_memcached(client: aiomcache.Client) -> None:
    """Closes ``client``, logging rather than raising on failure."""
    try:
        await client.close()
    except MEMCACHED_ERRORS as exc:
        logger.warning("memcached_disconnect_failed", error=str(exc))
        return
    logger.debug("memcached_connection_closed")
