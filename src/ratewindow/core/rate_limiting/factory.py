"""Rate limiter factory and lifecycle helpers.

The factory is the only place that knows which class backs which strategy
and how its store connection is opened. Connecting is explicit: a shared-store
limiter is returned only after its client answered, and a failed connect
raises to the caller instead of leaving a limiter that fails every call.

Teardown is guaranteed by the owner of the limiter, either through
`managed_rate_limiter` (the FastAPI lifespan uses its settings variant) or through
`install_shutdown_handlers` for standalone event loops.
"""

from __future__ import annotations

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, Optional, Type

import structlog

from ratewindow.core.exceptions import ConfigurationError
from ratewindow.domain.rate_limiting import (
    FixedWindowInMemoryRateLimiter,
    FixedWindowMemcachedRateLimiter,
    RateLimiter,
    RateLimitStrategy,
    RedisSlidingWindowRateLimiter,
    SlidingWindowListRateLimiter,
    SlidingWindowMinHeapRateLimiter,
    SlidingWindowRedisListRateLimiter,
    SlidingWindowRedisSortedSetRateLimiter,
    WindowConfig,
    wall_clock_ms,
)
from ratewindow.domain.rate_limiting.base import BaseRateLimiter, Clock
from ratewindow.infrastructure.memcached import connect_memcached
from ratewindow.infrastructure.redis import close_redis, connect_redis

logger = structlog.get_logger(__name__)

_LOCAL_STRATEGIES: Dict[RateLimitStrategy, Type[BaseRateLimiter]] = {
    RateLimitStrategy.FIXED_WINDOW_IN_MEMORY: FixedWindowInMemoryRateLimiter,
    RateLimitStrategy.SLIDING_WINDOW_MIN_HEAP: SlidingWindowMinHeapRateLimiter,
    RateLimitStrategy.SLIDING_WINDOW_LIST: SlidingWindowListRateLimiter,
}

_REDIS_STRATEGIES: Dict[RateLimitStrategy, Type[RedisSlidingWindowRateLimiter]] = {
    RateLimitStrategy.SLIDING_WINDOW_REDIS_LIST: SlidingWindowRedisListRateLimiter,
    RateLimitStrategy.SLIDING_WINDOW_REDIS_SORTED_SET: SlidingWindowRedisSortedSetRateLimiter,
}


async def create_rate_limiter(
    strategy: RateLimitStrategy | str,
    threshold: int,
    time_interval: int,
    *,
    redis_url: Optional[str] = None,
    memcached_url: Optional[str] = None,
    key_prefix: str = "ratewindow:",
    clock: Clock = wall_clock_ms,
) -> RateLimiter:
    """Build a ready-to-use limiter for ``strategy``.

    Args:
        strategy: Strategy member or name (e.g. ``"sliding_window_list"``).
        threshold: Maximum actions per caller per window.
        time_interval: Window length in milliseconds.
        redis_url: Connection URL, required by the Redis strategies.
        memcached_url: ``host:port`` target, required by the memcached strategy.
        key_prefix: Namespace for keys written to a shared store.
        clock: Millisecond clock used for every recorded timestamp.

    Returns:
        RateLimiter: The constructed limiter. Await ``destroy()`` when done.

    Raises:
        ConfigurationError: On an unknown strategy, a non-positive threshold or
            interval, or a missing connection target.
        StoreUnavailableError: If the shared store cannot be reached.
    """
    strategy = RateLimitStrategy.parse(strategy)
    # Validate before any connection is opened
    WindowConfig(threshold=threshold, time_interval=time_interval)

    limiter: RateLimiter
    if strategy in _LOCAL_STRATEGIES:
        limiter = _LOCAL_STRATEGIES[strategy](threshold, time_interval, clock=clock)
    elif strategy is RateLimitStrategy.FIXED_WINDOW_MEMCACHED:
        if not memcached_url:
            raise ConfigurationError(f"{strategy.value} requires a memcached target")
        client = await connect_memcached(memcached_url)
        limiter = FixedWindowMemcachedRateLimiter(
            threshold, time_interval, client, key_prefix=key_prefix, clock=clock
        )
    else:
        if not redis_url:
            raise ConfigurationError(f"{strategy.value} requires a redis URL")
        redis_client = await connect_redis(redis_url)
        try:
            limiter = _REDIS_STRATEGIES[strategy](
                threshold, time_interval, redis_client, key_prefix=key_prefix, clock=clock
            )
        except ConfigurationError:
            await close_redis(redis_client)
            raise

    logger.info(
        "rate_limiter_created",
        strategy=strategy.value,
        threshold=threshold,
        time_interval_ms=time_interval,
    )
    return limiter


async def create_rate_limiter_from_settings(settings, *, clock: Clock = wall_clock_ms) -> RateLimiter:
    """Build the limiter described by the application settings."""
    return await create_rate_limiter(
        settings.RATE_LIMIT_STRATEGY,
        settings.THRESHOLD,
        settings.TIME_INTERVAL,
        redis_url=settings.REDIS_URL,
        memcached_url=settings.MEMCACHED_URL,
        key_prefix=settings.RATE_LIMIT_KEY_PREFIX,
        clock=clock,
    )


@asynccontextmanager
async def managed_rate_limiter(
    strategy: RateLimitStrategy | str,
    threshold: int,
    time_interval: int,
    **kwargs,
) -> AsyncIterator[RateLimiter]:
    """Yield a limiter and always destroy it on exit, however the block ends."""
    limiter = await create_rate_limiter(strategy, threshold, time_interval, **kwargs)
    try:
        yield limiter
    finally:
        await limiter.destroy()


@asynccontextmanager
async def managed_rate_limiter_from_settings(
    settings, *, clock: Clock = wall_clock_ms
) -> AsyncIterator[RateLimiter]:
    """Like `managed_rate_limiter`, built from the application settings."""
    limiter = await create_rate_limiter_from_settings(settings, clock=clock)
    try:
        yield limiter
    finally:
        await limiter.destroy()


def install_shutdown_handlers(
    limiter: RateLimiter,
    *,
    signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
) -> asyncio.Event:
    """Destroy ``limiter`` once when the process receives one of ``signals``.

    Must be called from the running loop (Unix only: relies on
    ``loop.add_signal_handler``). The returned event is set after teardown
    completed; the owner awaits it and then exits.
    """
    loop = asyncio.get_running_loop()
    destroyed = asyncio.Event()
    triggered = False
    signals = tuple(signals)

    async def _teardown() -> None:
        try:
            await limiter.destroy()
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)
            destroyed.set()

    def _handle(sig: signal.Signals) -> None:
        nonlocal triggered
        if triggered:
            return
        triggered = True
        logger.info("shutdown_signal_received", signal=sig.name)
        loop.create_task(_teardown())

    for sig in signals:
        loop.add_signal_handler(sig, _handle, sig)
    return destroyed
