"""
Sliding-Window Rate Limiters (Redis)

The per-caller timestamp log lives in Redis, so every process pointed at the
same server enforces one shared window per caller.

Concurrency:
    Each check is several round trips (prune, measure, record) that are not
    executed as one transaction. Two concurrent checks for the same caller
    can interleave between the measurement and the write, letting the log
    transiently exceed the threshold by the number of in-flight calls. Single
    primitives are atomic; the sequence is not.

Any failing primitive raises StoreUnavailableError, chained from the client
error; a check never degrades to "allowed" or "denied" on store failure.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import Any, Awaitable

import structlog
from redis.asyncio import Redis

from ratewindow.core.exceptions import StoreUnavailableError
from ratewindow.infrastructure.redis import REDIS_ERRORS, close_redis

from .base import BaseRateLimiter, Clock, wall_clock_ms
from .value_objects import RateLimitStrategy

logger = structlog.get_logger(__name__)

_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


class RedisSlidingWindowRateLimiter(BaseRateLimiter):
    """Connection ownership, key layout and reset shared by the Redis strategies."""

    key_namespace: str = ""

    def __init__(
        self,
        threshold: int,
        time_interval: int,
        client: Redis,
        *,
        key_prefix: str = "ratewindow:",
        clock: Clock = wall_clock_ms,
    ) -> None:
        super().__init__(threshold, time_interval, clock=clock)
        self._redis = client
        self._key_prefix = f"{key_prefix}sw:{self.key_namespace}:"
        self._destroyed = False

    def _key(self, caller_id: str) -> str:
        return f"{self._key_prefix}{caller_id}"

    async def _call(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except REDIS_ERRORS as exc:
            logger.warning(
                "redis_operation_failed",
                strategy=self.strategy.value,
                operation=operation,
                error=str(exc),
            )
            raise StoreUnavailableError(
                f"redis {operation} failed: {exc}", store="redis", operation=operation
            ) from exc

    async def reset(self) -> None:
        """
        Delete every caller's log under this strategy's key prefix.

        Raises:
            StoreUnavailableError: If the scan or a delete fails.
        """
        pattern = _GLOB_SPECIALS.sub(r"\\\1", self._key_prefix) + "*"
        cursor = 0
        while True:
            cursor, keys = await self._call(
                "scan", self._redis.scan(cursor, match=pattern, count=100)
            )
            if keys:
                await self._call("delete", self._redis.delete(*keys))
            if cursor == 0:
                break

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        await close_redis(self._redis)
        logger.debug("rate_limiter_destroyed", limiter=type(self).__name__)


class SlidingWindowRedisListRateLimiter(RedisSlidingWindowRateLimiter):
    """
    Sliding window over a Redis list per caller: ``RPUSH`` at the tail,
    stale entries popped from the head one ``LRANGE``/``LPOP`` pair at a time.
    """

    strategy = RateLimitStrategy.SLIDING_WINDOW_REDIS_LIST
    key_namespace = "list"

    async def is_allowed(self, caller_id: str) -> bool:
        key = self._key(caller_id)
        now = self._now()
        window_start = now - self.time_interval

        while True:
            head = await self._call("lrange", self._redis.lrange(key, 0, 0))
            if not head or int(head[0]) >= window_start:
                break
            await self._call("lpop", self._redis.lpop(key))

        size = await self._call("llen", self._redis.llen(key))
        if size >= self.threshold:
            logger.debug("rate_limit_denied", strategy=self.strategy.value, caller_id=caller_id)
            return False

        await self._call("rpush", self._redis.rpush(key, str(now)))
        return True


class SlidingWindowRedisSortedSetRateLimiter(RedisSlidingWindowRateLimiter):
    """
    Sliding window over a Redis sorted set per caller, scored by timestamp.

    A check adds its own entry, trims entries older than the window, then
    asks for the entry's rank: the "how many actions in the window" question
    becomes one O(log n) ``ZRANK`` instead of a scan. A denied entry is
    removed again so only allowed actions stay recorded.
    """

    strategy = RateLimitStrategy.SLIDING_WINDOW_REDIS_SORTED_SET
    key_namespace = "zset"

    @staticmethod
    def _member(now: int) -> str:
        # Unique per call; equal scores rank by member, so the ns prefix keeps arrival order
        return f"{now}:{time.time_ns():020d}:{uuid.uuid4().hex[:8]}"

    async def is_allowed(self, caller_id: str) -> bool:
        key = self._key(caller_id)
        now = self._now()
        member = self._member(now)

        await self._call("zadd", self._redis.zadd(key, {member: now}))
        await self._call(
            "zremrangebyscore",
            self._redis.zremrangebyscore(key, "-inf", f"({now - self.time_interval}"),
        )
        rank = await self._call("zrank", self._redis.zrank(key, member))

        if rank is not None and rank + 1 > self.threshold:
            await self._call("zrem", self._redis.zrem(key, member))
            logger.debug("rate_limit_denied", strategy=self.strategy.value, caller_id=caller_id)
            return False
        return True
