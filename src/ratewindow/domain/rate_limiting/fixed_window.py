"""
Fixed-Window Rate Limiters

One integer counter per caller, wiped for every caller at once when the
window timer fires. Windows are aligned to the limiter's own timer (armed at
construction and on every ``reset``), not to each caller's first action.

Known limitation: a caller can land ``threshold`` actions
just before a flush and ``threshold`` more just after it, i.e. up to twice
the threshold in a span barely longer than zero.
"""

from __future__ import annotations

import asyncio
import hashlib
from abc import abstractmethod
from typing import Dict, Optional

import aiomcache
import structlog

from ratewindow.core.exceptions import ConfigurationError, StoreUnavailableError
from ratewindow.infrastructure.memcached import MAX_RELATIVE_EXPTIME, MEMCACHED_ERRORS, close_memcached

from .base import BaseRateLimiter, Clock, wall_clock_ms
from .value_objects import RateLimitStrategy

logger = structlog.get_logger(__name__)


class FixedWindowRateLimiter(BaseRateLimiter):
    """
    Base for fixed-window strategies: owns the periodic flush task.

    The task belongs to this instance and is cancelled exactly once by
    ``destroy``. Because the task is created on the running event loop,
    instances must be constructed from inside a coroutine.
    """

    def __init__(self, threshold: int, time_interval: int, *, clock: Clock = wall_clock_ms) -> None:
        super().__init__(threshold, time_interval, clock=clock)
        self._flush_task: Optional[asyncio.Task] = None
        self._destroyed = False

    @abstractmethod
    async def _flush(self) -> None:
        """Drop every caller's counter."""

    async def _close(self) -> None:
        """Release store resources; called once from ``destroy``."""

    def _arm_timer(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise ConfigurationError(
                f"{type(self).__name__} must be created inside a running event loop"
            ) from None
        self._cancel_timer()
        self._flush_task = loop.create_task(
            self._flush_periodically(loop), name=f"{type(self).__name__}.flush"
        )

    def _cancel_timer(self) -> Optional[asyncio.Task]:
        task, self._flush_task = self._flush_task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    async def _flush_periodically(self, loop: asyncio.AbstractEventLoop) -> None:
        interval = self.window.time_interval_seconds
        # Boundaries stay at whole intervals from arming, whatever the flush latency
        deadline = loop.time() + interval
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            deadline += interval
            try:
                await self._flush()
            except StoreUnavailableError as exc:
                logger.warning(
                    "fixed_window_flush_failed",
                    limiter=type(self).__name__,
                    error=str(exc),
                )

    @property
    def timer_active(self) -> bool:
        return self._flush_task is not None and not self._flush_task.done()

    async def reset(self) -> None:
        """
        Flush all counters now and restart the window timer from this instant.

        Raises:
            StoreUnavailableError: If the store rejects the flush. The timer is
                re-armed regardless.
        """
        task = self._cancel_timer()
        if task is not None:
            await asyncio.wait({task})
        try:
            await self._flush()
        finally:
            if not self._destroyed:
                self._arm_timer()

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        task = self._cancel_timer()
        if task is not None:
            await asyncio.wait({task})
        await self._close()
        logger.debug("rate_limiter_destroyed", limiter=type(self).__name__)


class FixedWindowInMemoryRateLimiter(FixedWindowRateLimiter):
    """
    Fixed-window counters held in a process-local dict.

    O(1) per call. Counters are not shared between processes, so a caller
    spread over N workers gets N times the threshold.
    """

    strategy = RateLimitStrategy.FIXED_WINDOW_IN_MEMORY

    def __init__(self, threshold: int, time_interval: int, *, clock: Clock = wall_clock_ms) -> None:
        super().__init__(threshold, time_interval, clock=clock)
        self._counts: Dict[str, int] = {}
        self._arm_timer()

    async def _flush(self) -> None:
        # Swap, never clear in place: a reader holding the old dict sees a single window
        self._counts = {}

    async def is_allowed(self, caller_id: str) -> bool:
        counts = self._counts
        count = counts.get(caller_id, 0)
        if count >= self.threshold:
            logger.debug("rate_limit_denied", strategy=self.strategy.value, caller_id=caller_id)
            return False
        counts[caller_id] = count + 1
        return True


class FixedWindowMemcachedRateLimiter(FixedWindowRateLimiter):
    """
    Fixed-window counters held in memcached, shared by every limiter process
    pointed at the same server.

    Each call is a ``get`` followed by a ``set`` with the window as expiry; the
    pair is not atomic, so concurrent calls for the same caller may both read
    the same count. The periodic flush empties the whole cache.
    """

    strategy = RateLimitStrategy.FIXED_WINDOW_MEMCACHED

    def __init__(
        self,
        threshold: int,
        time_interval: int,
        client: aiomcache.Client,
        *,
        key_prefix: str = "ratewindow:",
        clock: Clock = wall_clock_ms,
    ) -> None:
        super().__init__(threshold, time_interval, clock=clock)
        self._client = client
        self._key_prefix = key_prefix
        ttl = self.window.ttl_seconds
        # 0 means "never expire"; the periodic flush_all still bounds the window
        self._exptime = ttl if ttl <= MAX_RELATIVE_EXPTIME else 0
        self._arm_timer()

    def _key(self, caller_id: str) -> bytes:
        # Hashed so any caller id fits memcached's key grammar
        digest = hashlib.sha256(caller_id.encode("utf-8")).hexdigest()
        return f"{self._key_prefix}fw:{digest}".encode("utf-8")

    @staticmethod
    def _store_error(operation: str, exc: BaseException) -> StoreUnavailableError:
        return StoreUnavailableError(
            f"memcached {operation} failed: {exc}", store="memcached", operation=operation
        )

    async def _flush(self) -> None:
        try:
            await self._client.flush_all()
        except MEMCACHED_ERRORS as exc:
            raise self._store_error("flush_all", exc) from exc

    async def _close(self) -> None:
        await close_memcached(self._client)

    async def is_allowed(self, caller_id: str) -> bool:
        key = self._key(caller_id)
        try:
            raw = await self._client.get(key)
            count = int(raw) if raw else 0
        except (*MEMCACHED_ERRORS, ValueError) as exc:
            raise self._store_error("get", exc) from exc

        if count >= self.threshold:
            logger.debug("rate_limit_denied", strategy=self.strategy.value, caller_id=caller_id)
            return False

        try:
            stored = await self._client.set(
                key, str(count + 1).encode("ascii"), exptime=self._exptime
            )
        except MEMCACHED_ERRORS as exc:
            raise self._store_error("set", exc) from exc
        if not stored:
            raise StoreUnavailableError(
                "memcached set was not stored", store="memcached", operation="set"
            )
        return True
