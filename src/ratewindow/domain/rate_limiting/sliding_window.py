"""
Sliding-Window Rate Limiters (local memory)

Per-caller timestamp logs, pruned lazily on every check to the trailing
window ``[now - time_interval, now]``. Any ``threshold``-sized burst is
limited within every rolling window; there is no boundary bypass.

Every check walks the same states: prune stale entries, compare the size of
what remains to the threshold, then either record ``now`` (allowed) or leave
the log untouched (denied).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Dict, Optional, Union

import structlog

from .base import BaseRateLimiter, Clock, wall_clock_ms
from .structures import BoundedMinHeap, TimestampLog
from .value_objects import RateLimitStrategy

logger = structlog.get_logger(__name__)

TimestampStore = Union[BoundedMinHeap, TimestampLog]


class LocalSlidingWindowRateLimiter(BaseRateLimiter):
    """Shared check loop for the in-process sliding-window strategies."""

    def __init__(self, threshold: int, time_interval: int, *, clock: Clock = wall_clock_ms) -> None:
        super().__init__(threshold, time_interval, clock=clock)
        self._windows: Dict[str, TimestampStore] = {}
        # Newest recorded timestamp per caller, read by the sweep
        self._last_seen: Dict[str, int] = {}
        self._last_sweep: Optional[int] = None

    @abstractmethod
    def _new_store(self) -> TimestampStore:
        """Create the empty per-caller structure."""

    def _sweep(self, window_start: int) -> None:
        """Drop callers whose newest entry already left the window."""
        stale = [caller for caller, seen in self._last_seen.items() if seen < window_start]
        for caller in stale:
            del self._windows[caller]
            del self._last_seen[caller]
        if stale:
            logger.debug("stale_callers_swept", strategy=self.strategy.value, count=len(stale))

    async def is_allowed(self, caller_id: str) -> bool:
        now = self._now()
        window_start = now - self.time_interval
        # At most one full sweep per window length
        if self._last_sweep is None:
            self._last_sweep = now
        elif now - self._last_sweep > self.time_interval:
            self._last_sweep = now
            self._sweep(window_start)

        windows = self._windows
        store = windows.get(caller_id)
        if store is None:
            store = windows[caller_id] = self._new_store()

        while not store.is_empty() and store.peek() < window_start:
            store.pop()

        if len(store) >= self.threshold:
            logger.debug("rate_limit_denied", strategy=self.strategy.value, caller_id=caller_id)
            return False

        store.push(now)
        self._last_seen[caller_id] = max(now, self._last_seen.get(caller_id, now))
        return True

    async def reset(self) -> None:
        self._windows = {}
        self._last_seen = {}

    async def destroy(self) -> None:
        """Nothing to release: no timers, no connections."""

    def tracked_callers(self) -> int:
        """Number of callers currently holding a timestamp structure."""
        return len(self._windows)


class SlidingWindowMinHeapRateLimiter(LocalSlidingWindowRateLimiter):
    """
    Sliding window over a bounded min-heap per caller (capacity = threshold).

    O(log threshold) amortized per call, O(threshold * log threshold) when a
    whole window's worth of entries goes stale at once.
    """

    strategy = RateLimitStrategy.SLIDING_WINDOW_MIN_HEAP

    def _new_store(self) -> BoundedMinHeap:
        return BoundedMinHeap(self.threshold)


class SlidingWindowListRateLimiter(LocalSlidingWindowRateLimiter):
    """
    Sliding window over a FIFO log per caller.

    Timestamps arrive in non-decreasing order, so the head is always the
    oldest entry and eviction needs no re-heapify: O(k) for the k entries
    evicted by this call, amortized O(1) per entry.
    """

    strategy = RateLimitStrategy.SLIDING_WINDOW_LIST

    def _new_store(self) -> TimestampLog:
        return TimestampLog()
