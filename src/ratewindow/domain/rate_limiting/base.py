"""
Rate Limiter Contract

The single capability interface consumed by the HTTP layer, plus the shared
base every strategy builds on. Strategies differ only in how they store and
prune per-caller state; the decision they return is always a plain boolean.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable

from .value_objects import RateLimitStrategy, WindowConfig

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class RateLimiter(ABC):
    """
    Contract implemented by every rate limiting strategy.

    ``is_allowed`` records the caller's action if and only if it returns True.
    ``reset`` discards all counting state and re-arms any periodic timer.
    ``destroy`` releases timers and store connections; it is idempotent and
    must be awaited before the process exits.
    """

    @abstractmethod
    async def is_allowed(self, caller_id: str) -> bool:
        """
        Decide whether ``caller_id`` may act now.

        Raises:
            StoreUnavailableError: When a shared store fails a primitive call.
        """

    @abstractmethod
    def get_threshold(self) -> int:
        """Maximum number of actions allowed per window."""

    @abstractmethod
    def get_time_interval(self) -> int:
        """Window length in milliseconds."""

    @abstractmethod
    async def reset(self) -> None:
        """Discard all counting state immediately."""

    @abstractmethod
    async def destroy(self) -> None:
        """Release timers and connections. Safe to call more than once."""


class BaseRateLimiter(RateLimiter):
    """Holds the immutable window configuration and the clock."""

    strategy: RateLimitStrategy

    def __init__(self, threshold: int, time_interval: int, *, clock: Clock = wall_clock_ms) -> None:
        self._window = WindowConfig(threshold=threshold, time_interval=time_interval)
        self._clock = clock

    @property
    def threshold(self) -> int:
        return self._window.threshold

    @property
    def time_interval(self) -> int:
        return self._window.time_interval

    @property
    def window(self) -> WindowConfig:
        return self._window

    def get_threshold(self) -> int:
        return self._window.threshold

    def get_time_interval(self) -> int:
        return self._window.time_interval

    def _now(self) -> int:
        return int(self._clock())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(threshold={self.threshold}, "
            f"time_interval={self.time_interval})"
        )
