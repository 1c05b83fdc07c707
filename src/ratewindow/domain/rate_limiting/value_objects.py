"""
Rate Limiting Value Objects

Immutable value objects naming the interchangeable rate limiting strategies
and the window configuration every strategy is built from.

Value Objects:
- RateLimitStrategy: Enumeration of the six supported strategies
- WindowConfig: Validated threshold / time interval pair
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from ratewindow.core.exceptions import ConfigurationError


class RateLimitStrategy(str, Enum):
    """
    Enumeration of supported rate limiting strategies.

    Each strategy trades accuracy, distributed correctness and cost differently:
    - FIXED_WINDOW_*: O(1) per call, but allows up to twice the threshold
      around a window boundary
    - SLIDING_WINDOW_MIN_HEAP / SLIDING_WINDOW_LIST: exact trailing window,
      per-process state
    - SLIDING_WINDOW_REDIS_*: exact trailing window shared across processes,
      not atomic under concurrent calls for the same caller
    """
    FIXED_WINDOW_IN_MEMORY = "fixed_window_in_memory"
    FIXED_WINDOW_MEMCACHED = "fixed_window_memcached"
    SLIDING_WINDOW_MIN_HEAP = "sliding_window_min_heap"
    SLIDING_WINDOW_LIST = "sliding_window_list"
    SLIDING_WINDOW_REDIS_LIST = "sliding_window_redis_list"
    SLIDING_WINDOW_REDIS_SORTED_SET = "sliding_window_redis_sorted_set"

    @property
    def is_sliding_window(self) -> bool:
        """Check if the strategy evaluates a trailing window"""
        return self.value.startswith("sliding_window")

    @property
    def store(self) -> str:
        """Get the backing store of the strategy"""
        store_map = {
            RateLimitStrategy.FIXED_WINDOW_IN_MEMORY: "memory",
            RateLimitStrategy.FIXED_WINDOW_MEMCACHED: "memcached",
            RateLimitStrategy.SLIDING_WINDOW_MIN_HEAP: "memory",
            RateLimitStrategy.SLIDING_WINDOW_LIST: "memory",
            RateLimitStrategy.SLIDING_WINDOW_REDIS_LIST: "redis",
            RateLimitStrategy.SLIDING_WINDOW_REDIS_SORTED_SET: "redis",
        }
        return store_map[self]

    @classmethod
    def parse(cls, value: str | RateLimitStrategy) -> RateLimitStrategy:
        """
        Resolve a strategy from its name.

        Raises:
            ConfigurationError: If the name matches no strategy.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown rate limiting strategy: {value!r}. Expected one of: {choices}"
            ) from None


@dataclass(frozen=True, slots=True)
class WindowConfig:
    """
    Immutable threshold and window length shared by every strategy.

    Business Rules:
    - threshold is a positive integer (max allowed actions per window)
    - time_interval is a positive integer number of milliseconds
    """
    threshold: int
    time_interval: int

    def __post_init__(self):
        """Validate both values at construction time"""
        for name in ("threshold", "time_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")

    @property
    def time_interval_seconds(self) -> float:
        """Window length in seconds, as timers expect it"""
        return self.time_interval / 1000

    @property
    def ttl_seconds(self) -> int:
        """Whole-second expiry covering the window, never below one second"""
        return max(1, math.ceil(self.time_interval / 1000))
