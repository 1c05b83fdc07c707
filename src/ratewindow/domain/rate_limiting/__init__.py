"""Rate Limiting Domain Module

One contract (`RateLimiter`) and six interchangeable strategies spanning
fixed-window vs. sliding-window semantics and local-memory vs. shared-store
(memcached, Redis) state:

- FixedWindowInMemoryRateLimiter / FixedWindowMemcachedRateLimiter
- SlidingWindowMinHeapRateLimiter / SlidingWindowListRateLimiter
- SlidingWindowRedisListRateLimiter / SlidingWindowRedisSortedSetRateLimiter
"""

from .base import BaseRateLimiter, RateLimiter, wall_clock_ms
from .fixed_window import (
    FixedWindowInMemoryRateLimiter,
    FixedWindowMemcachedRateLimiter,
    FixedWindowRateLimiter,
)
from .redis_sliding_window import (
    RedisSlidingWindowRateLimiter,
    SlidingWindowRedisListRateLimiter,
    SlidingWindowRedisSortedSetRateLimiter,
)
from .sliding_window import (
    LocalSlidingWindowRateLimiter,
    SlidingWindowListRateLimiter,
    SlidingWindowMinHeapRateLimiter,
)
from .structures import BoundedMinHeap, TimestampLog
from .value_objects import RateLimitStrategy, WindowConfig

__all__ = [
    "RateLimiter",
    "BaseRateLimiter",
    "wall_clock_ms",
    "RateLimitStrategy",
    "WindowConfig",
    "BoundedMinHeap",
    "TimestampLog",
    "FixedWindowRateLimiter",
    "FixedWindowInMemoryRateLimiter",
    "FixedWindowMemcachedRateLimiter",
    "LocalSlidingWindowRateLimiter",
    "SlidingWindowMinHeapRateLimiter",
    "SlidingWindowListRateLimiter",
    "RedisSlidingWindowRateLimiter",
    "SlidingWindowRedisListRateLimiter",
    "SlidingWindowRedisSortedSetRateLimiter",
]
