"""
Local counting structures for the in-process sliding-window strategies.

- BoundedMinHeap: timestamps ordered by value, capacity fixed at the threshold
- TimestampLog: FIFO log relying on timestamps arriving in non-decreasing order

Both raise EmptyStateAccessError on peek/pop when empty. The limiters check
emptiness before every peek, so the error never escapes `is_allowed`.
"""

from __future__ import annotations

import heapq
from collections import deque
from typing import Deque, List

from ratewindow.core.exceptions import CapacityExceededError, ConfigurationError, EmptyStateAccessError


class BoundedMinHeap:
    """Min-heap of integer timestamps holding at most ``capacity`` items."""

    __slots__ = ("_items", "_capacity")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ConfigurationError(f"heap capacity must be positive, got {capacity!r}")
        self._items: List[int] = []
        self._capacity = capacity

    def __len__(self) -> int:
        return len(self._items)

    @property
    def capacity(self) -> int:
        return self._capacity

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) >= self._capacity

    def peek(self) -> int:
        """Return the oldest timestamp without removing it."""
        if not self._items:
            raise EmptyStateAccessError("heap is empty")
        return self._items[0]

    def push(self, timestamp: int) -> None:
        if self.is_full():
            raise CapacityExceededError(f"heap is full (capacity {self._capacity})")
        heapq.heappush(self._items, timestamp)

    def pop(self) -> int:
        """Remove and return the oldest timestamp."""
        if not self._items:
            raise EmptyStateAccessError("heap is empty")
        return heapq.heappop(self._items)


class TimestampLog:
    """FIFO of timestamps: append at the tail, evict from the head."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: Deque[int] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def peek(self) -> int:
        """Return the head (oldest) timestamp without removing it."""
        if not self._items:
            raise EmptyStateAccessError("timestamp log is empty")
        return self._items[0]

    def push(self, timestamp: int) -> None:
        self._items.append(timestamp)

    def pop(self) -> int:
        if not self._items:
            raise EmptyStateAccessError("timestamp log is empty")
        return self._items.popleft()
