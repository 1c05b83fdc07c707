"""Unit tests for the local counting structures."""

import pytest

from ratewindow.core.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    CountingStructureError,
    EmptyStateAccessError,
)
from ratewindow.domain.rate_limiting import BoundedMinHeap, TimestampLog


class TestBoundedMinHeap:
    def test_pops_in_ascending_order(self):
        heap = BoundedMinHeap(4)
        for value in (30, 10, 40, 20):
            heap.push(value)

        assert heap.is_full()
        assert [heap.pop() for _ in range(4)] == [10, 20, 30, 40]
        assert heap.is_empty()

    def test_peek_returns_minimum_without_removing(self):
        heap = BoundedMinHeap(3)
        heap.push(5)
        heap.push(2)

        assert heap.peek() == 2
        assert len(heap) == 2

    def test_peek_and_pop_on_empty_heap_raise(self):
        heap = BoundedMinHeap(1)

        with pytest.raises(EmptyStateAccessError):
            heap.peek()
        with pytest.raises(EmptyStateAccessError):
            heap.pop()

    def test_push_beyond_capacity_raises(self):
        heap = BoundedMinHeap(1)
        heap.push(1)

        with pytest.raises(CapacityExceededError):
            heap.push(2)
        assert len(heap) == 1

    def test_capacity_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            BoundedMinHeap(0)


class TestTimestampLog:
    def test_is_first_in_first_out(self):
        log = TimestampLog()
        for value in (1, 2, 2, 5):
            log.push(value)

        assert log.peek() == 1
        assert [log.pop() for _ in range(4)] == [1, 2, 2, 5]
        assert log.is_empty()

    def test_empty_access_raises_structure_error(self):
        log = TimestampLog()

        with pytest.raises(CountingStructureError) as exc_info:
            log.pop()
        assert exc_info.value.code == "empty_state_access"
