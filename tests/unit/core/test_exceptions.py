"""Unit tests for the exception hierarchy."""

import pytest

from ratewindow.core.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    CountingStructureError,
    EmptyStateAccessError,
    RateLimitExceededError,
    RateWindowError,
    StoreUnavailableError,
)


@pytest.mark.parametrize(
    "exc, code",
    [
        (ConfigurationError("bad"), "configuration_error"),
        (StoreUnavailableError("down"), "store_unavailable"),
        (EmptyStateAccessError(), "empty_state_access"),
        (CapacityExceededError(), "capacity_exceeded"),
        (RateLimitExceededError(), "rate_limit_exceeded"),
    ],
)
def test_every_error_is_a_rate_window_error_with_a_code(exc, code):
    assert isinstance(exc, RateWindowError)
    assert exc.code == code


def test_message_is_the_string_form():
    assert str(RateLimitExceededError()) == "Too many requests"
    assert str(ConfigurationError("threshold must be positive")) == "threshold must be positive"


def test_store_unavailable_carries_store_and_operation():
    exc = StoreUnavailableError("redis rpush failed", store="redis", operation="rpush")

    assert (exc.store, exc.operation) == ("redis", "rpush")


def test_structure_errors_share_a_base():
    assert issubclass(EmptyStateAccessError, CountingStructureError)
    assert issubclass(CapacityExceededError, CountingStructureError)
