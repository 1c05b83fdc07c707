from __future__ import annotations

"""Centralized, structured exception hierarchy for ratewindow.

Each exception carries a machine-readable `code` for programmatic error
handling and a human-readable `message` for logging. The hierarchy maps
cleanly onto the HTTP layer:

- `ConfigurationError` is raised while building a limiter and never reaches
  a request.
- `StoreUnavailableError` is the distinct failure outcome of `is_allowed`
  on shared-store strategies and maps to `500 Internal Server Error`.
- `RateLimitExceededError` is raised by the HTTP dependency and maps to
  `429 Too Many Requests`.
- `CountingStructureError` and its subclasses are internal programmer errors
  of the local counting structures.
"""

from typing import Final

__all__: Final = [
    "RateWindowError",
    "ConfigurationError",
    "StoreUnavailableError",
    "CountingStructureError",
    "EmptyStateAccessError",
    "CapacityExceededError",
    "RateLimitExceededError",
]


class RateWindowError(Exception):
    """Base exception class for all custom errors in ratewindow.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Construction errors
# ---------------------------------------------------------------------------


class ConfigurationError(RateWindowError):
    """Raised when a limiter is built with an invalid configuration.

    Covers non-positive thresholds or intervals, unknown strategy names and
    missing store connection targets.
    """

    def __init__(self, message: str, code: str = "configuration_error"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Shared-store errors (map to 500 Internal Server Error)
# ---------------------------------------------------------------------------


class StoreUnavailableError(RateWindowError):
    """Raised when the external cache or store fails a primitive call.

    The limiter never maps this failure to "allowed" or "denied"; the caller
    decides what to do with it.

    Attributes:
        store (str): Which store failed (``redis`` or ``memcached``).
        operation (str): The primitive that failed (e.g. ``rpush``).
    """

    def __init__(
        self,
        message: str,
        store: str = "unknown",
        operation: str = "unknown",
        code: str = "store_unavailable",
    ):
        super().__init__(message, code)
        self.store = store
        self.operation = operation


# ---------------------------------------------------------------------------
# Counting structure errors (internal)
# ---------------------------------------------------------------------------


class CountingStructureError(RateWindowError):
    """Base error for misuse of the local counting structures."""

    def __init__(self, message: str, code: str = "counting_structure_error"):
        super().__init__(message, code)


class EmptyStateAccessError(CountingStructureError):
    """Raised when peeking or popping an empty heap or timestamp log."""

    def __init__(self, message: str = "structure is empty", code: str = "empty_state_access"):
        super().__init__(message, code)


class CapacityExceededError(CountingStructureError):
    """Raised when pushing into a bounded heap that is already full."""

    def __init__(self, message: str = "structure is full", code: str = "capacity_exceeded"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# HTTP-facing errors
# ---------------------------------------------------------------------------


class RateLimitExceededError(RateWindowError):
    """Raised by the HTTP dependency when a caller is denied.

    Maps to a `429 Too Many Requests` HTTP status code.
    """

    def __init__(self, message: str = "Too many requests", code: str = "rate_limit_exceeded"):
        super().__init__(message, code)
