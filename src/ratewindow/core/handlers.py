from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for the rate limiter exceptions,
translating them into appropriate HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from ratewindow.core.exceptions import (
    RateLimitExceededError,
    RateWindowError,
    StoreUnavailableError,
)

__all__ = [
    "rate_limit_exceeded_error_handler",
    "store_unavailable_error_handler",
    "rate_window_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


async def rate_limit_exceeded_error_handler(
    request: Request, exc: RateLimitExceededError
) -> JSONResponse:
    """Handles `RateLimitExceededError`, returning a `429 Too Many Requests`.

    Args:
        request: The incoming `Request` object.
        exc: The `RateLimitExceededError` instance.

    Returns:
        A `JSONResponse` with a 429 status code and error detail.
    """
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": str(exc)},
    )


async def store_unavailable_error_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    """Handles `StoreUnavailableError`, returning a `500 Internal Server Error`.

    A store failure is neither an allow nor a deny.
    """
    logger.error(
        "rate_limiter_store_unavailable",
        store=exc.store,
        operation=exc.operation,
        error=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Rate limiter unavailable"},
    )


async def rate_window_error_handler(request: Request, exc: RateWindowError) -> JSONResponse:
    """Handles any other `RateWindowError` as a generic server error."""
    logger.error("unhandled_rate_window_error", error=exc.code, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_error_handler)
    app.add_exception_handler(RateWindowError, rate_window_error_handler)
