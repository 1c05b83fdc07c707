from __future__ import annotations

"""FastAPI dependency that gates a route on the application's rate limiter.

The limiter lives on ``app.state.rate_limiter`` (set by the lifespan), so
tests can swap it for any `RateLimiter` implementation.
"""

from fastapi import Request
from structlog import get_logger

from ratewindow.core.exceptions import RateLimitExceededError
from ratewindow.domain.rate_limiting import RateLimiter

logger = get_logger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter attached to the running application."""
    return request.app.state.rate_limiter


async def enforce_rate_limit(user_id: str, request: Request) -> None:
    """Admit the request for ``user_id`` or raise `RateLimitExceededError`.

    `StoreUnavailableError` from a shared-store limiter propagates unchanged
    and is rendered by its own handler.
    """
    limiter = get_rate_limiter(request)
    if not await limiter.is_allowed(user_id):
        logger.warning(
            "rate_limit_exceeded",
            user_id=user_id,
            threshold=limiter.get_threshold(),
            time_interval_ms=limiter.get_time_interval(),
            path=request.url.path,
        )
        raise RateLimitExceededError()
