"""Rate limiter construction and lifecycle.

Usage:
    from ratewindow.core.rate_limiting import managed_rate_limiter

    async with managed_rate_limiter("sliding_window_list", 5, 600_000) as limiter:
        allowed = await limiter.is_allowed("user-42")
"""

from .factory import (
    create_rate_limiter,
    create_rate_limiter_from_settings,
    install_shutdown_handlers,
    managed_rate_limiter,
    managed_rate_limiter_from_settings,
)

__all__ = [
    "create_rate_limiter",
    "create_rate_limiter_from_settings",
    "install_shutdown_handlers",
    "managed_rate_limiter",
    "managed_rate_limiter_from_settings",
]
