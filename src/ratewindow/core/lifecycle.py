"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring the
configured rate limiter is created before the first request and destroyed
when the server process terminates.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ratewindow.core.config.settings import Settings
from ratewindow.core.logging import logger
from ratewindow.core.rate_limiting import managed_rate_limiter_from_settings


def create_lifespan_manager(settings: Settings):
    """Create the application lifespan manager.

    Args:
        settings: Settings describing the limiter to build.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Builds the limiter on startup and always destroys it on shutdown.

        Raises:
            ConfigurationError: If the configured strategy cannot be built.
            StoreUnavailableError: If the shared store is unreachable on startup.
        """
        async with managed_rate_limiter_from_settings(settings) as limiter:
            app.state.rate_limiter = limiter
            logger.info(
                "application_startup",
                env=settings.APP_ENV,
                version=settings.VERSION,
                strategy=settings.RATE_LIMIT_STRATEGY.value,
            )

            yield

            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
