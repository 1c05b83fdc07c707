"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI application
with its lifespan, exception handlers, and routers registered.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ratewindow.adapters.api.v1 import api_router
from ratewindow.core.config.settings import Settings
from ratewindow.core.config.settings import settings as default_settings
from ratewindow.core.handlers import register_exception_handlers
from ratewindow.core.lifecycle import create_lifespan_manager


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to build the app from; the module singleton by default.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    settings = settings or default_settings
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Per-caller request rate limiting in front of a demo endpoint.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=create_lifespan_manager(settings),
        default_response_class=JSONResponse,
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(api_router)

    return app
