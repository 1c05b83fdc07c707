"""Main application entry point for the FastAPI application.

This module serves as the central entry point for the application.
It configures logging and creates the FastAPI instance using the
application factory pattern.
"""

import uvicorn

from ratewindow.core.application import create_application
from ratewindow.core.config.settings import settings
from ratewindow.core.logging import configure_logging

# Configure logging before the first logger is used
configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

# Create the FastAPI application
app = create_application(settings)


def run() -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    uvicorn.run(
        "ratewindow.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
