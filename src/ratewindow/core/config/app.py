"""
Application-specific settings.
"""
from pydantic import Field
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, bind address and logging.

    Performance Note:
        - A single worker keeps in-memory strategies consistent; run shared-store
          strategies when serving from several processes.
    """
    PROJECT_NAME: str = "ratewindow"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(ge=1, le=65535, default=8080)

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
