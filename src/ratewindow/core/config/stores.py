"""
Shared store settings (Redis and memcached).
"""
import logging

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class StoreSettings(BaseSettings):
    """
    Defines connection targets for the shared-store strategies.

    Security Note:
        - REDIS_URL should use ``rediss://`` when the store is reached over an
          untrusted network. Passwords are never logged.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = Field(default="", validate_default=True)

    MEMCACHED_URL: str = "localhost:11211"

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        redis_password = values.get("REDIS_PASSWORD")
        secret = redis_password.get_secret_value() if redis_password else ""
        password = f":{secret}@" if secret else ""

        url = f"{protocol}://{password}{values.get('REDIS_HOST')}:{values.get('REDIS_PORT')}/0"
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url

    @field_validator("MEMCACHED_URL")
    @classmethod
    def validate_memcached_url(cls, value: str) -> str:
        """
        Validates the ``host:port`` form of the memcached target.

        Raises:
            ValueError: If the port is missing or not a number.
        """
        host, sep, port = value.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"Invalid MEMCACHED_URL: {value}. Must be 'host:port'.")
        return value
