"""
Rate limiter settings.
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ratewindow.domain.rate_limiting.value_objects import RateLimitStrategy


class RateLimitingSettings(BaseSettings):
    """
    Defines the single threshold and window every caller is limited against.

    THRESHOLD and TIME_INTERVAL keep the names the deployment scripts already
    export. TIME_INTERVAL is expressed in milliseconds.
    """
    THRESHOLD: int = Field(ge=1, default=5)
    TIME_INTERVAL: int = Field(ge=1, default=600_000)
    RATE_LIMIT_STRATEGY: RateLimitStrategy = RateLimitStrategy.SLIDING_WINDOW_REDIS_SORTED_SET
    RATE_LIMIT_KEY_PREFIX: str = "ratewindow:"

    @field_validator("RATE_LIMIT_STRATEGY", mode="before")
    @classmethod
    def normalize_strategy(cls, value):
        """
        Accepts strategy names in any case and with dashes, e.g. ``Sliding-Window-List``.
        """
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value
