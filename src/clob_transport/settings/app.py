"""Transport settings powered by Pydantic BaseSettings."""

from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clob_transport.transport.config import RateLimit, RetryPolicy, TransportPolicy
from clob_transport.transport.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RATE_LIMIT_BURST,
    DEFAULT_RATE_LIMIT_PER_SECOND,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)


class TransportSettings(BaseSettings):
    """Environment configuration for the transport (``CLOB_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="CLOB_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://clob.polymarket.com"
    require_https: bool = True
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    rate_limit_enabled: bool = True
    rate_limit_per_second: Annotated[float, Field(gt=0.0)] = (
        DEFAULT_RATE_LIMIT_PER_SECOND
    )
    rate_limit_burst: Annotated[int, Field(ge=1)] = DEFAULT_RATE_LIMIT_BURST
    max_body_bytes: Annotated[int, Field(ge=1)] = DEFAULT_MAX_BODY_BYTES
    max_retries: Annotated[int, Field(ge=0, le=10)] = DEFAULT_MAX_RETRIES
    base_delay_ms: Annotated[int, Field(ge=0)] = DEFAULT_BASE_DELAY_MS
    max_delay_ms: Annotated[int, Field(ge=0)] = DEFAULT_MAX_DELAY_MS
    user_agent: str = DEFAULT_USER_AGENT

    def to_policy(self) -> TransportPolicy:
        """Build the transport policy described by these settings."""
        rate_limit = None
        if self.rate_limit_enabled:
            rate_limit = RateLimit(
                per_second=self.rate_limit_per_second,
                burst=self.rate_limit_burst,
            )
        return TransportPolicy(
            timeout_seconds=self.timeout_seconds,
            rate_limit=rate_limit,
            max_body_bytes=self.max_body_bytes,
            retry=RetryPolicy(
                max_retries=self.max_retries,
                base_delay_ms=self.base_delay_ms,
                max_delay_ms=self.max_delay_ms,
            ),
            user_agent=self.user_agent,
        )


def get_settings() -> TransportSettings:
    """Get a settings instance."""
    return TransportSettings()
