"""Configuration models for the transport layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

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


class RetryPolicy(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff without jitter:
    delay = base_delay_ms * 2^(attempt - 1), capped at max_delay_ms.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: Annotated[int, Field(ge=0, le=10)] = DEFAULT_MAX_RETRIES
    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = DEFAULT_BASE_DELAY_MS
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = DEFAULT_MAX_DELAY_MS


class RateLimit(BaseModel):
    """Token-bucket parameters: refill rate and burst capacity."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    per_second: Annotated[float, Field(gt=0.0, le=10000.0)] = (
        DEFAULT_RATE_LIMIT_PER_SECOND
    )
    burst: Annotated[int, Field(ge=1, le=100000)] = DEFAULT_RATE_LIMIT_BURST


class TransportPolicy(BaseModel):
    """Rules every request executed by a Transport must follow.

    Built once by the caller and passed to the Transport constructor; a
    ``rate_limit`` of None disables rate limiting.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    rate_limit: RateLimit | None = Field(default_factory=RateLimit)
    max_body_bytes: Annotated[int, Field(ge=1, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_BODY_BYTES
    )
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    user_agent: Annotated[str, Field(max_length=500)] = DEFAULT_USER_AGENT


def default_policy() -> TransportPolicy:
    """Return a fresh policy with conservative defaults."""
    return TransportPolicy()
