"""Resilient HTTP transport.

This module provides request execution with:
- Token-bucket rate limiting shared safely across threads
- Per-request timeouts derived from a cancellable caller context
- Maximum response size enforcement
- Idempotency-aware retries with exponential backoff and body replay
- Header redaction in logs and metrics collection
"""

from clob_transport.transport.body import LimitedBody, read_limited, wire_limit_reached
from clob_transport.transport.config import (
    RateLimit,
    RetryPolicy,
    TransportPolicy,
    default_policy,
)
from clob_transport.transport.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_DISPATCH_WORKERS,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    IDEMPOTENT_METHODS,
)
from clob_transport.transport.context import (
    Context,
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
)
from clob_transport.transport.dispatch import run_until_done
from clob_transport.transport.metrics import TransportMetrics
from clob_transport.transport.rate_limiter import (
    RateLimiterProtocol,
    TokenBucketRateLimiter,
)
from clob_transport.transport.retry import (
    BodySnapshot,
    backoff_delay_ms,
    body_preview,
    do_json_with_retry,
    is_idempotent,
    should_retry_status,
    sleep_backoff,
)
from clob_transport.transport.transport import Transport


__all__ = [
    # Transport
    "Transport",
    "LimitedBody",
    "read_limited",
    "run_until_done",
    "wire_limit_reached",
    # Config
    "TransportPolicy",
    "RetryPolicy",
    "RateLimit",
    "default_policy",
    # Context
    "Context",
    "ContextError",
    "ContextCancelledError",
    "DeadlineExceededError",
    # Rate limiting
    "RateLimiterProtocol",
    "TokenBucketRateLimiter",
    # Retry
    "BodySnapshot",
    "backoff_delay_ms",
    "body_preview",
    "do_json_with_retry",
    "is_idempotent",
    "should_retry_status",
    "sleep_backoff",
    # Constants
    "DEFAULT_BASE_DELAY_MS",
    "DEFAULT_DISPATCH_WORKERS",
    "DEFAULT_MAX_BODY_BYTES",
    "DEFAULT_MAX_DELAY_MS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "IDEMPOTENT_METHODS",
    # Metrics
    "TransportMetrics",
]
