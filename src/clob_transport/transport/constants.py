"""Defaults for the transport layer."""

# Policy defaults
DEFAULT_TIMEOUT_SECONDS = 12.0
DEFAULT_RATE_LIMIT_PER_SECOND = 8.0
DEFAULT_RATE_LIMIT_BURST = 16
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024  # 2 MiB
DEFAULT_USER_AGENT = "clob-transport/0.1"

# Worker threads per transport for sends and body reads
DEFAULT_DISPATCH_WORKERS = 32

# Retry defaults
DEFAULT_MAX_RETRIES = 2
DEFAULT_BASE_DELAY_MS = 150
DEFAULT_MAX_DELAY_MS = 2000

# Used when a policy is configured with a non-positive base delay
FALLBACK_BASE_DELAY_MS = 50

# Methods safe to repeat; PUT and DELETE are idempotent per HTTP semantics
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})

JSON_CONTENT_TYPE = "application/json"
