"""Redaction of secrets in headers, URLs and free-form strings."""

from clob_transport.redaction.redact import (
    DEFAULT_REDACTION,
    SENSITIVE_HEADERS,
    is_sensitive_header,
    redact,
    redact_headers,
    redact_url_credentials,
)


__all__ = [
    "DEFAULT_REDACTION",
    "SENSITIVE_HEADERS",
    "is_sensitive_header",
    "redact",
    "redact_headers",
    "redact_url_credentials",
]
