"""Observability helpers."""

from clob_transport.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    redact_sensitive_fields,
)


__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "redact_sensitive_fields",
]
