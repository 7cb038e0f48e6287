"""Structured logging configuration."""

import logging
import sys
from collections.abc import Mapping
from typing import Any, TextIO

import structlog

from clob_transport.redaction import (
    is_sensitive_header,
    redact,
    redact_headers,
    redact_url_credentials,
)


def redact_sensitive_fields(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Scrub credentials that reach the renderer.

    Header mappings are redacted by name, URLs lose their userinfo, and
    top-level fields named like credentials are masked.
    """
    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        if isinstance(value, Mapping) and key.endswith("headers"):
            event_dict[key] = redact_headers(value)
        elif isinstance(value, str) and key.endswith("url"):
            event_dict[key] = redact_url_credentials(value)
        elif isinstance(value, str) and is_sensitive_header(key):
            event_dict[key] = redact(value)
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for transport consumers.

    Events get timestamps, log levels and bound context, pass through
    credential redaction, then render as JSON lines or console output.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    # Not cached: loggers bound at import time follow later reconfiguration
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_request_context(request_id: str) -> None:
    """Bind a correlation id to all subsequent log messages in this context.

    Args:
        request_id: Caller-chosen correlation identifier.
    """
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    """Clear the correlation id from log messages."""
    structlog.contextvars.unbind_contextvars("request_id")
