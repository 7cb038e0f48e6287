"""Resilient HTTP transport and typed errors for the Polymarket CLOB API."""

from clob_transport.client import PublicClient
from clob_transport.errors import APIError, ClobError, ErrorKind, classify
from clob_transport.transport import (
    Context,
    RateLimit,
    RetryPolicy,
    Transport,
    TransportPolicy,
    default_policy,
)


__version__ = "0.1.0"

__all__ = [
    "APIError",
    "ClobError",
    "Context",
    "ErrorKind",
    "PublicClient",
    "RateLimit",
    "RetryPolicy",
    "Transport",
    "TransportPolicy",
    "classify",
    "default_policy",
]
