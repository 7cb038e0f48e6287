"""Thin API clients built on the transport."""

from clob_transport.client.public import PingResponse, PublicClient, validate_base_url


__all__ = ["PingResponse", "PublicClient", "validate_base_url"]
