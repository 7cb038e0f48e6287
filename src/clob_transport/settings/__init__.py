"""Environment-driven settings."""

from clob_transport.settings.app import TransportSettings, get_settings


__all__ = ["TransportSettings", "get_settings"]
