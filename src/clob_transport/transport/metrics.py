"""Metrics collection for the transport layer."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar

from clob_transport.errors import ErrorKind


@dataclass
class TransportMetrics:
    """Metrics for transport operations.

    Singleton class that tracks request counts by status, retries,
    failures by error kind, bytes received and rate-limiter waits.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_retry_total: int = 0
    http_failures_total: dict[str, int] = field(default_factory=dict)
    http_bytes_total: int = 0
    rate_limit_wait_total: int = 0

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["TransportMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "TransportMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(self, status_code: int, bytes_received: int) -> None:
        """Record a completed HTTP request.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of body bytes read.
        """
        with self._lock:
            self.http_requests_total[status_code] = (
                self.http_requests_total.get(status_code, 0) + 1
            )
            self.http_bytes_total += bytes_received

    def record_retry(self) -> None:
        """Record a retry attempt."""
        with self._lock:
            self.http_retry_total += 1

    def record_failure(self, kind: ErrorKind) -> None:
        """Record a terminal failure.

        Args:
            kind: Kind of the error surfaced to the caller.
        """
        with self._lock:
            key = kind.value
            self.http_failures_total[key] = self.http_failures_total.get(key, 0) + 1

    def record_rate_limit_wait(self) -> None:
        """Record a request that had to wait for the rate limiter."""
        with self._lock:
            self.rate_limit_wait_total += 1

    def to_dict(self) -> dict[str, int | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "http_requests_total": dict(self.http_requests_total),
                "http_retry_total": self.http_retry_total,
                "http_failures_total": dict(self.http_failures_total),
                "http_bytes_total": self.http_bytes_total,
                "rate_limit_wait_total": self.rate_limit_wait_total,
            }
