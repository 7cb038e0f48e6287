"""Token-bucket rate limiter for outbound API calls."""

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Protocol

from clob_transport.transport.context import Context, DeadlineExceededError


class RateLimiterProtocol(Protocol):
    """Protocol for rate limiters.

    Allows dependency injection of rate limiter for testing.
    """

    def wait(self, ctx: Context, tokens: int = 1) -> bool:
        """Block until tokens are available or the context is done.

        Args:
            ctx: Context bounding the wait.
            tokens: Number of tokens to acquire.

        Returns:
            True if the caller had to wait for tokens.
        """
        ...


@dataclass
class TokenBucketRateLimiter:
    """Token bucket rate limiter for API QPS control.

    Tokens are replenished continuously at ``rate`` per second up to
    ``burst``. Waiters reserve their tokens up front, so the bucket may go
    negative and later callers queue behind earlier ones in arrival order.

    Thread-safe implementation for use by concurrent callers.

    Attributes:
        rate: Tokens added per second.
        burst: Maximum tokens in the bucket (burst capacity).
    """

    rate: float
    burst: int = 0  # Will be set to ceil(rate) if 0

    _tokens: float = field(init=False, default=0.0)
    _last_refill: float = field(init=False, default=0.0)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _rate_limited_count: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        """Initialize the rate limiter state."""
        if self.rate <= 0:
            msg = f"rate must be positive, got {self.rate}"
            raise ValueError(msg)
        if self.burst <= 0:
            self.burst = max(1, math.ceil(self.rate))
        self._tokens = float(self.burst)
        self._last_refill = time.monotonic()

    def _refill(self) -> None:
        """Refill tokens based on elapsed time.

        Must be called while holding the lock.
        """
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._last_refill = now

    def _give_back(self, tokens: int) -> None:
        with self._lock:
            self._refill()
            self._tokens = min(float(self.burst), self._tokens + tokens)

    def wait(self, ctx: Context, tokens: int = 1) -> bool:
        """Reserve tokens and block until they are available.

        Args:
            ctx: Context bounding the wait.
            tokens: Number of tokens to acquire.

        Returns:
            True if the caller had to wait for tokens.

        Raises:
            ValueError: If more tokens are requested than the burst allows.
            ContextCancelledError: If the context is cancelled while waiting.
            DeadlineExceededError: If the wait cannot finish before the
                context deadline.
        """
        if tokens > self.burst:
            msg = f"requested {tokens} tokens exceeds burst {self.burst}"
            raise ValueError(msg)
        ctx.raise_if_done()

        with self._lock:
            self._refill()
            self._tokens -= tokens
            delay = -self._tokens / self.rate if self._tokens < 0 else 0.0
            remaining = ctx.remaining()
            if delay > 0 and remaining is not None and delay > remaining:
                self._tokens += tokens
                msg = "rate limiter wait would exceed context deadline"
                raise DeadlineExceededError(msg)
            if delay > 0:
                self._rate_limited_count += 1

        if delay <= 0:
            return False

        # Release lock before sleeping
        if ctx.wait(delay):
            self._give_back(tokens)
            ctx.raise_if_done()
        return True

    @property
    def rate_limited_count(self) -> int:
        """Get the number of waits that had to block."""
        with self._lock:
            return self._rate_limited_count

    def get_available_tokens(self) -> float:
        """Get the current number of available tokens.

        Negative while waiters hold reservations.

        Returns:
            Current token count.
        """
        with self._lock:
            self._refill()
            return self._tokens
