"""Unit tests for token-bucket rate limiter."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from clob_transport.transport import (
    Context,
    ContextCancelledError,
    DeadlineExceededError,
    TokenBucketRateLimiter,
)


class TestTokenBucketRateLimiter:
    """Tests for TokenBucketRateLimiter."""

    def test_initial_tokens(self) -> None:
        """Test that bucket starts full."""
        limiter = TokenBucketRateLimiter(rate=8.0, burst=16)
        assert limiter.get_available_tokens() == pytest.approx(16.0)

    def test_default_burst(self) -> None:
        """Test that burst defaults to the rounded-up rate."""
        limiter = TokenBucketRateLimiter(rate=2.5)
        assert limiter.burst == 3

    def test_invalid_rate(self) -> None:
        """Test that non-positive rates are rejected."""
        with pytest.raises(ValueError, match="rate must be positive"):
            TokenBucketRateLimiter(rate=0)

    def test_wait_takes_token_from_full_bucket(self) -> None:
        """Test that a wait on a full bucket returns at once and spends a token."""
        limiter = TokenBucketRateLimiter(rate=10.0)

        assert limiter.wait(Context.background()) is False
        assert limiter.get_available_tokens() < 10.0

    def test_burst_passes_without_waiting(self) -> None:
        """Test that a full bucket admits a burst immediately."""
        limiter = TokenBucketRateLimiter(rate=1.0, burst=5)
        ctx = Context.background()

        start = time.monotonic()
        waited = [limiter.wait(ctx) for _ in range(5)]
        elapsed = time.monotonic() - start

        assert waited == [False] * 5
        assert elapsed < 0.5
        assert limiter.rate_limited_count == 0

    def test_wait_blocks_for_tokens(self) -> None:
        """Test blocking wait for tokens."""
        limiter = TokenBucketRateLimiter(rate=10.0, burst=1)
        ctx = Context.background()

        # Drain the bucket
        assert limiter.wait(ctx) is False

        start = time.monotonic()
        assert limiter.wait(ctx) is True
        elapsed = time.monotonic() - start

        # Should have waited approximately 0.1 seconds (1 token / 10 per second)
        assert elapsed >= 0.08
        assert limiter.rate_limited_count == 1

    def test_waiters_queue_behind_reservations(self) -> None:
        """Test that each waiter reserves its own slot."""
        limiter = TokenBucketRateLimiter(rate=20.0, burst=1)
        ctx = Context.background()
        limiter.wait(ctx)

        start = time.monotonic()
        limiter.wait(ctx)
        limiter.wait(ctx)
        elapsed = time.monotonic() - start

        # Two tokens at 20 per second
        assert elapsed >= 0.08

    def test_token_refill(self) -> None:
        """Test tokens refill over time."""
        limiter = TokenBucketRateLimiter(rate=100.0, burst=10)

        # Drain bucket
        ctx = Context.background()
        for _ in range(10):
            limiter.wait(ctx)

        assert limiter.get_available_tokens() < 1.0

        # Wait for refill
        time.sleep(0.05)  # 5 tokens should refill at 100 per second

        assert limiter.get_available_tokens() >= 4.0

    def test_bucket_capacity(self) -> None:
        """Test bucket doesn't exceed capacity."""
        limiter = TokenBucketRateLimiter(rate=100.0, burst=5)

        # Wait for potential overfill
        time.sleep(0.1)

        assert limiter.get_available_tokens() <= 5.0

    def test_tokens_above_burst_rejected(self) -> None:
        """Test that a request larger than the bucket fails fast."""
        limiter = TokenBucketRateLimiter(rate=1.0, burst=2)

        with pytest.raises(ValueError, match="exceeds burst"):
            limiter.wait(Context.background(), tokens=3)

    def test_rate_limited_count(self) -> None:
        """Test that only waits that had to block are counted."""
        limiter = TokenBucketRateLimiter(rate=50.0, burst=1)
        ctx = Context.background()

        assert limiter.rate_limited_count == 0

        limiter.wait(ctx)
        assert limiter.rate_limited_count == 0

        limiter.wait(ctx)
        assert limiter.rate_limited_count == 1

        limiter.wait(ctx)
        assert limiter.rate_limited_count == 2

    def test_thread_safety(self) -> None:
        """Test that concurrent waits each take exactly one token."""
        # Use low rate so tokens don't refill significantly during test
        limiter = TokenBucketRateLimiter(rate=10.0, burst=100)
        ctx = Context.background()

        def wait_many(n: int) -> int:
            return sum(1 for _ in range(n) if limiter.wait(ctx))

        with ThreadPoolExecutor(max_workers=10) as executor:
            futures = [executor.submit(wait_many, 10) for _ in range(10)]
            blocked = sum(f.result() for f in futures)

        # The initial bucket covers all 100 waits
        assert blocked == 0
        assert limiter.rate_limited_count == 0
        assert -0.5 < limiter.get_available_tokens() < 5.0


class TestRateLimiterContext:
    """Tests for cancellation and deadlines while waiting."""

    def test_cancelled_context_fails_before_reserving(self) -> None:
        """Test that a done context fails without taking tokens."""
        limiter = TokenBucketRateLimiter(rate=1.0, burst=1)
        ctx = Context.background()
        ctx.cancel()

        with pytest.raises(ContextCancelledError):
            limiter.wait(ctx)

        assert limiter.get_available_tokens() == pytest.approx(1.0)

    def test_wait_beyond_deadline_fails_fast(self) -> None:
        """Test that an impossible wait fails without sleeping."""
        limiter = TokenBucketRateLimiter(rate=1.0, burst=1)
        limiter.wait(Context.background())
        ctx = Context.background().with_timeout(0.1)

        start = time.monotonic()
        with pytest.raises(DeadlineExceededError):
            limiter.wait(ctx)
        elapsed = time.monotonic() - start

        assert elapsed < 0.1
        # The reservation was returned
        assert limiter.get_available_tokens() > -0.5

    def test_cancel_while_waiting(self) -> None:
        """Test that cancelling a waiter wakes it and returns its tokens."""
        limiter = TokenBucketRateLimiter(rate=0.5, burst=1)
        limiter.wait(Context.background())
        ctx = Context.background()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        start = time.monotonic()
        with pytest.raises(ContextCancelledError):
            limiter.wait(ctx)
        elapsed = time.monotonic() - start
        timer.join()

        assert elapsed < 1.0
        assert limiter.get_available_tokens() > -0.5

    def test_concurrent_waiters_are_paced(self) -> None:
        """Test that concurrent callers share one bucket."""
        limiter = TokenBucketRateLimiter(rate=50.0, burst=1)
        ctx = Context.background()

        start = time.monotonic()
        with ThreadPoolExecutor(max_workers=5) as executor:
            list(executor.map(lambda _: limiter.wait(ctx), range(6)))
        elapsed = time.monotonic() - start

        # One token up front, five more at 50 per second
        assert elapsed >= 0.08
