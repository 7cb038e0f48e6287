"""Unit tests for abandonable blocking calls."""

import threading
import time
from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor

import pytest

from clob_transport.transport import (
    Context,
    ContextCancelledError,
    DeadlineExceededError,
    run_until_done,
)


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    """Executor shut down without waiting for stalled workers."""
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=False)


class TestRunUntilDone:
    """Tests for run_until_done."""

    def test_returns_result(self, executor: ThreadPoolExecutor) -> None:
        """Test that a finished call returns its value."""
        assert run_until_done(Context.background(), executor, lambda: 42) == 42

    def test_propagates_exception(self, executor: ThreadPoolExecutor) -> None:
        """Test that errors raised by the call reach the caller."""

        def fail() -> None:
            raise OSError("boom")

        with pytest.raises(OSError, match="boom"):
            run_until_done(Context.background(), executor, fail)

    def test_cancel_abandons_blocked_call(
        self, executor: ThreadPoolExecutor
    ) -> None:
        """Test that cancelling returns control while the call still blocks."""
        release = threading.Event()
        ctx = Context.background()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        start = time.monotonic()
        with pytest.raises(ContextCancelledError):
            run_until_done(ctx, executor, lambda: release.wait(5))
        elapsed = time.monotonic() - start
        release.set()
        timer.join()

        assert elapsed < 1.0

    def test_deadline_abandons_blocked_call(
        self, executor: ThreadPoolExecutor
    ) -> None:
        """Test that an expiring deadline stops the wait."""
        release = threading.Event()
        ctx = Context.background().with_timeout(0.05)

        start = time.monotonic()
        with pytest.raises(DeadlineExceededError):
            run_until_done(ctx, executor, lambda: release.wait(5))
        elapsed = time.monotonic() - start
        release.set()

        assert elapsed < 1.0

    def test_abandoned_result_handed_over(
        self, executor: ThreadPoolExecutor
    ) -> None:
        """Test that the late result is passed to on_abandon."""
        release = threading.Event()
        abandoned: list["Future[str]"] = []
        delivered = threading.Event()

        def on_abandon(future: "Future[str]") -> None:
            abandoned.append(future)
            delivered.set()

        def slow() -> str:
            release.wait(5)
            return "late"

        ctx = Context.background()
        ctx.cancel()
        with pytest.raises(ContextCancelledError):
            run_until_done(ctx, executor, slow, on_abandon=on_abandon)
        release.set()

        assert delivered.wait(2)
        assert abandoned[0].result() == "late"

    def test_callback_unregistered_after_return(
        self, executor: ThreadPoolExecutor
    ) -> None:
        """Test that a finished call leaves no callback on the context."""
        ctx = Context.background()

        run_until_done(ctx, executor, lambda: None)

        assert ctx._callbacks == {}
