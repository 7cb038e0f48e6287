"""Cancellation and deadline propagation for blocking transport calls.

A ``Context`` is passed top-down through a request. Cancelling a context
cancels every context derived from it; a derived context never outlives the
deadline of its parent.
"""

import threading
import time
from collections.abc import Callable


class ContextError(Exception):
    """Base exception for a context that is done."""


class ContextCancelledError(ContextError):
    """The context was cancelled explicitly."""


class DeadlineExceededError(ContextError, TimeoutError):
    """The context deadline passed."""


class Context:
    """Cancellation signal with an optional monotonic deadline.

    Thread-safe: any thread may cancel while others wait on the context.
    """

    def __init__(
        self,
        deadline: float | None = None,
        parent: "Context | None" = None,
    ) -> None:
        """Initialize the context.

        Args:
            deadline: Absolute ``time.monotonic()`` deadline, or None.
            parent: Context this one derives from.
        """
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self._deadline = deadline
        self._parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: set[Context] = set()
        self._err: ContextError | None = None
        self._callbacks: dict[object, Callable[[], None]] = {}

        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "Context":
        """Return a fresh context that is never cancelled on its own."""
        return cls()

    def with_timeout(self, seconds: float) -> "Context":
        """Derive a child context that expires after ``seconds``."""
        return Context(deadline=time.monotonic() + seconds, parent=self)

    def with_cancel(self) -> "Context":
        """Derive a child context that can be cancelled independently."""
        return Context(parent=self)

    @property
    def deadline(self) -> float | None:
        """Absolute monotonic deadline, if any."""
        return self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this context and all of its children. Idempotent."""
        self._finish(ContextCancelledError("context cancelled"))

    def err(self) -> ContextError | None:
        """Return why the context is done, or None while it is live."""
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._finish(DeadlineExceededError("context deadline exceeded"))
        return self._err

    @property
    def done(self) -> bool:
        """Whether the context is cancelled or past its deadline."""
        return self.err() is not None

    def raise_if_done(self) -> None:
        """Raise the context error if the context is done.

        Raises:
            ContextCancelledError: If the context was cancelled.
            DeadlineExceededError: If the deadline passed.
        """
        err = self.err()
        if err is not None:
            raise err

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds`` or until the context is done.

        Args:
            seconds: Maximum time to block.

        Returns:
            True if the context finished before the time elapsed.
        """
        timeout = seconds
        remaining = self.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)
        if timeout > 0 and self._event.wait(timeout):
            return True
        return self.err() is not None

    def on_done(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback to run once when the context finishes.

        The callback runs immediately if the context is already done. A
        deadline is noticed lazily: callbacks fire when the expiry is
        observed through ``err``, ``done`` or a wait, not at the instant it
        passes.

        Args:
            callback: Function called with no arguments.

        Returns:
            Function that unregisters the callback.
        """
        token = object()
        with self._lock:
            if self._err is None:
                self._callbacks[token] = callback
                return lambda: self._remove_callback(token)
        callback()
        return lambda: None

    def _remove_callback(self, token: object) -> None:
        with self._lock:
            self._callbacks.pop(token, None)

    def _attach(self, child: "Context") -> None:
        with self._lock:
            err = self._err
            if err is None:
                self._children.add(child)
        if err is not None:
            child._finish(err)

    def _detach(self, child: "Context") -> None:
        with self._lock:
            self._children.discard(child)

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._err is not None:
                return
            self._err = err
            children = list(self._children)
            self._children.clear()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        self._event.set()

        # Propagate outside the lock; children detach from their parent.
        for child in children:
            child._finish(err)
        for callback in callbacks:
            callback()
        if self._parent is not None:
            self._parent._detach(self)
