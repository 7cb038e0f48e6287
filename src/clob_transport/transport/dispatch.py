"""Run blocking I/O on worker threads so callers can abandon it on cancel."""

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import TypeVar

from clob_transport.transport.context import Context


T = TypeVar("T")


def run_until_done(
    ctx: Context,
    executor: Executor,
    fn: Callable[[], T],
    on_abandon: Callable[["Future[T]"], None] | None = None,
) -> T:
    """Run ``fn`` on the executor and wait for it or for the context.

    A blocked socket operation cannot be interrupted from another thread,
    so the caller stops waiting instead. The worker finishes on its own,
    bounded by the httpx timeout, and ``on_abandon`` then receives its
    future so late results can be released.

    Args:
        ctx: Context bounding the wait.
        executor: Executor running ``fn``.
        fn: Blocking call.
        on_abandon: Called with the future when the caller gives up on it.

    Returns:
        The result of ``fn``.

    Raises:
        ContextCancelledError: If the context is cancelled first.
        DeadlineExceededError: If the deadline passes first.
        Exception: Whatever ``fn`` raises.
    """
    future = executor.submit(fn)
    wake = threading.Event()
    future.add_done_callback(lambda _: wake.set())
    unregister = ctx.on_done(wake.set)
    try:
        while True:
            if future.done():
                return future.result()
            err = ctx.err()
            if err is not None:
                if on_abandon is not None:
                    future.add_done_callback(on_abandon)
                raise err
            wake.wait(ctx.remaining())
            wake.clear()
    finally:
        unregister()
