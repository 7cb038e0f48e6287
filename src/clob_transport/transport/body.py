"""Size-limited response bodies that release their request context on close."""

import threading
from collections.abc import Callable, Iterator
from concurrent.futures import Executor

import httpx

from clob_transport.transport.context import Context
from clob_transport.transport.dispatch import run_until_done


class LimitedBody(httpx.SyncByteStream):
    """Wrap a response stream, yielding at most ``limit`` bytes.

    Reading stops silently at the limit, so a caller that configures
    ``limit = cap + 1`` detects overflow by seeing more than ``cap`` bytes,
    or by ``limit_reached`` when the bytes are decoded afterwards. The
    context is checked between chunks; with an executor, each chunk is
    read on a worker so a stalled read can be abandoned on cancel.
    ``on_close`` runs exactly once, however many times ``close`` is called
    and from whichever thread.
    """

    def __init__(
        self,
        stream: httpx.SyncByteStream,
        limit: int,
        ctx: Context,
        on_close: Callable[[], None],
        executor: Executor | None = None,
    ) -> None:
        """Initialize the body wrapper.

        Args:
            stream: Underlying response stream.
            limit: Maximum number of bytes to yield.
            ctx: Context bounding the reads.
            on_close: Release callback for the request's resources.
            executor: Runs each blocking chunk read; reads inline if None.
        """
        self._stream = stream
        self._limit = limit
        self._ctx = ctx
        self._on_close = on_close
        self._executor = executor
        self._closed = False
        self._limit_reached = False
        self._close_lock = threading.Lock()

    def _chunks(self) -> Iterator[bytes]:
        if self._executor is None:
            yield from self._stream
            return
        iterator = iter(self._stream)
        while True:
            chunk = run_until_done(
                self._ctx, self._executor, lambda: next(iterator, None)
            )
            if chunk is None:
                return
            yield chunk

    def __iter__(self) -> Iterator[bytes]:
        remaining = self._limit
        if remaining <= 0:
            self._limit_reached = True
            return
        for chunk in self._chunks():
            self._ctx.raise_if_done()
            if len(chunk) > remaining:
                chunk = chunk[:remaining]
            remaining -= len(chunk)
            yield chunk
            if remaining <= 0:
                self._limit_reached = True
                return

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._stream.close()
        finally:
            self._on_close()

    @property
    def closed(self) -> bool:
        """Whether close has been called."""
        return self._closed

    @property
    def limit_reached(self) -> bool:
        """Whether reading stopped because ``limit`` bytes were yielded."""
        return self._limit_reached


def read_limited(response: httpx.Response, limit: int) -> bytes:
    """Read a decoded response body, stopping once ``limit`` bytes are held.

    The limit applies after Content-Encoding is undone, so a compressed
    body never inflates past it in memory.

    Args:
        response: Response to read. The caller closes it.
        limit: Maximum number of decoded bytes to keep.

    Returns:
        At most ``limit`` bytes of the decoded body.
    """
    buffer = bytearray()
    for chunk in response.iter_bytes():
        buffer += chunk[: limit - len(buffer)]
        if len(buffer) >= limit:
            break
    return bytes(buffer)


def wire_limit_reached(response: httpx.Response) -> bool:
    """Check if a response stream was cut off at its byte limit."""
    stream = response.stream
    return isinstance(stream, LimitedBody) and stream.limit_reached
