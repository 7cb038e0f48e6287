"""Idempotency-aware retries with exponential backoff and body replay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog

from clob_transport.errors import (
    MAX_RAW_BODY_BYTES,
    BodyTooLargeError,
    ErrorKind,
    status_error,
    with_source,
)
from clob_transport.errors.constants import (
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)
from clob_transport.redaction import redact_url_credentials
from clob_transport.transport.body import read_limited, wire_limit_reached
from clob_transport.transport.config import RetryPolicy
from clob_transport.transport.constants import (
    FALLBACK_BASE_DELAY_MS,
    IDEMPOTENT_METHODS,
)
from clob_transport.transport.context import Context, ContextError
from clob_transport.transport.metrics import TransportMetrics


if TYPE_CHECKING:
    from clob_transport.transport.transport import Transport


logger = structlog.get_logger()


def is_idempotent(method: str) -> bool:
    """Check if a method is safe to retry.

    Args:
        method: HTTP method, any case.

    Returns:
        True for GET, HEAD, OPTIONS, PUT and DELETE.
    """
    return method.upper() in IDEMPOTENT_METHODS


def should_retry_status(status_code: int) -> bool:
    """Check if a status is transient: 429 or any 5xx."""
    return status_code == HTTP_STATUS_TOO_MANY_REQUESTS or (
        HTTP_STATUS_SERVER_ERROR_MIN <= status_code < HTTP_STATUS_SERVER_ERROR_MAX
    )


def backoff_delay_ms(policy: RetryPolicy, attempt: int) -> int:
    """Calculate the delay before a retry.

    delay = base * 2^(attempt - 1), clamped to max_delay_ms. The clamp is
    checked before each doubling so large attempt numbers stay bounded.

    Args:
        policy: Retry policy.
        attempt: Retry number, 1 for the first retry.

    Returns:
        Delay in milliseconds.
    """
    attempt = max(attempt, 1)
    cap = policy.max_delay_ms
    delay = policy.base_delay_ms if policy.base_delay_ms > 0 else FALLBACK_BASE_DELAY_MS

    if cap > 0 and delay > cap:
        return cap
    for _ in range(1, attempt):
        if cap > 0 and delay * 2 >= cap:
            return cap
        delay *= 2
    return delay


def sleep_backoff(ctx: Context, policy: RetryPolicy, attempt: int) -> None:
    """Wait out the backoff delay, returning early if the context is done.

    A cancelled context is not an error here; the next dispatch fails on it.
    """
    ctx.wait(backoff_delay_ms(policy, attempt) / 1000.0)


def body_preview(body: bytes) -> str:
    """Truncate a response body for embedding in error messages."""
    return body[:MAX_RAW_BODY_BYTES].decode("utf-8", errors="replace")


def _has_body(request: httpx.Request) -> bool:
    if "Transfer-Encoding" in request.headers:
        return True
    content_length = request.headers.get("Content-Length")
    return content_length is not None and content_length != "0"


@dataclass(frozen=True)
class BodySnapshot:
    """Buffered request payload that can be replayed for every attempt.

    Request streams may only be read once; the snapshot reads the body a
    single time and installs a fresh unread stream over the same bytes on
    each ``reset``.
    """

    data: bytes

    @classmethod
    def capture(cls, request: httpx.Request) -> BodySnapshot | None:
        """Buffer a request body.

        Args:
            request: Request whose body to buffer. It is reset to an
                unread copy after capture.

        Returns:
            The snapshot, or None if the request has no body.

        Raises:
            httpx.StreamConsumed: If the body was already read.
            TypeError: If the request carries an async stream.
        """
        if not _has_body(request):
            return None
        if not isinstance(request.stream, httpx.SyncByteStream):
            msg = "cannot buffer an async request body"
            raise TypeError(msg)
        snapshot = cls(data=b"".join(request.stream))
        snapshot.reset(request)
        return snapshot

    def reset(self, request: httpx.Request) -> None:
        """Replace the request body with a fresh copy of the snapshot."""
        request.stream = httpx.ByteStream(self.data)
        request.headers.pop("Transfer-Encoding", None)
        request.headers["Content-Length"] = str(len(self.data))


def _schedule_retry(
    ctx: Context,
    policy: RetryPolicy,
    attempt: int,
    log: structlog.stdlib.BoundLogger,
    reason: str,
) -> None:
    TransportMetrics.get_instance().record_retry()
    log.debug(
        "retry_scheduled",
        attempt=attempt,
        delay_ms=backoff_delay_ms(policy, attempt),
        max_retries=policy.max_retries,
        reason=reason,
    )
    sleep_backoff(ctx, policy, attempt)


def do_json_with_retry(ctx: Context, transport: Transport, request: httpx.Request) -> bytes:
    """Execute a request with retries and return the raw response body.

    Args:
        ctx: Caller context.
        transport: Transport executing each attempt.
        request: Request to send; its body is replayed on every attempt.

    Returns:
        Body bytes of a 2xx response.

    Raises:
        ClobError: STATUS for non-2xx responses, INTERNAL for transport,
            read and body-size failures.
    """
    policy = transport.policy.retry
    metrics = TransportMetrics.get_instance()
    idempotent = is_idempotent(request.method)
    log = logger.bind(
        component="transport",
        method=request.method,
        url=redact_url_credentials(str(request.url)),
    )
    attempts = 0

    try:
        snapshot = BodySnapshot.capture(request)
    except (httpx.StreamError, TypeError) as e:
        metrics.record_failure(ErrorKind.INTERNAL)
        raise with_source(ErrorKind.INTERNAL, e) from e

    while True:
        # Each attempt must send the same payload
        if snapshot is not None:
            snapshot.reset(request)

        try:
            response = transport.do(ctx, request)
        except (httpx.HTTPError, ContextError) as e:
            # Only retry network-ish failures for idempotent methods
            if not idempotent or attempts >= policy.max_retries:
                log.warning(
                    "request_failed",
                    attempts=attempts + 1,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                metrics.record_failure(ErrorKind.INTERNAL)
                raise with_source(ErrorKind.INTERNAL, e) from e
            attempts += 1
            _schedule_retry(ctx, policy, attempts, log, reason=type(e).__name__)
            continue

        try:
            body = read_limited(response, transport.max_body_bytes + 1)
            truncated = wire_limit_reached(response)
        except (httpx.HTTPError, ContextError) as e:
            metrics.record_failure(ErrorKind.INTERNAL)
            raise with_source(ErrorKind.INTERNAL, e) from e
        finally:
            response.close()

        metrics.record_request(response.status_code, len(body))

        # Over the cap once decoded, or cut off on the wire
        if len(body) > transport.max_body_bytes or truncated:
            metrics.record_failure(ErrorKind.INTERNAL)
            size_error = BodyTooLargeError(transport.max_body_bytes)
            raise with_source(ErrorKind.INTERNAL, size_error) from size_error

        if HTTP_STATUS_OK_MIN <= response.status_code < HTTP_STATUS_OK_MAX:
            return body

        error = status_error(
            response.status_code,
            request.method,
            request.url.path,
            body_preview(body),
        )
        if (
            not idempotent
            or attempts >= policy.max_retries
            or not should_retry_status(response.status_code)
        ):
            log.info(
                "request_failed",
                attempts=attempts + 1,
                status_code=response.status_code,
            )
            metrics.record_failure(ErrorKind.STATUS)
            raise error

        attempts += 1
        _schedule_retry(
            ctx, policy, attempts, log, reason=f"status_{response.status_code}"
        )
