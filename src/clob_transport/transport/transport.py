"""Rate-limited, timeout-bound, size-capped HTTP request executor."""

from concurrent.futures import Future, ThreadPoolExecutor

import httpx
import structlog

from clob_transport.errors import ErrorKind, with_source
from clob_transport.redaction import redact_headers, redact_url_credentials
from clob_transport.transport.body import LimitedBody
from clob_transport.transport.config import TransportPolicy
from clob_transport.transport.constants import (
    DEFAULT_DISPATCH_WORKERS,
    JSON_CONTENT_TYPE,
)
from clob_transport.transport.context import Context, DeadlineExceededError
from clob_transport.transport.dispatch import run_until_done
from clob_transport.transport.metrics import TransportMetrics
from clob_transport.transport.rate_limiter import (
    RateLimiterProtocol,
    TokenBucketRateLimiter,
)
from clob_transport.transport.retry import do_json_with_retry


logger = structlog.get_logger()

# Headers describing the wire body, stale once httpx has decoded it
_WIRE_BODY_HEADERS = ("Content-Encoding", "Content-Length", "Transfer-Encoding")


def _close_late_response(future: "Future[httpx.Response]") -> None:
    if not future.cancelled() and future.exception() is None:
        future.result().close()


class Transport:
    """Execute HTTP requests under a TransportPolicy.

    Every request:
    - waits for the rate limiter, if one is configured
    - runs under a child context bounded by the policy timeout
    - gets the policy User-Agent unless it already has one
    - returns a body capped at max_body_bytes + 1 bytes

    Sends and body reads run on worker threads, so cancelling the caller
    context returns control promptly even while a socket is blocked.

    ``do`` performs a single attempt; ``do_json`` adds retries.
    """

    def __init__(
        self,
        client: httpx.Client,
        policy: TransportPolicy,
        rate_limiter: RateLimiterProtocol | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: HTTP client used to send requests.
            policy: Rules applied to every request.
            rate_limiter: Limiter shared with other transports. Defaults to
                a new token bucket built from ``policy.rate_limit``.
        """
        self._client = client
        self._policy = policy
        if rate_limiter is None and policy.rate_limit is not None:
            rate_limiter = TokenBucketRateLimiter(
                rate=policy.rate_limit.per_second,
                burst=policy.rate_limit.burst,
            )
        self._rate_limiter = rate_limiter
        self._executor = ThreadPoolExecutor(
            max_workers=DEFAULT_DISPATCH_WORKERS,
            thread_name_prefix="clob-transport",
        )
        self._log = logger.bind(component="transport")

    @property
    def policy(self) -> TransportPolicy:
        """Policy applied to every request."""
        return self._policy

    @property
    def max_body_bytes(self) -> int:
        """Largest accepted response body."""
        return self._policy.max_body_bytes

    def do(self, ctx: Context, request: httpx.Request) -> httpx.Response:
        """Send a single request.

        The returned response is streaming; reading it yields at most
        ``max_body_bytes + 1`` bytes. Closing it releases the request's
        child context, so callers must close it on every path.

        Args:
            ctx: Caller context.
            request: Request to send.

        Returns:
            Streaming response.

        Raises:
            ContextCancelledError: If ``ctx`` is cancelled before a response.
            DeadlineExceededError: If the deadline passes before a response.
            httpx.HTTPError: On other transport failures.
        """
        if self._rate_limiter is not None and self._rate_limiter.wait(ctx):
            TransportMetrics.get_instance().record_rate_limit_wait()

        # Released by the response body on close, not when this call returns
        request_ctx = ctx.with_timeout(self._policy.timeout_seconds)

        if self._policy.user_agent and "User-Agent" not in request.headers:
            request.headers["User-Agent"] = self._policy.user_agent

        try:
            request_ctx.raise_if_done()
            request.extensions["timeout"] = httpx.Timeout(
                request_ctx.remaining()
            ).as_dict()
            response = run_until_done(
                request_ctx,
                self._executor,
                lambda: self._client.send(request, stream=True),
                on_abandon=_close_late_response,
            )
        except httpx.TimeoutException as e:
            request_ctx.cancel()
            msg = f"request timed out after {self._policy.timeout_seconds}s"
            raise DeadlineExceededError(msg) from e
        except Exception:
            request_ctx.cancel()
            raise

        limit = self._policy.max_body_bytes + 1
        if response.is_closed:
            # Transports that build responses from bytes hand them over
            # already read; nothing is left to release on close.
            request_ctx.cancel()
            if len(response.content) > limit:
                response = self._truncated(response, limit)
        else:
            response.stream = LimitedBody(
                response.stream,  # type: ignore[arg-type]
                limit=limit,
                ctx=request_ctx,
                on_close=request_ctx.cancel,
                executor=self._executor,
            )

        self._log.debug(
            "request_dispatched",
            method=request.method,
            url=redact_url_credentials(str(request.url)),
            headers=redact_headers(request.headers),
            status_code=response.status_code,
        )
        return response

    @staticmethod
    def _truncated(response: httpx.Response, limit: int) -> httpx.Response:
        headers = response.headers.copy()
        for name in _WIRE_BODY_HEADERS:
            headers.pop(name, None)
        return httpx.Response(
            response.status_code,
            headers=headers,
            content=response.content[:limit],
            request=response.request,
            extensions=response.extensions,
        )

    def do_json(
        self,
        ctx: Context,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> bytes:
        """Send a JSON request with retries and return the response body.

        Args:
            ctx: Caller context.
            method: HTTP method.
            url: Absolute URL.
            headers: Extra request headers.
            body: Encoded JSON payload; sets Content-Type when given.

        Returns:
            Body bytes of a 2xx response.

        Raises:
            ClobError: STATUS for non-2xx responses, INTERNAL otherwise.
        """
        try:
            request = httpx.Request(method, url, headers=headers, content=body)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise with_source(ErrorKind.INTERNAL, e) from e

        if body is not None:
            request.headers["Content-Type"] = JSON_CONTENT_TYPE

        return do_json_with_retry(ctx, self, request)

    def close(self) -> None:
        """Stop the worker threads once in-flight calls finish.

        The HTTP client belongs to the caller and stays open. Requests made
        afterwards raise RuntimeError.
        """
        self._executor.shutdown(wait=False, cancel_futures=True)
