"""Public (unauthenticated) CLOB client shell over the transport."""

import json

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from clob_transport.errors import ErrorKind, validation_error, with_source
from clob_transport.observability import get_logger
from clob_transport.redaction import redact_url_credentials
from clob_transport.settings import TransportSettings
from clob_transport.transport import Context, Transport, TransportPolicy, default_policy


logger = get_logger(__name__)


class PingResponse(BaseModel):
    """Minimal response of the ping endpoint.

    JSON bodies populate the fields; anything else lands in ``raw``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str = ""
    status: str = ""
    ok: bool = False
    raw: str = ""


def validate_base_url(base_url: str, require_https: bool = False) -> str:
    """Validate and normalize an API base URL.

    The query and fragment are dropped and a trailing slash removed; any
    non-root path prefix is kept.

    Args:
        base_url: URL such as ``https://clob.polymarket.com``.
        require_https: Reject schemes other than https.

    Returns:
        Normalized base URL without a trailing slash.

    Raises:
        ClobError: VALIDATION if the URL is empty, malformed, lacks a
            scheme or host, or violates ``require_https``.
    """
    base_url = base_url.strip()
    if not base_url:
        raise validation_error("base_url must be non-empty")

    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise with_source(ErrorKind.VALIDATION, e) from e

    if not url.scheme or not url.host:
        raise validation_error(
            "base_url must include scheme and host (e.g., https://example.com)"
        )
    if require_https and url.scheme != "https":
        raise validation_error("base_url must use https scheme")

    netloc = url.netloc.decode("ascii")
    return f"{url.scheme}://{netloc}{url.path.rstrip('/')}"


class PublicClient:
    """Client for public endpoints of the CLOB API.

    Base URL problems are raised at construction time, before any network
    activity.
    """

    def __init__(
        self,
        base_url: str,
        transport: Transport | None = None,
        require_https: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL.
            transport: Transport to use. Defaults to one with the default
                policy over a client owned by this instance.
            require_https: Reject non-https base URLs.

        Raises:
            ClobError: VALIDATION for an invalid base URL.
        """
        self._base_url = validate_base_url(base_url, require_https)
        self._owned_client: httpx.Client | None = None
        self._owns_transport = transport is None
        if transport is None:
            self._owned_client = httpx.Client()
            transport = Transport(self._owned_client, default_policy())
        self._transport = transport
        self._log = logger.bind(
            component="public_client",
            base_url=redact_url_credentials(self._base_url),
        )

    @classmethod
    def from_settings(
        cls,
        settings: TransportSettings,
        client: httpx.Client | None = None,
    ) -> "PublicClient":
        """Build a client from environment settings.

        Args:
            settings: Loaded settings.
            client: HTTP client to use; one is created and owned otherwise.

        Returns:
            Configured PublicClient.
        """
        policy: TransportPolicy = settings.to_policy()
        # Fail before creating a client that would need closing
        validate_base_url(settings.base_url, settings.require_https)
        owned = client is None
        http_client = httpx.Client() if client is None else client
        instance = cls(
            settings.base_url,
            transport=Transport(http_client, policy),
            require_https=settings.require_https,
        )
        instance._owns_transport = True
        if owned:
            instance._owned_client = http_client
        return instance

    @property
    def base_url(self) -> str:
        """Normalized base URL."""
        return self._base_url

    @property
    def transport(self) -> Transport:
        """Transport executing requests."""
        return self._transport

    def endpoint(self, path: str) -> str:
        """Join an endpoint path onto the base URL, keeping its path prefix."""
        if not path.startswith("/"):
            path = "/" + path
        return self._base_url + path

    def ping(self, ctx: Context | None = None) -> PingResponse:
        """Call the ping endpoint.

        Args:
            ctx: Caller context; a background context if omitted.

        Returns:
            Parsed response, or the raw text for non-JSON bodies.

        Raises:
            ClobError: On transport or HTTP failures.
        """
        ctx = ctx or Context.background()
        body = self._transport.do_json(ctx, "GET", self.endpoint("/ping"))

        try:
            parsed = json.loads(body)
            if isinstance(parsed, dict):
                return PingResponse.model_validate(parsed)
        except (ValueError, ValidationError):
            self._log.debug("ping_non_json_response", bytes=len(body))

        raw = body.decode("utf-8", errors="replace").strip()
        return PingResponse(raw=raw, ok=bool(raw))

    def close(self) -> None:
        """Close the transport and HTTP client if this instance created them."""
        if self._owns_transport:
            self._transport.close()
        if self._owned_client is not None:
            self._owned_client.close()
            self._owned_client = None

    def __enter__(self) -> "PublicClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
