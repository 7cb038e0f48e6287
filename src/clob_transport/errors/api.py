"""Sentinel-style API errors derived from an HTTP status and JSON body.

This is a lighter classification path than ``ClobError``: callers compare
against the exception class (``except RateLimitedError``) or the
``category`` enum instead of matching on kinds.
"""

import json
from enum import Enum

from clob_transport.errors.constants import (
    API_ERROR_BODY_PREVIEW_CHARS,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
    HTTP_STATUS_UNAUTHORIZED,
)


class ApiErrorCategory(str, Enum):
    """Sentinel categories for API failures."""

    RATE_LIMITED = "rate limited"
    UNAUTHORIZED = "unauthorized"
    BAD_REQUEST = "bad request"
    SERVER_ERROR = "server error"
    UNKNOWN = "unknown error"


class APIError(Exception):
    """API failure with the parsed error fields and the raw body.

    Attributes:
        status: HTTP status code.
        code: Machine-readable error code from the body, or "".
        message: Human-readable message from the body, or "".
        raw_body: Full response body.
    """

    category = ApiErrorCategory.UNKNOWN

    def __init__(self, status: int, code: str, message: str, raw_body: bytes) -> None:
        self.status = status
        self.code = code
        self.message = message
        self.raw_body = raw_body
        super().__init__(self._format())

    def _format(self) -> str:
        preview = self.raw_body.decode("utf-8", errors="replace")
        if len(preview) > API_ERROR_BODY_PREVIEW_CHARS:
            preview = preview[:API_ERROR_BODY_PREVIEW_CHARS] + "...(truncated)"
        return (
            f"API error: status={self.status}, code={self.code}, "
            f"message={self.message}, body={preview}"
        )


class RateLimitedError(APIError):
    """429 Too Many Requests."""

    category = ApiErrorCategory.RATE_LIMITED


class UnauthorizedError(APIError):
    """401 or 403."""

    category = ApiErrorCategory.UNAUTHORIZED


class BadRequestError(APIError):
    """Any other 4xx."""

    category = ApiErrorCategory.BAD_REQUEST


class ServerError(APIError):
    """5xx and above."""

    category = ApiErrorCategory.SERVER_ERROR


class UnknownAPIError(APIError):
    """Non-2xx status outside the known ranges (1xx, 3xx)."""

    category = ApiErrorCategory.UNKNOWN


def _error_type_for_status(status: int) -> type[APIError]:
    if status == HTTP_STATUS_TOO_MANY_REQUESTS:
        return RateLimitedError
    if status in (HTTP_STATUS_UNAUTHORIZED, HTTP_STATUS_FORBIDDEN):
        return UnauthorizedError
    if HTTP_STATUS_BAD_REQUEST <= status < HTTP_STATUS_SERVER_ERROR_MIN:
        return BadRequestError
    if status >= HTTP_STATUS_SERVER_ERROR_MIN:
        return ServerError
    return UnknownAPIError


def _parse_error_fields(body: bytes) -> tuple[str, str]:
    try:
        parsed = json.loads(body)
    except (ValueError, UnicodeDecodeError, RecursionError):
        return "", ""
    if not isinstance(parsed, dict):
        return "", ""

    message = parsed.get("message")
    if not isinstance(message, str) or not message:
        message = parsed.get("error")
    code = parsed.get("code")
    return (
        code if isinstance(code, str) else "",
        message if isinstance(message, str) else "",
    )


def classify(status: int, body: bytes) -> APIError | None:
    """Map an HTTP status and body onto a sentinel error.

    Args:
        status: HTTP status code.
        body: Raw response body; JSON ``message`` (or ``error``) and
            ``code`` fields are extracted when present.

    Returns:
        None for 2xx statuses, otherwise an APIError subclass instance.
    """
    if HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX:
        return None

    code, message = _parse_error_fields(body)
    error_type = _error_type_for_status(status)
    return error_type(status=status, code=code, message=message, raw_body=body)
