"""Kind-tagged error type and its construction helpers."""

import traceback
from collections.abc import Iterator
from typing import TypeVar

from pydantic import BaseModel

from clob_transport.errors.models import (
    ErrorDetail,
    ErrorKind,
    GeoblockDetail,
    MissingContractConfigDetail,
    StatusDetail,
    SynchronizationDetail,
    ValidationDetail,
)


E = TypeVar("E", bound=BaseException)
D = TypeVar("D", bound=BaseModel)


class ClobError(Exception):
    """Top-level error carrying a kind, an optional detail and a cause.

    Callers branch on ``kind`` or on the detail variant instead of parsing
    messages::

        match err.detail:
            case StatusDetail(status_code=429):
                ...
            case GeoblockDetail(country=country):
                ...

    Attributes:
        kind: Discriminant of the error.
        detail: Structured detail record, if the kind has one.
        source: Lower-level exception that caused this error.
        stack: Call stack captured when the error was constructed.
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: ErrorDetail | None = None,
        source: BaseException | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            kind: Discriminant of the error.
            detail: Structured detail record.
            source: Underlying cause, also exposed as ``__cause__``.
        """
        self.kind = kind
        self.detail = detail
        self.source = source
        self.stack = traceback.extract_stack()[:-1]
        super().__init__(self._format())
        if source is not None:
            self.__cause__ = source

    def _format(self) -> str:
        parts = [self.kind.value]
        if self.detail is not None:
            parts.append(str(self.detail))
        if self.source is not None:
            parts.append(str(self.source) or type(self.source).__name__)
        return ": ".join(parts)

    def detail_as(self, detail_type: type[D]) -> D | None:
        """Return the detail if it is of the requested variant."""
        if isinstance(self.detail, detail_type):
            return self.detail
        return None

    def to_dict(self) -> dict[str, str | None]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "detail_type": type(self.detail).__name__ if self.detail else None,
            "message": str(self),
            "source_type": type(self.source).__name__ if self.source else None,
        }


class BodyTooLargeError(Exception):
    """Response body exceeded the configured maximum size."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"response body too large (limit {limit} bytes)")


def _iter_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def find_error(exc: BaseException, error_type: type[E]) -> E | None:
    """Find the first exception of a type in an exception's cause chain.

    Args:
        exc: Exception to inspect, included in the search.
        error_type: Exception class to look for.

    Returns:
        The matching exception, or None.
    """
    for item in _iter_chain(exc):
        if isinstance(item, error_type):
            return item
    return None


def error_kind(exc: BaseException) -> ErrorKind | None:
    """Return the kind of the outermost ClobError in the chain."""
    found = find_error(exc, ClobError)
    return found.kind if found is not None else None


def detail_as(exc: BaseException, detail_type: type[D]) -> D | None:
    """Extract a structured detail of a given variant from any chain depth.

    Args:
        exc: Exception to inspect.
        detail_type: Detail model class to look for.

    Returns:
        The first matching detail, or None.
    """
    for item in _iter_chain(exc):
        if isinstance(item, ClobError) and isinstance(item.detail, detail_type):
            return item.detail
    return None


def with_source(kind: ErrorKind, source: BaseException) -> ClobError:
    """Wrap a lower-level exception under a kind."""
    return ClobError(kind, source=source)


def status_error(status_code: int, method: str, path: str, message: str) -> ClobError:
    """Build a STATUS error for a non-2xx response.

    Args:
        status_code: HTTP status code.
        method: HTTP method of the request.
        path: URL path of the request.
        message: Response body preview.

    Returns:
        ClobError of kind STATUS.
    """
    detail = StatusDetail(
        status_code=status_code, method=method, path=path, message=message
    )
    return ClobError(ErrorKind.STATUS, detail=detail)


def classify_http(status_code: int, method: str, path: str, message: str) -> ClobError:
    """Classify an HTTP failure; all HTTP failures are STATUS errors."""
    return status_error(status_code, method, path, message)


def validation_error(reason: str) -> ClobError:
    """Build a VALIDATION error."""
    return ClobError(ErrorKind.VALIDATION, detail=ValidationDetail(reason=reason))


def sync_error() -> ClobError:
    """Build a SYNCHRONIZATION error."""
    return ClobError(ErrorKind.SYNCHRONIZATION, detail=SynchronizationDetail())


def geoblock_error(ip: str, country: str, region: str) -> ClobError:
    """Build a GEOBLOCK error."""
    detail = GeoblockDetail(ip=ip, country=country, region=region)
    return ClobError(ErrorKind.GEOBLOCK, detail=detail)


def missing_contract_config_error(chain_id: int, neg_risk: bool) -> ClobError:
    """Build an INTERNAL error for a chain without contract configuration."""
    detail = MissingContractConfigDetail(chain_id=chain_id, neg_risk=neg_risk)
    return ClobError(ErrorKind.INTERNAL, detail=detail)
