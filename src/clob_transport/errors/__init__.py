"""Error taxonomy for the CLOB transport.

Two coexisting styles:
- ``ClobError``: kind-tagged error with a structured detail record
- ``APIError``: sentinel subclasses produced by ``classify``
"""

from clob_transport.errors.api import (
    APIError,
    ApiErrorCategory,
    BadRequestError,
    RateLimitedError,
    ServerError,
    UnauthorizedError,
    UnknownAPIError,
    classify,
)
from clob_transport.errors.constants import MAX_RAW_BODY_BYTES
from clob_transport.errors.error import (
    BodyTooLargeError,
    ClobError,
    classify_http,
    detail_as,
    error_kind,
    find_error,
    geoblock_error,
    missing_contract_config_error,
    status_error,
    sync_error,
    validation_error,
    with_source,
)
from clob_transport.errors.models import (
    ErrorDetail,
    ErrorKind,
    GeoblockDetail,
    MissingContractConfigDetail,
    StatusDetail,
    SynchronizationDetail,
    ValidationDetail,
)


__all__ = [
    # Kind-tagged errors
    "ClobError",
    "BodyTooLargeError",
    "ErrorKind",
    "ErrorDetail",
    "StatusDetail",
    "ValidationDetail",
    "SynchronizationDetail",
    "GeoblockDetail",
    "MissingContractConfigDetail",
    "classify_http",
    "detail_as",
    "error_kind",
    "find_error",
    "geoblock_error",
    "missing_contract_config_error",
    "status_error",
    "sync_error",
    "validation_error",
    "with_source",
    # Sentinel errors
    "APIError",
    "ApiErrorCategory",
    "BadRequestError",
    "RateLimitedError",
    "ServerError",
    "UnauthorizedError",
    "UnknownAPIError",
    "classify",
    # Constants
    "MAX_RAW_BODY_BYTES",
]
