"""Error kinds and structured detail records."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Discriminant of the error taxonomy.

    - STATUS: Non-2xx HTTP response
    - VALIDATION: Malformed caller input
    - SYNCHRONIZATION: Concurrent conflicting operations detected
    - INTERNAL: Transport, network or body failures and unexpected conditions
    - WEBSOCKET: Reserved for streaming connections
    - GEOBLOCK: Access denied for the caller's region
    """

    STATUS = "status"
    VALIDATION = "validation"
    SYNCHRONIZATION = "synchronization"
    INTERNAL = "internal"
    WEBSOCKET = "websocket"
    GEOBLOCK = "geoblock"


class StatusDetail(BaseModel):
    """Non-2xx HTTP response."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=100, le=999, description="HTTP status code")
    method: Annotated[str, Field(min_length=1, description="HTTP method")]
    path: str = Field(default="", description="Request URL path")
    message: str = Field(default="", description="Truncated response body")

    def __str__(self) -> str:
        return (
            f"error({self.status_code}) making {self.method} call to "
            f"{self.path} with {self.message}"
        )


class ValidationDetail(BaseModel):
    """Caller input that failed validation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    reason: Annotated[str, Field(min_length=1)]

    def __str__(self) -> str:
        return f"invalid: {self.reason}"


class SynchronizationDetail(BaseModel):
    """Conflicting concurrent operations were detected."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __str__(self) -> str:
        return (
            "synchronization error: multiple threads are attempting to "
            "log in or create keys"
        )


class GeoblockDetail(BaseModel):
    """Access denied based on the caller's location."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ip: str
    country: str
    region: str

    def __str__(self) -> str:
        return (
            f"access blocked from country: {self.country}, "
            f"region: {self.region}, ip: {self.ip}"
        )


class MissingContractConfigDetail(BaseModel):
    """No contract configuration exists for a chain."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    chain_id: int
    neg_risk: bool

    def __str__(self) -> str:
        return (
            f"missing contract config for chain id {self.chain_id}, "
            f"neg risk: {self.neg_risk}"
        )


ErrorDetail = (
    StatusDetail
    | ValidationDetail
    | SynchronizationDetail
    | GeoblockDetail
    | MissingContractConfigDetail
)
