"""
Request descriptor and call outcome schemas.

Invariants:
- RequestDescriptor is immutable; deadline_ms > 0 (otherwise ValidationError)
- locator is NOT validated here, execute() classifies it as INVALID_INPUT
- Outcome is exactly one of Success | Failure
- Outcomes compare by value
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RequestDescriptor(BaseModel):
    """Describes one outbound call: where, which headers, how long."""

    model_config = ConfigDict(frozen=True)

    locator: str
    headers: Dict[str, str] = Field(default_factory=dict)
    deadline_ms: float = Field(..., gt=0, description="Deadline in milliseconds")
    resource_id: Optional[str] = None
    method: Literal["GET", "POST"] = "GET"
    json_body: Optional[Dict[str, Any]] = None

    @property
    def deadline_s(self) -> float:
        return self.deadline_ms / 1000.0

    @property
    def identifier(self) -> str:
        """Identifier used in failure details."""
        return self.resource_id if self.resource_id is not None else self.locator


class FailureKind(str, Enum):
    """Classified failure reasons."""

    INVALID_INPUT = "invalid_input"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"
    UPSTREAM_REJECTED = "upstream_rejected"


# Transient failures. The caller's own policy decides whether to retry them.
RETRYABLE_FAILURES = frozenset({FailureKind.TIMEOUT, FailureKind.NETWORK_ERROR})


class Success(BaseModel):
    """Normalized payload of a completed call."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    payload: Any

    @property
    def ok(self) -> bool:
        return True


class Failure(BaseModel):
    """Classified failure of a call."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    reason: FailureKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.reason in RETRYABLE_FAILURES


Outcome = Union[Success, Failure]
