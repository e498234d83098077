"""
String encoding of outcomes for the agent-tool interface.

    SUCCESS: <JSON-encoded payload>
    FAIL: <human-readable reason>
"""

import json
from typing import Any, Callable, Optional

from pydantic import BaseModel

from agent.remote.types import Failure, FailureKind, Outcome, Success

SUCCESS_PREFIX = "SUCCESS: "
FAIL_PREFIX = "FAIL: "

FailureDescriber = Callable[[Failure], str]


def payload_to_json(payload: Any) -> str:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    return json.dumps(payload, ensure_ascii=False)


def describe_failure(failure: Failure) -> str:
    """Default human-readable failure message."""
    if failure.reason == FailureKind.TIMEOUT:
        return f"Request timed out ({failure.detail})."
    if failure.reason == FailureKind.INVALID_INPUT:
        return f"Invalid input: {failure.detail}"
    if failure.reason == FailureKind.MALFORMED_RESPONSE:
        return f"Malformed response: {failure.detail}"
    if failure.reason == FailureKind.UPSTREAM_REJECTED:
        return f"Upstream rejected the request: {failure.detail}"
    return f"Network error: {failure.detail}"


def encode_outcome(outcome: Outcome, describe: Optional[FailureDescriber] = None) -> str:
    if isinstance(outcome, Success):
        return SUCCESS_PREFIX + payload_to_json(outcome.payload)
    return FAIL_PREFIX + (describe or describe_failure)(outcome)
