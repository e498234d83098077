"""
tests/remote/test_request_types.py

RequestDescriptor / Outcome schema invariants.

Verifies:
✔ deadline_ms must be strictly positive
✔ Descriptors and outcomes are immutable
✔ Only timeout and network_error are retryable
✔ Outcomes compare by value
"""

import pytest
from pydantic import ValidationError

from agent.remote.types import (
    RETRYABLE_FAILURES,
    Failure,
    FailureKind,
    RequestDescriptor,
    Success,
)


class TestRequestDescriptor:
    @pytest.mark.parametrize("deadline_ms", [0, -1, -30000])
    def test_non_positive_deadline_rejected(self, deadline_ms):
        with pytest.raises(ValidationError):
            RequestDescriptor(locator="http://weather.test/x", deadline_ms=deadline_ms)

    def test_locator_is_not_validated_at_construction(self):
        descriptor = RequestDescriptor(locator="not a uri", deadline_ms=100)
        assert descriptor.locator == "not a uri"

    def test_defaults(self):
        descriptor = RequestDescriptor(locator="http://weather.test/x", deadline_ms=250)
        assert descriptor.method == "GET"
        assert descriptor.headers == {}
        assert descriptor.json_body is None
        assert descriptor.deadline_s == 0.25

    def test_identifier_prefers_resource_id(self):
        with_id = RequestDescriptor(locator="http://weather.test/x", deadline_ms=1, resource_id="101")
        without_id = RequestDescriptor(locator="http://weather.test/x", deadline_ms=1)

        assert with_id.identifier == "101"
        assert without_id.identifier == "http://weather.test/x"

    def test_descriptor_is_frozen(self):
        descriptor = RequestDescriptor(locator="http://weather.test/x", deadline_ms=100)
        with pytest.raises(ValidationError):
            descriptor.deadline_ms = 5

    def test_unknown_method_rejected(self):
        with pytest.raises(ValidationError):
            RequestDescriptor(locator="http://weather.test/x", deadline_ms=100, method="DELETE")


class TestOutcome:
    def test_success_flags(self):
        outcome = Success(payload={"a": 1})
        assert outcome.ok is True
        assert outcome.kind == "success"

    @pytest.mark.parametrize("reason,retryable", [
        (FailureKind.TIMEOUT, True),
        (FailureKind.NETWORK_ERROR, True),
        (FailureKind.INVALID_INPUT, False),
        (FailureKind.MALFORMED_RESPONSE, False),
        (FailureKind.UPSTREAM_REJECTED, False),
    ])
    def test_retryable_classification(self, reason, retryable):
        failure = Failure(reason=reason, detail="x")
        assert failure.ok is False
        assert failure.retryable is retryable

    def test_retryable_set(self):
        assert RETRYABLE_FAILURES == {FailureKind.TIMEOUT, FailureKind.NETWORK_ERROR}

    def test_value_equality(self):
        assert Failure(reason=FailureKind.TIMEOUT, detail="50ms exceeded") == Failure(
            reason=FailureKind.TIMEOUT, detail="50ms exceeded"
        )
        assert Success(payload=[1, 2]) == Success(payload=[1, 2])
        assert Success(payload=[1, 2]) != Success(payload=[2, 1])

    def test_failure_is_frozen(self):
        failure = Failure(reason=FailureKind.TIMEOUT)
        with pytest.raises(ValidationError):
            failure.detail = "changed"

    def test_failure_kind_values(self):
        assert FailureKind("upstream_rejected") is FailureKind.UPSTREAM_REJECTED
        assert FailureKind.TIMEOUT.value == "timeout"
