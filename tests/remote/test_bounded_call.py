"""
tests/remote/test_bounded_call.py

Tests for BoundedRemoteCall.

Verifies:
✔ Malformed locator → INVALID_INPUT with zero transport invocations
✔ Slow transport → TIMEOUT and the transport observes cancellation
✔ Transport error → NETWORK_ERROR
✔ Non-JSON body → MALFORMED_RESPONSE
✔ Weather body → Success with exact field mapping
✔ status != 200 → UPSTREAM_REJECTED referencing the city code
✔ Identical descriptor + deterministic stub → identical outcome
✔ Never raises
"""

import asyncio
import time

import httpx
import pytest

from agent.remote.bounded_call import BoundedRemoteCall, PassthroughNormalizer, format_deadline
from agent.remote.types import Failure, FailureKind, RequestDescriptor, Success
from agent.remote.weather import WeatherNormalizer, WeatherReport


CITY_CODE = "101120101"
WEATHER_URL = f"http://weather.test/api/weather/city/{CITY_CODE}"

WEATHER_BODY = {
    "status": 200,
    "cityInfo": {"city": "济南市", "updateTime": "07:31"},
    "data": {
        "wendu": "21",
        "shidu": "45%",
        "quality": "良",
        "forecast": [{"ymd": "2024-05-01", "high": "高温 28℃", "low": "低温 15℃"}],
    },
}


# ─────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────


class CountingTransport(httpx.AsyncBaseTransport):
    """Returns a fixed response and counts invocations."""

    def __init__(self, status_code: int = 200, json_body=None, text=None):
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.requests = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


class SlowTransport(httpx.AsyncBaseTransport):
    """Sleeps past any reasonable deadline; records whether it was cancelled."""

    def __init__(self, delay_s: float = 5.0):
        self.delay_s = delay_s
        self.calls = 0
        self.cancelled = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        try:
            await asyncio.sleep(self.delay_s)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return httpx.Response(200, json=WEATHER_BODY)


def make_descriptor(locator: str = WEATHER_URL, deadline_ms: float = 1000, **kwargs) -> RequestDescriptor:
    return RequestDescriptor(
        locator=locator,
        headers={"User-Agent": "test-agent/1.0"},
        deadline_ms=deadline_ms,
        resource_id=kwargs.pop("resource_id", CITY_CODE),
        **kwargs,
    )


def weather_call(transport: httpx.AsyncBaseTransport) -> BoundedRemoteCall:
    return BoundedRemoteCall(normalizer=WeatherNormalizer(), transport=transport)


# ─────────────────────────────────────────────────────
# Invalid input
# ─────────────────────────────────────────────────────


class TestInvalidInput:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("locator", ["", "   ", "not a uri", "ftp://weather.test/x", "http://", "/relative/path"])
    async def test_malformed_locator_never_reaches_transport(self, locator):
        transport = CountingTransport(json_body=WEATHER_BODY)
        outcome = await weather_call(transport).execute(make_descriptor(locator=locator))

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.INVALID_INPUT
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_invalid_input_is_not_retryable(self):
        outcome = await weather_call(CountingTransport()).execute(make_descriptor(locator=""))
        assert outcome.retryable is False

    @pytest.mark.asyncio
    async def test_non_ascii_header_value_never_reaches_transport(self):
        transport = CountingTransport(json_body=WEATHER_BODY)
        descriptor = RequestDescriptor(
            locator=WEATHER_URL,
            headers={"User-Agent": "测试"},
            deadline_ms=1000,
            resource_id=CITY_CODE,
        )

        outcome = await weather_call(transport).execute(descriptor)

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.INVALID_INPUT
        assert outcome.retryable is False
        assert "UnicodeEncodeError" in outcome.detail
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_unserializable_body_never_reaches_transport(self):
        transport = CountingTransport(json_body={"id": 1})
        descriptor = make_descriptor(method="POST", json_body={"tags": {1, 2}})

        outcome = await BoundedRemoteCall(transport=transport).execute(descriptor)

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.INVALID_INPUT
        assert outcome.retryable is False
        assert "TypeError" in outcome.detail
        assert transport.requests == []


# ─────────────────────────────────────────────────────
# Timeout
# ─────────────────────────────────────────────────────


class TestTimeout:
    @pytest.mark.asyncio
    async def test_slow_transport_times_out_and_is_cancelled(self):
        transport = SlowTransport(delay_s=5.0)

        started = time.monotonic()
        outcome = await weather_call(transport).execute(make_descriptor(deadline_ms=50))
        elapsed = time.monotonic() - started

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.TIMEOUT
        assert outcome.detail == "50ms exceeded"
        assert outcome.retryable is True
        assert transport.calls == 1
        assert transport.cancelled is True
        assert elapsed < 2.0

    @pytest.mark.asyncio
    async def test_httpx_timeout_exception_maps_to_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        outcome = await weather_call(httpx.MockTransport(handler)).execute(make_descriptor())
        assert outcome.reason == FailureKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_fast_transport_beats_deadline(self):
        transport = SlowTransport(delay_s=0.01)
        outcome = await weather_call(transport).execute(make_descriptor(deadline_ms=2000))

        assert isinstance(outcome, Success)
        assert transport.cancelled is False

    def test_deadline_formatting(self):
        assert format_deadline(30000.0) == "30000"
        assert format_deadline(12.5) == "12.5"


# ─────────────────────────────────────────────────────
# Network errors
# ─────────────────────────────────────────────────────


class TestNetworkError:
    @pytest.mark.asyncio
    async def test_connect_error_returns_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        outcome = await weather_call(httpx.MockTransport(handler)).execute(make_descriptor())

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.NETWORK_ERROR
        assert "connection refused" in outcome.detail
        assert outcome.retryable is True

    @pytest.mark.asyncio
    async def test_unexpected_transport_exception_is_classified(self):
        def handler(request):
            raise RuntimeError("socket exploded")

        outcome = await weather_call(httpx.MockTransport(handler)).execute(make_descriptor())

        assert outcome.reason == FailureKind.NETWORK_ERROR
        assert "socket exploded" in outcome.detail


# ─────────────────────────────────────────────────────
# Response parsing + validation
# ─────────────────────────────────────────────────────


class TestResponseHandling:
    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        transport = CountingTransport(text="<html>502 Bad Gateway</html>", status_code=502)
        outcome = await weather_call(transport).execute(make_descriptor())

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.MALFORMED_RESPONSE
        assert outcome.retryable is False

    @pytest.mark.asyncio
    async def test_upstream_status_404_is_rejected_with_city_code(self):
        transport = CountingTransport(json_body={"status": 404})
        outcome = await weather_call(transport).execute(make_descriptor())

        assert isinstance(outcome, Failure)
        assert outcome.reason == FailureKind.UPSTREAM_REJECTED
        assert CITY_CODE in outcome.detail
        assert outcome.retryable is False

    @pytest.mark.asyncio
    async def test_status_200_without_sections_is_malformed(self):
        transport = CountingTransport(json_body={"status": 200})
        outcome = await weather_call(transport).execute(make_descriptor())
        assert outcome.reason == FailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_json_array_body_is_malformed(self):
        transport = CountingTransport(json_body=[1, 2, 3])
        outcome = await weather_call(transport).execute(make_descriptor())
        assert outcome.reason == FailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_success_maps_fields_exactly(self):
        transport = CountingTransport(json_body=WEATHER_BODY)
        outcome = await weather_call(transport).execute(make_descriptor())

        assert isinstance(outcome, Success)
        report = outcome.payload
        assert isinstance(report, WeatherReport)
        assert report.to_wire() == {
            "city": WEATHER_BODY["cityInfo"]["city"],
            "updateTime": WEATHER_BODY["cityInfo"]["updateTime"],
            "temperature": WEATHER_BODY["data"]["wendu"],
            "humidity": WEATHER_BODY["data"]["shidu"],
            "airQuality": WEATHER_BODY["data"]["quality"],
            "forecast": WEATHER_BODY["data"]["forecast"],
        }

    @pytest.mark.asyncio
    async def test_normalizer_exception_is_malformed(self):
        class ExplodingNormalizer(PassthroughNormalizer):
            def normalize(self, body, descriptor):
                raise KeyError("cityInfo")

        call = BoundedRemoteCall(
            normalizer=ExplodingNormalizer(),
            transport=CountingTransport(json_body=WEATHER_BODY),
        )
        outcome = await call.execute(make_descriptor())
        assert outcome.reason == FailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_passthrough_normalizer_returns_body(self):
        call = BoundedRemoteCall(transport=CountingTransport(json_body={"ok": True}))
        outcome = await call.execute(make_descriptor())
        assert outcome == Success(payload={"ok": True})


# ─────────────────────────────────────────────────────
# Request construction
# ─────────────────────────────────────────────────────


class TestRequestConstruction:
    @pytest.mark.asyncio
    async def test_headers_and_url_are_sent(self):
        transport = CountingTransport(json_body=WEATHER_BODY)
        await weather_call(transport).execute(make_descriptor())

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "GET"
        assert str(request.url) == WEATHER_URL
        assert request.headers["User-Agent"] == "test-agent/1.0"

    @pytest.mark.asyncio
    async def test_post_sends_json_body(self):
        transport = CountingTransport(json_body={"id": 1})
        descriptor = make_descriptor(
            locator="https://blog.test/wp-json/wp/v2/posts",
            method="POST",
            json_body={"title": "Hello"},
        )
        await BoundedRemoteCall(transport=transport).execute(descriptor)

        request = transport.requests[0]
        assert request.method == "POST"
        assert b'"title"' in request.content


# ─────────────────────────────────────────────────────
# Idempotence + concurrency
# ─────────────────────────────────────────────────────


class TestIsolation:
    @pytest.mark.asyncio
    async def test_identical_calls_yield_identical_outcomes(self):
        call = weather_call(CountingTransport(json_body=WEATHER_BODY))
        descriptor = make_descriptor()

        first = await call.execute(descriptor)
        second = await call.execute(descriptor)

        assert first == second

    @pytest.mark.asyncio
    async def test_identical_failures_are_equal(self):
        call = weather_call(CountingTransport(json_body={"status": 404}))
        descriptor = make_descriptor()
        assert await call.execute(descriptor) == await call.execute(descriptor)

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_interfere(self):
        def handler(request):
            code = request.url.path.rsplit("/", 1)[-1]
            body = {**WEATHER_BODY, "cityInfo": {"city": code, "updateTime": "08:00"}}
            return httpx.Response(200, json=body)

        call = weather_call(httpx.MockTransport(handler))
        codes = [f"1011201{i:02d}" for i in range(5)]
        outcomes = await asyncio.gather(*[
            call.execute(make_descriptor(
                locator=f"http://weather.test/api/weather/city/{code}",
                resource_id=code,
            ))
            for code in codes
        ])

        assert [o.payload.city for o in outcomes] == codes


# ─────────────────────────────────────────────────────
# Sync wrapper
# ─────────────────────────────────────────────────────


class TestSyncWrapper:
    def test_execute_sync_outside_event_loop(self):
        call = weather_call(CountingTransport(json_body=WEATHER_BODY))
        outcome = call.execute_sync(make_descriptor())
        assert isinstance(outcome, Success)

    @pytest.mark.asyncio
    async def test_execute_sync_inside_running_loop(self):
        call = weather_call(CountingTransport(json_body=WEATHER_BODY))
        outcome = call.execute_sync(make_descriptor())
        assert isinstance(outcome, Success)

    def test_execute_sync_timeout(self):
        outcome = weather_call(SlowTransport(delay_s=5.0)).execute_sync(make_descriptor(deadline_ms=50))
        assert outcome.reason == FailureKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_execute_sync_stops_waiting_on_stuck_worker(self, monkeypatch):
        async def stuck_execute(self, descriptor):
            await asyncio.sleep(1.0)
            return Success(payload=None)

        monkeypatch.setattr(BoundedRemoteCall, "execute", stuck_execute)
        monkeypatch.setattr(BoundedRemoteCall, "SYNC_GRACE_S", 0.05)

        started = time.monotonic()
        outcome = weather_call(CountingTransport()).execute_sync(make_descriptor(deadline_ms=50))
        elapsed = time.monotonic() - started

        assert outcome == Failure(reason=FailureKind.TIMEOUT, detail="50ms exceeded")
        assert elapsed < 0.8
