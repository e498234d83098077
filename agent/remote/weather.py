"""
Weather lookup by city code (t.weather.itboy.net).

Upstream contract:
    GET {base}/{cityCode}   (User-Agent header required)
    {
      "status": 200,
      "cityInfo": {"city": "...", "updateTime": "..."},
      "data": {"wendu": "...", "shidu": "...", "quality": "...", "forecast": [...]}
    }

Values are passed through verbatim; this layer never interprets them.
"""

from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from agent.remote.bounded_call import BoundedRemoteCall, ResponseNormalizer
from agent.remote.encoding import describe_failure, encode_outcome
from agent.remote.types import (
    Failure,
    FailureKind,
    Outcome,
    RequestDescriptor,
    Success,
)
from agent.remote.user_agents import HeaderValueProvider, random_user_agent
from agent.tracing.tracer import TraceMetadata, Tracer

DEFAULT_WEATHER_BASE_URL = "http://t.weather.itboy.net/api/weather/city"
DEFAULT_WEATHER_TIMEOUT_MS = 30000


# ──────────────────────────────────────────────────────────────
# SCHEMAS
# ──────────────────────────────────────────────────────────────


class _UpstreamCityInfo(BaseModel):
    city: Any = None
    updateTime: Any = None


class _UpstreamData(BaseModel):
    wendu: Any = None
    shidu: Any = None
    quality: Any = None
    forecast: Any = None


class _UpstreamWeather(BaseModel):
    """Only the sections we read; everything else is ignored."""

    cityInfo: Optional[_UpstreamCityInfo] = None
    data: Optional[_UpstreamData] = None


class WeatherReport(BaseModel):
    """Normalized weather payload. Serialized with the camelCase wire names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    city: Any
    update_time: Any = Field(alias="updateTime")
    temperature: Any
    humidity: Any
    air_quality: Any = Field(alias="airQuality")
    forecast: Any

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# ──────────────────────────────────────────────────────────────
# NORMALIZER
# ──────────────────────────────────────────────────────────────


class WeatherNormalizer(ResponseNormalizer):
    """Checks the "status" discriminator and repackages cityInfo/data."""

    def normalize(self, body: Any, descriptor: RequestDescriptor) -> Outcome:
        if not isinstance(body, dict):
            return Failure(
                reason=FailureKind.MALFORMED_RESPONSE,
                detail=f"expected a JSON object, got {type(body).__name__}",
            )

        if body.get("status") != 200:
            return Failure(reason=FailureKind.UPSTREAM_REJECTED, detail=descriptor.identifier)

        raw = _UpstreamWeather.model_validate(body)

        if raw.cityInfo is None or raw.data is None:
            return Failure(
                reason=FailureKind.MALFORMED_RESPONSE,
                detail="response is missing cityInfo or data",
            )

        return Success(payload=WeatherReport(
            city=raw.cityInfo.city,
            updateTime=raw.cityInfo.updateTime,
            temperature=raw.data.wendu,
            humidity=raw.data.shidu,
            airQuality=raw.data.quality,
            forecast=raw.data.forecast,
        ))


# ──────────────────────────────────────────────────────────────
# CLIENT
# ──────────────────────────────────────────────────────────────


class WeatherClient:
    """Builds weather descriptors and runs them through a BoundedRemoteCall."""

    def __init__(
        self,
        base_url: str = DEFAULT_WEATHER_BASE_URL,
        timeout_ms: float = DEFAULT_WEATHER_TIMEOUT_MS,
        user_agent: HeaderValueProvider = random_user_agent,
        remote_call: Optional[BoundedRemoteCall] = None,
        tracer: Optional[Tracer] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self._user_agent = user_agent
        self._call = remote_call or BoundedRemoteCall(
            normalizer=WeatherNormalizer(),
            tracer=tracer,
            trace_metadata=trace_metadata,
        )

    def build_descriptor(self, city_code: str) -> RequestDescriptor:
        city_code = (city_code or "").strip()
        # An empty code leaves the locator empty so execute() rejects it
        locator = f"{self.base_url}/{quote(city_code, safe='')}" if city_code else ""
        return RequestDescriptor(
            locator=locator,
            headers={"User-Agent": self._user_agent()},
            deadline_ms=self.timeout_ms,
            resource_id=city_code,
        )

    async def fetch(self, city_code: str) -> Outcome:
        return await self._call.execute(self.build_descriptor(city_code))

    def fetch_sync(self, city_code: str) -> Outcome:
        return self._call.execute_sync(self.build_descriptor(city_code))


# ──────────────────────────────────────────────────────────────
# STRING ENCODING (agent-tool interface)
# ──────────────────────────────────────────────────────────────


def describe_weather_failure(failure: Failure) -> str:
    if failure.reason == FailureKind.UPSTREAM_REJECTED:
        return f"Unable to fetch weather data for city code {failure.detail}."
    return describe_failure(failure)


def encode_weather_outcome(outcome: Outcome) -> str:
    """SUCCESS: <json payload>  |  FAIL: <reason>"""
    return encode_outcome(outcome, describe_weather_failure)
