"""
Weather Info Tool — city-code weather lookup.

Implements ToolInterface on top of WeatherClient (BoundedRemoteCall).

Usage:
    tool = WeatherInfoTool()
    result = tool.execute({"city_code": "101120101"})
    text = tool.call("101120101")   # "SUCCESS: {...}" | "FAIL: ..."
"""

import logging
import time
from typing import Any, Dict, Optional

from agent.remote.types import Failure
from agent.remote.weather import (
    DEFAULT_WEATHER_BASE_URL,
    DEFAULT_WEATHER_TIMEOUT_MS,
    WeatherClient,
    WeatherReport,
    describe_weather_failure,
    encode_weather_outcome,
)
from agent.tools.base import ToolInputSchema, ToolInterface, ToolResult
from agent.tracing.tracer import TraceMetadata, Tracer

logger = logging.getLogger(__name__)


def _city_code(value: Any) -> str:
    """JSON null counts as no code at all."""
    if value is None:
        return ""
    return str(value).strip()


class WeatherInfoTool(ToolInterface):
    """
    Weather lookup tool.

    Enforces:
    - One bounded request per invocation (default deadline 30 s)
    - No auto-retry; failure reason and retryability are reported in data

    Tool name: "weather_info"
    """

    name = "weather_info"
    description = (
        "A tool that fetches weather information for a given city code. "
        "It returns a JSON string containing the city name, update time, temperature, "
        "humidity, air quality, and forecast.\n"
        "Input string must be a valid city code (e.g. 101120101)."
    )
    input_schema = ToolInputSchema(
        properties={
            "city_code": {
                "type": "string",
                "description": "City code, e.g. 101120101",
            },
        },
        required=["city_code"],
    )

    def __init__(
        self,
        weather_client: Optional[WeatherClient] = None,
        base_url: str = DEFAULT_WEATHER_BASE_URL,
        timeout_ms: float = DEFAULT_WEATHER_TIMEOUT_MS,
        tracer: Optional[Tracer] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ):
        """
        Args:
            weather_client: Optional WeatherClient (built from base_url/timeout_ms if None).
            base_url: Weather API base URL.
            timeout_ms: Deadline for the upstream call.
            tracer: Optional Tracer for trace emission.
            trace_metadata: Optional TraceMetadata for trace_id propagation.
        """
        self._client = weather_client or WeatherClient(
            base_url=base_url,
            timeout_ms=timeout_ms,
            tracer=tracer,
            trace_metadata=trace_metadata,
        )

    def execute(self, input_dict: Dict[str, Any]) -> ToolResult:
        start = time.time()

        if not self._validate_input(input_dict):
            return ToolResult(
                success=False,
                error="Missing required field: city_code",
            )

        city_code = _city_code(input_dict.get("city_code"))
        if not city_code:
            return ToolResult(success=False, error="city_code cannot be empty")

        outcome = self._client.fetch_sync(city_code)
        elapsed_ms = int((time.time() - start) * 1000)

        if isinstance(outcome, Failure):
            return ToolResult(
                success=False,
                error=describe_weather_failure(outcome),
                data={
                    "failure_reason": outcome.reason.value,
                    "retryable": outcome.retryable,
                },
                execution_time_ms=elapsed_ms,
            )

        report: WeatherReport = outcome.payload
        return ToolResult(
            success=True,
            data=report.to_wire(),
            execution_time_ms=elapsed_ms,
        )

    def call(self, tool_input: str) -> str:
        """String form used by the agent: SUCCESS: <json> | FAIL: <reason>."""
        logger.info(f"weather_info called with input: {tool_input}")
        city_code = _city_code(self.parse_input(tool_input).get("city_code"))
        text = encode_weather_outcome(self._client.fetch_sync(city_code))
        logger.info(f"weather_info result: {text[:200]}")
        return text
