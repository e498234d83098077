import re

from .base import ModelBackend
from .types import ModelRequest, ModelResponse

CITY_CODE = re.compile(r"\b(\d{6,})\b")


class StubModelBackend(ModelBackend):
    """
    Deterministic stand-in for a real model (CI, local runs without Ollama).

    - task "fail"                          → recoverable_error
    - tool results in context              → answer quoting them
    - "weather" plus a 6+ digit city code  → weather_info tool call
    - anything else                        → fixed reply
    """

    name = "stub"

    def generate(self, request: ModelRequest) -> ModelResponse:
        metadata = {"backend": self.name, "trace_id": request.trace_id}

        if request.task == "fail":
            return ModelResponse(status="recoverable_error", error_type="invalid_output", metadata=metadata)

        if request.context:
            return ModelResponse(
                status="success",
                output=f"Based on the tool result: {request.context}",
                metadata=metadata,
            )

        code = CITY_CODE.search(request.prompt)
        if code and "weather" in request.prompt.lower():
            metadata["tool_call"] = {"name": "weather_info", "arguments": {"city_code": code.group(1)}}
            return ModelResponse(status="success", output="", metadata=metadata)

        return ModelResponse(status="success", output="This is a stubbed response.", metadata=metadata)
