"""
Ollama chat backend.

Tool calls are requested in plain text:

    [TOOL_CALL]{"name": "weather_info", "arguments": {"city_code": "101120101"}}

parse_tool_call() pulls that object out of the reply and hides the marker
from the user-visible text.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import requests

from .base import ModelBackend
from .types import ModelRequest, ModelResponse

TOOL_CALL_MARKER = re.compile(r"\[TOOL_CALL\]", re.IGNORECASE)
_TRUNCATED_CITY_CODE = re.compile(r'"city_code"\s*:\s*"?(\d+)')


def _balanced_object(text: str, start: int) -> str:
    """Text of the JSON object opening at text[start], or the rest if unclosed."""
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:pos + 1]
    return text[start:]


def parse_tool_call(output: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    Split a model reply into (tool_call, visible_text).

    Everything from the marker onwards is removed from visible_text, even
    when the JSON after it cannot be decoded. A truncated weather_info call
    still yields its city code.
    """
    marker = TOOL_CALL_MARKER.search(output)
    if marker is None:
        return None, output

    visible = output[:marker.start()].strip()
    brace = output.find("{", marker.end())
    if brace < 0:
        return None, visible

    raw = _balanced_object(output, brace)
    try:
        call = json.loads(raw)
    except json.JSONDecodeError:
        code = _TRUNCATED_CITY_CODE.search(raw)
        if code is None:
            return None, visible
        call = {"name": "weather_info", "arguments": {"city_code": code.group(1)}}

    if not isinstance(call, dict):
        return None, visible
    return call, visible


class OllamaModelBackend(ModelBackend):
    """
    POSTs to {base_url}/api/chat with temperature 0 and no streaming.

    Timeouts are recoverable; any other failure (connection refused, HTTP
    error status, unexpected body) is fatal for the turn.
    """

    name = "ollama"

    def __init__(self, model_name: str, base_url: str = "http://localhost:11434"):
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")

    def build_messages(self, request: ModelRequest) -> List[Dict[str, str]]:
        messages: List[Dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(
            {"role": turn.get("role", "user"), "content": turn.get("content", "")}
            for turn in request.history or []
        )

        question = request.prompt
        if request.context:
            question = (
                f"Tool results:\n\n{request.context}\n\n---\n"
                f"Using the above results, please answer:\n{request.prompt}"
            )
        messages.append({"role": "user", "content": question})
        return messages

    def generate(self, request: ModelRequest) -> ModelResponse:
        model = request.model or self.model_name
        metadata: Dict[str, Any] = {
            "backend": self.name,
            "model": model,
            "trace_id": request.trace_id,
        }

        try:
            reply = requests.post(
                f"{self.base_url}/api/chat",
                json={
                    "model": model,
                    "messages": self.build_messages(request),
                    "stream": False,
                    "options": {"temperature": 0},
                },
                timeout=request.timeout_s,
            )
            reply.raise_for_status()
            content = reply.json().get("message", {}).get("content", "")
        except requests.Timeout:
            return ModelResponse(status="recoverable_error", error_type="timeout", metadata=metadata)
        except Exception as e:
            metadata["error"] = str(e)
            return ModelResponse(status="fatal_error", error_type="backend_unavailable", metadata=metadata)

        tool_call, visible = parse_tool_call(content)
        if tool_call is not None:
            metadata["tool_call"] = tool_call
        return ModelResponse(status="success", output=visible, metadata=metadata)
