from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

ModelStatus = Literal["success", "recoverable_error", "fatal_error"]


@dataclass
class ModelRequest:
    """One model invocation. `context` carries tool results on follow-up calls."""

    task: str                                       # "respond" | "fail"
    prompt: str
    context: Optional[str] = None
    history: Optional[List[Dict[str, str]]] = None  # [{role, content}, ...]
    system_prompt: Optional[str] = None
    model: Optional[str] = None                     # overrides the backend default
    timeout_s: Optional[int] = 30
    trace_id: Optional[str] = None


@dataclass
class ModelResponse:
    status: ModelStatus
    output: Optional[str] = None
    error_type: Optional[str] = None   # timeout | invalid_output | backend_unavailable
    metadata: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def tool_call(self) -> Optional[Dict[str, Any]]:
        """{"name": ..., "arguments": {...}} when the model asked for a tool."""
        call = (self.metadata or {}).get("tool_call")
        if isinstance(call, dict) and call.get("name"):
            return call
        return None
