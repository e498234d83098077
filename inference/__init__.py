"""
Model boundary.

The agent graph talks to models only through ModelBackend.generate():

    backend = create_model_backend(Config.LLM_BACKEND, Config.OLLAMA_MODEL, Config.OLLAMA_BASE_URL)
    response = backend.generate(ModelRequest(task="respond", prompt="weather 101120101"))
    response.tool_call   # {"name": "weather_info", "arguments": {...}} or None

Backends: "stub" (deterministic, default) and "ollama".
"""

from .types import ModelRequest, ModelResponse, ModelStatus
from .base import ModelBackend
from .stub import StubModelBackend
from .ollama import OllamaModelBackend, parse_tool_call


def create_model_backend(backend: str, model_name: str, base_url: str) -> ModelBackend:
    """Backend by name; anything other than "ollama" gets the stub."""
    if backend == "ollama":
        return OllamaModelBackend(model_name=model_name, base_url=base_url)
    return StubModelBackend()


__all__ = [
    "ModelRequest",
    "ModelResponse",
    "ModelStatus",
    "ModelBackend",
    "StubModelBackend",
    "OllamaModelBackend",
    "create_model_backend",
    "parse_tool_call",
]
