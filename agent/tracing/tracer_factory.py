"""
Tracer factory and initialization logic.

Implements the TRACER_BACKEND setting:
- "noop" (default): No observability
- "logging": Events written to the "agent.trace" logger
"""

import os
from typing import Optional

from agent.tracing.tracer import LoggingTracer, NoOpTracer, Tracer


def get_tracer_backend() -> str:
    """
    Get the configured tracer backend.

    Environment Variable:
        TRACER_BACKEND: "noop" (default) or "logging"
    """
    backend = os.getenv("TRACER_BACKEND", "noop").lower().strip()

    if backend not in {"noop", "logging"}:
        # Unknown backend, default to noop
        return "noop"

    return backend


def create_tracer() -> Tracer:
    """
    Create a tracer instance based on environment configuration.

    Always returns a valid Tracer, never None.
    """
    if get_tracer_backend() == "logging":
        return LoggingTracer()
    return NoOpTracer()


def get_tracer_config() -> dict:
    """Current tracer configuration for health/debug endpoints."""
    backend = get_tracer_backend()
    return {
        "tracer_backend": backend,
        "enabled": backend != "noop",
    }


_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Process-wide tracer, created on first use."""
    global _tracer
    if _tracer is None:
        _tracer = create_tracer()
    return _tracer
