"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def reset_tracer_singleton():
    """Each test starts without a cached process-wide tracer."""
    from agent.tracing import tracer_factory

    tracer_factory._tracer = None
    yield
    tracer_factory._tracer = None
