"""
Tool-agnostic event side channel.

Remote calls, tools and the agent graph report what they are doing through
a Tracer. Tracing is strictly passive:
- Never influences execution
- Never changes a returned outcome
- Failures are silent and non-fatal
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class TraceMetadata:
    """Metadata associated with a trace span or event."""

    trace_id: str  # Mandatory: globally unique identifier
    conversation_id: Optional[str] = None  # Optional: chat session
    user_id: Optional[str] = None  # Optional: hashed/anonymized user identifier


class Tracer(ABC):
    """
    Abstract tracing interface.

    All implementations MUST guarantee:
    - No control flow influence
    - Non-fatal failures (never raise)
    - Best-effort execution
    """

    @abstractmethod
    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        """
        Start a trace span (e.g. a graph node or a remote call).

        Returns:
            Span handle for end_span, or None if tracing is disabled
        """
        pass

    @abstractmethod
    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        """End a trace span with status "success", "failure" or "skipped"."""
        pass

    @abstractmethod
    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        """
        Record a point-in-time event.

        Args:
            name: Event name (e.g. "remote_call_started", "remote_call_failed")
            metadata: Event data (reason, status code, elapsed time, ...)
            trace_metadata: Trace identity
        """
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """True if tracing is active."""
        pass


class NoOpTracer(Tracer):
    """Used when tracing is disabled. Satisfies the interface, does nothing."""

    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        return None

    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        pass

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        pass

    def is_enabled(self) -> bool:
        return False


class LoggingTracer(Tracer):
    """
    Tracer that writes spans and events to a stdlib logger.

    Recorded events are also kept in memory (bounded) so callers can
    inspect the most recent activity.
    """

    def __init__(self, logger_name: str = "agent.trace", max_events: int = 500):
        self._logger = logging.getLogger(logger_name)
        self._max_events = max_events
        self.events: List[Tuple[str, Dict[str, Any], Optional[str]]] = []
        self.spans: List[Tuple[str, str, Optional[str]]] = []  # (name, status, trace_id)

    def start_span(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> Optional[Any]:
        self._logger.debug(f"span start {name} trace={trace_metadata.trace_id} {metadata}")
        return {"name": name, "trace_id": trace_metadata.trace_id, "started": time.monotonic()}

    def end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        if not span:
            return
        elapsed_ms = int((time.monotonic() - span["started"]) * 1000)
        self._logger.debug(f"span end {span['name']} status={status} {elapsed_ms}ms {metadata}")
        self._remember(self.spans, (span["name"], status, span["trace_id"]))

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        trace_id = trace_metadata.trace_id if trace_metadata else None
        self._logger.info(f"event {name} trace={trace_id} {metadata}")
        self._remember(self.events, (name, dict(metadata), trace_id))

    def _remember(self, bucket: list, item: tuple) -> None:
        bucket.append(item)
        if len(bucket) > self._max_events:
            del bucket[: len(bucket) - self._max_events]

    def event_names(self) -> List[str]:
        return [name for name, _, _ in self.events]

    def is_enabled(self) -> bool:
        return True
