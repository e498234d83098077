"""
Bounded Remote Call — one outbound HTTP request raced against a deadline.

Flow:
  descriptor → locator check → request build → send ⟷ deadline race → JSON parse
  → normalizer (discriminator check + repackaging) → Outcome

Invariants:
- At most one outbound request per execute()
- The deadline timer is always disarmed (asyncio.wait_for owns it)
- On timeout the in-flight request task is cancelled and its client closed
- Parsing starts only after the race is decided; it is never cancelled
- Never raises; every failure is returned as Failure(reason, detail)
- Headers and body are encoded before the race; encoding errors are INVALID_INPUT
- Trace events: remote_call_started, remote_call_completed, remote_call_failed
- No state is shared between calls; each call opens its own AsyncClient
"""

import asyncio
import concurrent.futures
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from uuid import uuid4

import httpx

from agent.remote.types import Failure, FailureKind, Outcome, RequestDescriptor, Success
from agent.tracing.tracer import NoOpTracer, TraceMetadata, Tracer

logger = logging.getLogger(__name__)


class ResponseNormalizer(ABC):
    """
    Validates a parsed response body and repackages it.

    Implementations may raise on unexpected shapes; BoundedRemoteCall
    classifies any exception raised here as MALFORMED_RESPONSE.
    """

    @abstractmethod
    def normalize(self, body: Any, descriptor: RequestDescriptor) -> Outcome:
        """Turn a parsed JSON body into Success or Failure."""
        raise NotImplementedError


class PassthroughNormalizer(ResponseNormalizer):
    """Accepts any parsed body as the payload."""

    def normalize(self, body: Any, descriptor: RequestDescriptor) -> Outcome:
        return Success(payload=body)


def format_deadline(deadline_ms: float) -> str:
    """30000.0 -> "30000", 12.5 -> "12.5"."""
    if float(deadline_ms).is_integer():
        return str(int(deadline_ms))
    return str(deadline_ms)


class BoundedRemoteCall:
    """
    Executes one deadline-bounded HTTP request and returns a typed Outcome.

    Usage:
        call = BoundedRemoteCall(normalizer=WeatherNormalizer())
        outcome = await call.execute(RequestDescriptor(
            locator="http://t.weather.itboy.net/api/weather/city/101120101",
            headers={"User-Agent": random_user_agent()},
            deadline_ms=30000,
            resource_id="101120101",
        ))

    Guarantees:
    - Never raises (returns Failure on any error, including malformed input)
    - Malformed locators never reach the transport
    - Emits trace events if a tracer is provided
    """

    # execute_sync() stops waiting on its worker thread this long past the deadline
    SYNC_GRACE_S = 5.0

    def __init__(
        self,
        normalizer: Optional[ResponseNormalizer] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        tracer: Optional[Tracer] = None,
        trace_metadata: Optional[TraceMetadata] = None,
    ):
        """
        Args:
            normalizer: Response validation/repackaging step (passthrough if None).
            transport: httpx transport; tests inject httpx.MockTransport here.
            tracer: Event side channel (NoOpTracer if None).
            trace_metadata: Trace identity; a fresh trace_id per call if None.
        """
        self._normalizer = normalizer or PassthroughNormalizer()
        self._transport = transport
        self._tracer = tracer or NoOpTracer()
        self._trace_metadata = trace_metadata

    # ──────────────────────────────────────────────────────────
    # ASYNC PRIMARY INTERFACE
    # ──────────────────────────────────────────────────────────

    async def execute(self, descriptor: RequestDescriptor) -> Outcome:
        """Run the call. Always returns exactly one Outcome."""
        started = time.monotonic()
        trace_metadata = self._trace_metadata or TraceMetadata(trace_id=str(uuid4()))

        self._emit_event("remote_call_started", {
            "method": descriptor.method,
            "resource_id": descriptor.resource_id,
            "deadline_ms": descriptor.deadline_ms,
        }, trace_metadata)
        span = self._start_span(descriptor, trace_metadata)
        logger.debug(f"{descriptor.method} {descriptor.locator} (deadline {descriptor.deadline_ms}ms)")

        url = self._parse_locator(descriptor.locator)
        if url is None:
            return self._failed(
                FailureKind.INVALID_INPUT,
                f"invalid locator: {descriptor.locator!r}",
                started, trace_metadata, span,
            )

        # One client per call, closed on every exit path including cancellation
        async with httpx.AsyncClient(
            transport=self._transport, timeout=descriptor.deadline_s
        ) as client:
            try:
                request = self._build_request(client, url, descriptor)
            except (httpx.InvalidURL, UnicodeEncodeError, TypeError, ValueError) as e:
                return self._failed(
                    FailureKind.INVALID_INPUT, f"{type(e).__name__}: {e}",
                    started, trace_metadata, span,
                )

            try:
                response = await asyncio.wait_for(
                    client.send(request), timeout=descriptor.deadline_s
                )

            except (asyncio.TimeoutError, httpx.TimeoutException):
                return self._failed(
                    FailureKind.TIMEOUT,
                    f"{format_deadline(descriptor.deadline_ms)}ms exceeded",
                    started, trace_metadata, span,
                )

            except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
                return self._failed(FailureKind.INVALID_INPUT, str(e), started, trace_metadata, span)

            except httpx.HTTPError as e:
                return self._failed(
                    FailureKind.NETWORK_ERROR, str(e) or type(e).__name__,
                    started, trace_metadata, span,
                )

            except Exception as e:
                return self._failed(
                    FailureKind.NETWORK_ERROR, f"{type(e).__name__}: {e}",
                    started, trace_metadata, span,
                )

        # Race decided: from here on nothing can cancel the parse
        try:
            body = response.json()
        except ValueError as e:
            return self._failed(
                FailureKind.MALFORMED_RESPONSE, str(e), started, trace_metadata, span,
                status_code=response.status_code,
            )

        try:
            outcome = self._normalizer.normalize(body, descriptor)
        except Exception as e:
            return self._failed(
                FailureKind.MALFORMED_RESPONSE, f"{type(e).__name__}: {e}",
                started, trace_metadata, span, status_code=response.status_code,
            )

        if isinstance(outcome, Failure):
            return self._failed(
                outcome.reason, outcome.detail, started, trace_metadata, span,
                status_code=response.status_code,
            )

        completed = {
            "status_code": response.status_code,
            "elapsed_ms": self._elapsed_ms(started),
        }
        self._emit_event("remote_call_completed", completed, trace_metadata)
        self._end_span(span, "success", completed)
        return outcome

    # ──────────────────────────────────────────────────────────
    # SYNC WRAPPER
    # ──────────────────────────────────────────────────────────

    def execute_sync(self, descriptor: RequestDescriptor) -> Outcome:
        """Synchronous wrapper for execute(). Safe in both sync and async contexts."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.execute(descriptor))

        # Called from inside a running loop: run on a private loop in a worker thread
        pool = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(asyncio.run, self.execute(descriptor))
            return future.result(timeout=descriptor.deadline_s + self.SYNC_GRACE_S)
        except concurrent.futures.TimeoutError:
            return Failure(
                reason=FailureKind.TIMEOUT,
                detail=f"{format_deadline(descriptor.deadline_ms)}ms exceeded",
            )
        finally:
            pool.shutdown(wait=False)

    # ──────────────────────────────────────────────────────────
    # HELPERS
    # ──────────────────────────────────────────────────────────

    @staticmethod
    def _build_request(
        client: httpx.AsyncClient, url: httpx.URL, descriptor: RequestDescriptor
    ) -> httpx.Request:
        """
        Encode headers and body without touching the network.

        Non-ASCII header values raise UnicodeEncodeError and bodies json
        cannot serialize raise TypeError/ValueError.
        """
        return client.build_request(
            descriptor.method,
            url,
            headers=descriptor.headers,
            json=descriptor.json_body,
        )

    @staticmethod
    def _parse_locator(locator: str) -> Optional[httpx.URL]:
        """Return the parsed URL, or None when it is not an absolute http(s) URL."""
        if not isinstance(locator, str) or not locator.strip():
            return None
        try:
            url = httpx.URL(locator.strip())
        except (httpx.InvalidURL, TypeError, ValueError):
            return None
        if url.scheme not in ("http", "https") or not url.host:
            return None
        return url

    def _failed(
        self,
        reason: FailureKind,
        detail: str,
        started: float,
        trace_metadata: TraceMetadata,
        span: Any = None,
        status_code: Optional[int] = None,
    ) -> Failure:
        logger.warning(f"Remote call failed [{reason.value}]: {detail}")
        metadata: Dict[str, Any] = {
            "reason": reason.value,
            "detail": detail,
            "elapsed_ms": self._elapsed_ms(started),
        }
        if status_code is not None:
            metadata["status_code"] = status_code
        self._emit_event("remote_call_failed", metadata, trace_metadata)
        self._end_span(span, "failure", metadata)
        return Failure(reason=reason, detail=detail)

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

    def _start_span(self, descriptor: RequestDescriptor, trace_metadata: TraceMetadata) -> Any:
        try:
            return self._tracer.start_span(
                "remote_call",
                {"method": descriptor.method, "resource_id": descriptor.resource_id},
                trace_metadata,
            )
        except Exception:
            logger.debug("Tracer failed on start_span", exc_info=True)
            return None

    def _end_span(self, span: Any, status: str, metadata: dict) -> None:
        try:
            self._tracer.end_span(span, status, metadata)
        except Exception:
            logger.debug("Tracer failed on end_span", exc_info=True)

    def _emit_event(
        self,
        event_name: str,
        metadata: dict,
        trace_metadata: TraceMetadata,
    ) -> None:
        """Safely emit a trace event. Never raises."""
        try:
            self._tracer.record_event(event_name, metadata, trace_metadata)
        except Exception:
            logger.debug(f"Tracer failed on {event_name}", exc_info=True)
