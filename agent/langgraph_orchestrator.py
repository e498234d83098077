"""
LangGraph-based agent executor.

Graph:
    model_call_node      → decision_logic_node (success) | error_router_node (failure)
    decision_logic_node  → tool_execution_node (execute_tool) | format_response_node
    tool_execution_node  → model_call_node
    error_router_node    → format_response_node → END

- decision_logic_node detects tool_call in model metadata
- tool_execution_node runs the tool through the ToolRegistry and appends its
  SUCCESS:/FAIL: string to tool_context
- model_call_node is re-invoked with tool_context injected
- Max tool calls per turn enforced via ToolGuardrails
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from langgraph.graph import END, StateGraph

from agent.guardrails import GuardrailViolation, ToolGuardrails
from agent.prompting import build_system_prompt
from agent.state_schema import AgentState
from agent.tools.base import ToolInterface, ToolRegistry, ToolResult
from agent.tracing import NoOpTracer, TraceMetadata, Tracer
from inference import ModelBackend, ModelRequest, ModelResponse, StubModelBackend

logger = logging.getLogger(__name__)


@dataclass
class AgentEvent:
    """One streamed unit of agent output."""

    message: str
    is_success: bool = True
    is_tool_message: bool = False
    tool_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": self.message,
            "isSuccess": self.is_success,
            "isToolMessage": self.is_tool_message,
        }
        if self.tool_name:
            data["toolName"] = self.tool_name
        return data


class AgentExecutor:
    """
    Runs one agent turn: model → (tool → model)* → answer.

    Hard rules:
    - Model is called only through the ModelBackend boundary
    - Tools are called only through the ToolRegistry
    - Tool failures are data (FAIL: ...) fed back to the model, never exceptions
    """

    def __init__(
        self,
        registry: ToolRegistry,
        model_backend: Optional[ModelBackend] = None,
        tracer: Optional[Tracer] = None,
        max_tool_calls: int = ToolGuardrails.DEFAULT_MAX_TOOL_CALLS_PER_TURN,
        model_timeout_s: int = 60,
    ):
        self.registry = registry
        self.model_backend = model_backend or StubModelBackend()
        self.tracer = tracer or NoOpTracer()
        self.max_tool_calls = max_tool_calls
        self.model_timeout_s = model_timeout_s
        self.system_prompt = build_system_prompt(registry.describe())
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(AgentState)

        graph.add_node("model_call_node", self._model_call_node)
        graph.add_node("decision_logic_node", self._decision_logic_node)
        graph.add_node("tool_execution_node", self._tool_execution_node)
        graph.add_node("error_router_node", self._error_router_node)
        graph.add_node("format_response_node", self._format_response_node)

        graph.set_entry_point("model_call_node")

        graph.add_conditional_edges(
            "model_call_node",
            self._route_from_model_call,
            {
                "success": "decision_logic_node",
                "failure": "error_router_node",
            },
        )
        graph.add_conditional_edges(
            "decision_logic_node",
            self._route_from_decision,
            {
                "execute_tool": "tool_execution_node",
                "format": "format_response_node",
            },
        )
        graph.add_edge("tool_execution_node", "model_call_node")
        graph.add_edge("error_router_node", "format_response_node")
        graph.add_edge("format_response_node", END)

        return graph.compile()

    # ──────────────────────────────────────────────────────────
    # PUBLIC INTERFACE
    # ──────────────────────────────────────────────────────────

    def new_state(
        self,
        user_input: str,
        history: Optional[List[Dict[str, str]]] = None,
        model_name: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> AgentState:
        return AgentState(
            conversation_id=conversation_id or str(uuid4()),
            trace_id=str(uuid4()),
            created_at=datetime.now().isoformat(),
            raw_input=user_input,
            history=list(history or []),
            model_name=model_name,
            max_tool_calls=self.max_tool_calls,
        )

    def invoke(self, state: AgentState) -> Dict[str, Any]:
        """Run the graph to completion; returns the final state values."""
        return self.graph.invoke(state, config=self._run_config())

    def stream(self, state: AgentState) -> Iterator[AgentEvent]:
        """Yield one event per tool execution, then the final answer."""
        for update in self.graph.stream(state, config=self._run_config(), stream_mode="updates"):
            for node_name, values in update.items():
                if not values:
                    continue
                if node_name == "tool_execution_node":
                    yield AgentEvent(
                        message=values.get("last_tool_output") or "",
                        is_success=bool(values.get("last_tool_success")),
                        is_tool_message=True,
                        tool_name=values.get("last_tool_name"),
                    )
                elif node_name == "format_response_node":
                    yield AgentEvent(
                        message=values.get("final_output") or "",
                        is_success=values.get("error_type") is None,
                    )

    def _run_config(self) -> Dict[str, Any]:
        # Each tool call costs three steps (decision → tool → model)
        return {"recursion_limit": 10 + 3 * max(self.max_tool_calls, 0)}

    # ──────────────────────────────────────────────────────────
    # ROUTING
    # ──────────────────────────────────────────────────────────

    def _route_from_model_call(self, state: AgentState) -> str:
        if state.model_response is not None and state.model_response.ok:
            return "success"
        return "failure"

    def _route_from_decision(self, state: AgentState) -> str:
        return "execute_tool" if state.command == "execute_tool" else "format"

    # ──────────────────────────────────────────────────────────
    # NODES
    # ──────────────────────────────────────────────────────────

    def _model_call_node(self, state: AgentState) -> Dict[str, Any]:
        request = ModelRequest(
            task="respond",
            prompt=state.raw_input,
            context=state.tool_context,
            history=state.history,
            system_prompt=self.system_prompt,
            model=state.model_name,
            timeout_s=self.model_timeout_s,
            trace_id=state.trace_id,
        )

        try:
            response = self.model_backend.generate(request)
        except Exception as e:
            logger.error(f"Model backend raised: {e}", exc_info=True)
            response = ModelResponse(
                status="fatal_error",
                error_type="backend_unavailable",
                metadata={"error": str(e)},
            )

        return {"model_response": response, "command": None}

    def _decision_logic_node(self, state: AgentState) -> Dict[str, Any]:
        tool_call = state.model_response.tool_call if state.model_response else None
        if tool_call is None:
            return {"command": "format"}

        self._emit(state, "tool_call_detected", {
            "tool_name": tool_call.get("name"),
            "tool_call_count": state.tool_call_count,
        })

        try:
            ToolGuardrails.check_tool_call_limit(state.tool_call_count, state.max_tool_calls)
        except GuardrailViolation as gv:
            self._emit(state, "tool_execution_skipped", {"reason": "guardrail_violation", "rule": gv.rule})
            return {"command": "format"}

        return {"command": "execute_tool"}

    def _tool_execution_node(self, state: AgentState) -> Dict[str, Any]:
        tool_call = state.model_response.tool_call
        tool_name = str(tool_call.get("name", ""))
        arguments = tool_call.get("arguments", {})

        tool = self.registry.get(tool_name)
        input_dict = tool.parse_input(arguments) if tool else {}

        span = self._start_span(state, "tool_execution", {"tool_name": tool_name})
        result: ToolResult = self.registry.execute(tool_name, input_dict)
        result_text = ToolInterface.format_result(result)

        completed = {
            "tool_name": tool_name,
            "success": result.success,
            "execution_time_ms": result.execution_time_ms,
        }
        self._emit(state, "tool_execution_completed", completed)
        self._end_span(span, "success" if result.success else "failure", completed)
        logger.info(f"Tool {tool_name} finished: success={result.success}")

        return {
            "tool_call_count": state.tool_call_count + 1,
            "tool_context": ToolGuardrails.append_tool_context(
                state.tool_context or "", tool_name, result_text
            ),
            "last_tool_name": tool_name,
            "last_tool_input": input_dict,
            "last_tool_output": result_text,
            "last_tool_success": result.success,
            "model_response": None,
        }

    def _error_router_node(self, state: AgentState) -> Dict[str, Any]:
        response = state.model_response
        error_type = (response.error_type if response else None) or "backend_unavailable"
        self._emit(state, "model_call_failed", {"error_type": error_type})
        return {"error_type": error_type}

    def _format_response_node(self, state: AgentState) -> Dict[str, Any]:
        if state.error_type:
            return {
                "final_output": f"Sorry, the model could not produce a response ({state.error_type}).",
                "error_type": state.error_type,
            }

        output = ""
        if state.model_response and state.model_response.output:
            output = state.model_response.output.strip()

        if not output:
            if state.command == "format" and state.tool_call_count >= state.max_tool_calls:
                output = "Tool call limit reached before an answer was produced."
            elif state.last_tool_output:
                output = state.last_tool_output

        return {"final_output": output, "error_type": None}

    def _emit(self, state: AgentState, name: str, metadata: Dict[str, Any]) -> None:
        try:
            self.tracer.record_event(
                name=name,
                metadata=metadata,
                trace_metadata=TraceMetadata(
                    trace_id=state.trace_id,
                    conversation_id=state.conversation_id,
                ),
            )
        except Exception:
            pass

    def _start_span(self, state: AgentState, name: str, metadata: Dict[str, Any]) -> Any:
        try:
            return self.tracer.start_span(
                name,
                metadata,
                TraceMetadata(trace_id=state.trace_id, conversation_id=state.conversation_id),
            )
        except Exception:
            return None

    def _end_span(self, span: Any, status: str, metadata: Dict[str, Any]) -> None:
        try:
            self.tracer.end_span(span, status, metadata)
        except Exception:
            pass
