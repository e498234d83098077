"""
Agent state schema and types.

The AgentState is the single source of truth for one agent turn.
Nodes return partial updates; only decision_logic_node writes `command`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from inference import ModelResponse


@dataclass
class AgentState:
    """
    Complete state schema for one agent turn.

    Invariants:
    - conversation_id and trace_id are immutable once set
    - command is the only control flow signal (decision_logic_node writes it)
    - error_type is set only by error_router_node
    - tool_call_count increments by 1 per tool execution
    """

    # Identity
    conversation_id: str
    trace_id: str
    created_at: str

    # Input
    raw_input: str
    history: List[Dict[str, str]] = field(default_factory=list)
    model_name: Optional[str] = None

    # Model
    model_response: Optional[ModelResponse] = None

    # Output
    final_output: Optional[str] = None
    error_type: Optional[str] = None

    # Control
    command: Optional[str] = None  # execute_tool | format

    # ── Tool Execution ────────────────────────────────────────────────────────
    # tool_context accumulates "[tool] SUCCESS: ..." lines for the next model call
    tool_call_count: int = 0
    max_tool_calls: int = 3
    tool_context: Optional[str] = None
    last_tool_name: Optional[str] = None
    last_tool_input: Optional[Dict[str, Any]] = None
    last_tool_output: Optional[str] = None
    last_tool_success: Optional[bool] = None
