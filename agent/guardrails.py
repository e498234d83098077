"""
Tool Guardrails.

Enforces hard limits on tool usage to prevent:
- Infinite tool-call loops
- Unbounded content injection into the model context

All violations raise GuardrailViolation and are handled inside the graph.
"""


class GuardrailViolation(Exception):
    """
    Raised when a guardrail constraint is violated.

    Non-fatal: callers must catch and continue agent flow.
    """

    def __init__(self, rule: str, detail: str = ""):
        self.rule = rule
        self.detail = detail
        super().__init__(f"GuardrailViolation[{rule}]: {detail}")


class ToolGuardrails:
    """
    Stateless guardrail enforcement for tool calls.

    Rules:
    - Max N tool calls per turn (N from AGENT_MAX_TOOL_CALLS)
    - Each tool result ≤ MAX_TOOL_RESULT_CHARS when injected
    - Total tool context ≤ MAX_TOOL_CONTEXT_CHARS
    """

    DEFAULT_MAX_TOOL_CALLS_PER_TURN: int = 3
    MAX_TOOL_RESULT_CHARS: int = 3000
    MAX_TOOL_CONTEXT_CHARS: int = 6000

    @classmethod
    def check_tool_call_limit(cls, tool_call_count: int, limit: int) -> None:
        """
        Raises:
            GuardrailViolation: If tool_call_count already reached limit.
        """
        if tool_call_count >= limit:
            raise GuardrailViolation(
                "MAX_TOOL_CALLS_PER_TURN",
                f"Tool call limit ({limit}) already reached this turn.",
            )

    @classmethod
    def append_tool_context(cls, context: str, tool_name: str, result_text: str) -> str:
        """Append one bounded tool result to the accumulated context."""
        entry = f"[{tool_name}] {result_text[: cls.MAX_TOOL_RESULT_CHARS]}"
        combined = f"{context}\n{entry}" if context else entry
        # Keep the most recent results when over budget
        return combined[-cls.MAX_TOOL_CONTEXT_CHARS:]
