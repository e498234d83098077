"""
Tool Interface & Registry

Abstract interface for agent-callable tools (weather_info, post_to_wordpress).
Tool registry for discovery and execution.

Enforces:
- Tools must return typed results
- Tools must timeout safely
- Registry execution never raises
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ToolResult(BaseModel):
    """
    Result from tool execution.

    Invariants:
    - success ∈ {true, false}
    - data is JSON-serializable
    - error only present if success=false
    """

    success: bool
    data: Dict[str, Any] = {}
    error: Optional[str] = None
    execution_time_ms: int = 0


class ToolInputSchema(BaseModel):
    """Schema for tool inputs."""

    properties: Dict[str, Dict[str, Any]] = {}
    required: List[str] = []


class ToolInterface(ABC):
    """
    Abstract base for all tools.

    Tools are exposed two ways:
    - execute(dict) -> ToolResult, for structured callers
    - call(str) -> str, the string-in/string-out form the model sees
    """

    name: str
    description: str
    input_schema: ToolInputSchema

    @abstractmethod
    def execute(self, input_dict: Dict[str, Any]) -> ToolResult:
        """
        Execute tool with given input.

        Must:
        - Validate inputs against schema
        - Return ToolResult
        - Handle exceptions gracefully
        """
        pass

    def call(self, tool_input: str) -> str:
        """
        Run the tool from a raw model-provided string.

        A JSON object is used as the input dict; anything else is bound to
        the first required field.
        """
        return self.format_result(self.execute(self.parse_input(tool_input)))

    def parse_input(self, tool_input: Any) -> Dict[str, Any]:
        if isinstance(tool_input, dict):
            return tool_input
        text = str(tool_input or "").strip()
        if text.startswith("{"):
            try:
                parsed = json.loads(text)
                if isinstance(parsed, dict):
                    return parsed
            except json.JSONDecodeError:
                pass
        if not text or not self.input_schema.required:
            return {}
        return {self.input_schema.required[0]: text}

    @staticmethod
    def format_result(result: ToolResult) -> str:
        if result.success:
            return f"SUCCESS: {json.dumps(result.data, ensure_ascii=False)}"
        return f"FAIL: {result.error}"

    def _validate_input(self, input_dict: Dict[str, Any]) -> bool:
        """Validate input against schema."""
        for field in self.input_schema.required:
            if field not in input_dict:
                return False
        return True


class ToolRegistry:
    """
    Registry for available tools.

    Manages:
    - Tool registration
    - Tool discovery (names + descriptions for the system prompt)
    - Tool execution
    """

    def __init__(self):
        """Initialize empty registry."""
        self._tools: Dict[str, ToolInterface] = {}

    def register(self, tool: ToolInterface) -> None:
        if not isinstance(tool, ToolInterface):
            raise TypeError("Tool must implement ToolInterface")

        self._tools[tool.name] = tool

    def get(self, tool_name: str) -> Optional[ToolInterface]:
        return self._tools.get(tool_name)

    def list(self) -> List[str]:
        return list(self._tools.keys())

    def describe(self) -> str:
        """One line per tool: "- name: description"."""
        return "\n".join(
            f"- {tool.name}: {tool.description}" for tool in self._tools.values()
        )

    def execute(
        self,
        tool_name: str,
        input_dict: Dict[str, Any],
    ) -> ToolResult:
        """
        Execute a tool safely.

        Returns:
            ToolResult (failure if tool not found or the tool raised)
        """
        tool = self.get(tool_name)
        if not tool:
            return ToolResult(
                success=False,
                error=f"Tool not found: {tool_name}",
            )

        try:
            return tool.execute(input_dict)
        except Exception as e:
            return ToolResult(
                success=False,
                error=f"Tool execution failed: {str(e)}",
            )
