"""
tests/tools/test_tool_registry.py

ToolRegistry + ToolInterface base behaviour.
"""

import pytest

from agent.tools.base import ToolInputSchema, ToolInterface, ToolRegistry, ToolResult


class EchoTool(ToolInterface):
    name = "echo"
    description = "Echo the text back"
    input_schema = ToolInputSchema(
        properties={"text": {"type": "string"}},
        required=["text"],
    )

    def execute(self, input_dict):
        if not self._validate_input(input_dict):
            return ToolResult(success=False, error="Missing required field: text")
        return ToolResult(success=True, data={"text": input_dict["text"]})


class BrokenTool(EchoTool):
    name = "broken"

    def execute(self, input_dict):
        raise RuntimeError("boom")


@pytest.fixture
def registry():
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.register(BrokenTool())
    return registry


class TestRegistry:
    def test_register_rejects_non_tools(self):
        with pytest.raises(TypeError):
            ToolRegistry().register(object())

    def test_list_and_get(self, registry):
        assert registry.list() == ["echo", "broken"]
        assert isinstance(registry.get("echo"), EchoTool)
        assert registry.get("missing") is None

    def test_describe(self, registry):
        assert registry.describe() == "- echo: Echo the text back\n- broken: Echo the text back"

    def test_unknown_tool(self, registry):
        result = registry.execute("missing", {})
        assert result.success is False
        assert result.error == "Tool not found: missing"

    def test_raising_tool_is_contained(self, registry):
        result = registry.execute("broken", {"text": "x"})
        assert result.success is False
        assert "boom" in result.error


class TestToolInterface:
    def test_parse_input_variants(self):
        tool = EchoTool()
        assert tool.parse_input({"text": "a"}) == {"text": "a"}
        assert tool.parse_input('{"text": "b"}') == {"text": "b"}
        assert tool.parse_input("plain") == {"text": "plain"}
        assert tool.parse_input("{not json") == {"text": "{not json"}
        assert tool.parse_input("") == {}
        assert tool.parse_input(None) == {}

    def test_format_result(self):
        assert ToolInterface.format_result(ToolResult(success=True, data={"a": "é"})) == 'SUCCESS: {"a": "é"}'
        assert ToolInterface.format_result(ToolResult(success=False, error="nope")) == "FAIL: nope"

    def test_call(self):
        tool = EchoTool()
        assert tool.call("hi") == 'SUCCESS: {"text": "hi"}'
        assert tool.call("") == "FAIL: Missing required field: text"
