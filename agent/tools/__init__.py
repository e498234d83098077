"""
agent/tools package.

Tools the agent can call, plus the registry that exposes them.
"""

from agent.tools.base import ToolInputSchema, ToolInterface, ToolRegistry, ToolResult
from agent.tools.weather_info_tool import WeatherInfoTool
from agent.tools.wordpress_tool import PostToWordPressTool, build_wordpress_tool

__all__ = [
    "ToolInputSchema",
    "ToolInterface",
    "ToolRegistry",
    "ToolResult",
    "WeatherInfoTool",
    "PostToWordPressTool",
    "build_wordpress_tool",
]
