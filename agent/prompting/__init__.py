"""Prompt assembly for the agent executor."""

from agent.prompting.prompt_builder import SYSTEM_PROMPT_TEMPLATE, build_system_prompt

__all__ = ["SYSTEM_PROMPT_TEMPLATE", "build_system_prompt"]
