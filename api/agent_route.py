"""
Agent Route — tool-calling agent with a streamed response.

    POST /api/langchain/tool/agent/nodejs
    {
        "messages": [{"role": "user", "content": "Weather for 101120101?"}],
        "model": "phi",
        "chatSessionId": "abc"
    }

Response: text/event-stream
    data: {"message": "SUCCESS: {...}", "isSuccess": true, "isToolMessage": true, "toolName": "weather_info"}
    data: {"message": "It is 21℃ in Jinan ...", "isSuccess": true, "isToolMessage": false}
    data: [DONE]

This module is I/O only: it assembles the tools and the executor and streams
events. Agent logic lives in agent.langgraph_orchestrator.
"""

import json
import logging
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field, ValidationError

from agent.langgraph_orchestrator import AgentEvent, AgentExecutor
from agent.state_schema import AgentState
from agent.tools import ToolRegistry, WeatherInfoTool, build_wordpress_tool
from agent.tracing import Tracer, get_tracer
from config import Config
from inference import create_model_backend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/langchain/tool/agent", tags=["agent"])

_MAX_TOOL_CALLS_CAP = 10


class ChatMessage(BaseModel):
    role: str = "user"
    content: str = ""


class AgentRequestBody(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    model: Optional[str] = None
    baseUrl: Optional[str] = None
    chatSessionId: Optional[str] = None
    maxIterations: Optional[int] = Field(default=None, ge=0, le=_MAX_TOOL_CALLS_CAP)


def build_tool_registry(tracer: Optional[Tracer] = None) -> ToolRegistry:
    """weather_info + post_to_wordpress, configured from Config."""
    registry = ToolRegistry()
    registry.register(WeatherInfoTool(
        base_url=Config.WEATHER_API_BASE_URL,
        timeout_ms=Config.WEATHER_TIMEOUT_MS,
        tracer=tracer,
    ))
    registry.register(build_wordpress_tool(
        site_url=Config.WORDPRESS_URL,
        username=Config.WORDPRESS_USERNAME,
        app_password=Config.WORDPRESS_APP_PASSWORD,
        timeout_ms=Config.WORDPRESS_TIMEOUT_MS,
        tracer=tracer,
    ))
    return registry


def get_agent_executor() -> AgentExecutor:
    """FastAPI dependency; tests override it with a stubbed executor."""
    tracer = get_tracer()
    return AgentExecutor(
        registry=build_tool_registry(tracer),
        model_backend=create_model_backend(
            Config.LLM_BACKEND, Config.OLLAMA_MODEL, Config.OLLAMA_BASE_URL
        ),
        tracer=tracer,
        max_tool_calls=Config.AGENT_MAX_TOOL_CALLS,
        model_timeout_s=Config.MODEL_TIMEOUT_S,
    )


def _sse(payload: str) -> str:
    return f"data: {payload}\n\n"


def stream_agent_events(executor: AgentExecutor, state: AgentState) -> Iterator[str]:
    """Serialize agent events as server-sent events, always ending with [DONE]."""
    try:
        for event in executor.stream(state):
            yield _sse(json.dumps(event.to_dict(), ensure_ascii=False))
    except Exception as e:
        logger.error(f"Agent stream failed: {e}", exc_info=True)
        yield _sse(json.dumps(AgentEvent(message=str(e), is_success=False).to_dict()))
    yield _sse("[DONE]")


@router.api_route("/nodejs", methods=["GET", "POST", "OPTIONS"])
async def agent_handler(request: Request, executor: AgentExecutor = Depends(get_agent_executor)):
    """Run the agent on the latest user message and stream its output."""
    if request.method == "OPTIONS":
        return JSONResponse(content={"body": "OK"}, status_code=200)

    try:
        body = AgentRequestBody.model_validate(await request.json())
    except ValidationError as e:
        return JSONResponse(content={"error": str(e)}, status_code=400)
    except ValueError as e:
        return JSONResponse(content={"error": f"Invalid JSON body: {e}"}, status_code=400)

    try:
        user_input = body.messages[-1].content
        history = [m.model_dump() for m in body.messages[:-1]]
        logger.info(
            f"Agent request: session={body.chatSessionId} model={body.model} "
            f"history={len(history)} tools={executor.registry.list()}"
        )

        if body.maxIterations is not None:
            executor.max_tool_calls = body.maxIterations

        state = executor.new_state(
            user_input=user_input,
            history=history,
            model_name=body.model or None,
            conversation_id=body.chatSessionId,
        )
    except Exception as e:
        logger.error(f"Agent setup failed: {e}", exc_info=True)
        return JSONResponse(content={"error": str(e)}, status_code=500)

    return StreamingResponse(
        stream_agent_events(executor, state),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
