"""
Weather agent tools service.

Routes:
  - /api/langchain/tool/agent/nodejs   tool-calling agent, streamed (SSE)
  - /health/live, /health/ready, /health/trace
  - /config/info                       non-secret settings

Run: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agent.tracing import get_tracer_config
from api.agent_route import router as agent_router
from config import Config

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info(f"Weather agent tools starting ({Config.ENVIRONMENT})")
    logger.info(f"LLM backend: {Config.LLM_BACKEND} model={Config.OLLAMA_MODEL}")
    logger.info(f"Weather API: {Config.WEATHER_API_BASE_URL} ({Config.WEATHER_TIMEOUT_MS:.0f}ms)")
    logger.info(f"WordPress configured: {Config.wordpress_configured()}")
    for problem in Config.problems():
        logger.warning(f"Config: {problem}")
    logger.info("=" * 60)

    yield

    logger.info("Weather agent tools shutting down")


app = FastAPI(
    title="Weather Agent Tools API",
    description="Tool-calling agent with deadline-bounded weather and WordPress tools",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.monotonic()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    logger.debug(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({int((time.monotonic() - started) * 1000)}ms)"
    )
    return response


app.include_router(agent_router)


@app.get("/health/live")
async def health_live():
    return {"status": "alive"}


@app.get("/health/ready")
async def health_ready():
    """503 while the configuration has problems."""
    problems = Config.problems()
    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "; ".join(problems)},
        )
    return {"status": "ready"}


@app.get("/health/trace")
async def health_trace():
    return get_tracer_config()


@app.get("/config/info")
async def config_info():
    """Non-secret configuration. Credentials are reported only as set / unset."""
    return {
        "environment": Config.ENVIRONMENT,
        "llm_backend": Config.LLM_BACKEND,
        "ollama_model": Config.OLLAMA_MODEL,
        "max_tool_calls": Config.AGENT_MAX_TOOL_CALLS,
        "weather_api": Config.WEATHER_API_BASE_URL,
        "weather_timeout_ms": Config.WEATHER_TIMEOUT_MS,
        "wordpress_configured": Config.wordpress_configured(),
    }


@app.get("/")
async def root():
    return {
        "name": "Weather Agent Tools API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "agent": "POST /api/langchain/tool/agent/nodejs",
            "health_live": "GET /health/live",
            "health_ready": "GET /health/ready",
            "health_trace": "GET /health/trace",
            "config_info": "GET /config/info",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=Config.AGENT_PORT,
        reload=Config.ENVIRONMENT == "development",
    )
