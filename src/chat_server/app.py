"""FastAPI entry for the chat server."""

from __future__ import annotations

import uuid

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from enrichment.logging import get_logger, set_level
from enrichment.settings import get_settings as get_enrichment_settings
from enrichment.tools import get_registry

from .executor import EngineFactory, build_engine, handle_chat
from .llm import get_completion_client
from .settings import get_settings

app = FastAPI(title="Octave Chat Server", version="0.1.0")
logger = get_logger("chat_server")


def get_engine_factory() -> EngineFactory:
    return build_engine


@app.on_event("startup")
def log_startup_config() -> None:
    settings = get_settings()
    enrichment_settings = get_enrichment_settings()
    set_level(settings.log_level)
    logger.info(
        "chat_server_config",
        extra={
            "extra": {
                "openai_model": settings.openai_model,
                "openai_key_set": bool(settings.openai_api_key),
                "openai_timeout_s": settings.openai_timeout_s,
                "concurrent_tools": settings.concurrent_tools,
                "octave_base_url": enrichment_settings.base_url,
                "trace_enabled": settings.trace_enabled,
            }
        },
    )


@app.on_event("shutdown")
async def close_clients() -> None:
    if get_registry.cache_info().currsize:
        await get_registry().client.aclose()
    if get_completion_client.cache_info().currsize:
        await get_completion_client().aclose()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/chat")
async def chat(request: Request, engine_factory: EngineFactory = Depends(get_engine_factory)) -> JSONResponse:
    # Preserve incoming trace_id if provided, else generate one.
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    outcome = await handle_chat(payload, trace_id, get_settings(), engine_factory)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
