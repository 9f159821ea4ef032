"""FastAPI app exposing the enrichment tools over a stateless RPC-style API.

Same tools and ToolResult contract as the chat server uses in-process.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request

from .adapters import ConfigurationError
from .logging import get_logger, set_level
from .schemas import ToolMeta, ToolResponse
from .settings import get_settings
from .tools import ToolRegistry, get_registry

logger = get_logger("tool_server")

app = FastAPI(title="Octave Tool Server", version="0.1.0")


@app.on_event("startup")
def log_startup_config() -> None:
    settings = get_settings()
    set_level(settings.log_level)
    logger.info(
        "tool_server_config",
        extra={
            "extra": {
                "base_url": settings.base_url,
                "octave_key_set": bool(settings.octave_api_key),
                "company_oid_set": bool(settings.enrich_company_oid),
                "person_oid_set": bool(settings.enrich_person_oid),
                "sequence_oid_set": bool(settings.sequence_oid),
            }
        },
    )


@app.on_event("shutdown")
async def close_registry() -> None:
    if get_registry.cache_info().currsize:
        await get_registry().client.aclose()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/tools")
def list_tools(registry: ToolRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    return [
        {
            "name": descriptor.name,
            "description": descriptor.description,
            "input_schema": descriptor.parameter_schema,
        }
        for descriptor in registry.describe_all()
    ]


@app.post("/tools/{tool_name}")
async def call_tool(
    tool_name: str,
    request: Request,
    registry: ToolRegistry = Depends(get_registry),
) -> ToolResponse:
    trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
    start = time.time()

    if registry.get(tool_name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")

    try:
        payload = await request.json()
    except ValueError:
        payload = {}

    try:
        result = await registry.invoke(tool_name, payload)
    except ConfigurationError as exc:
        logger.error(
            "tool_misconfigured",
            extra={"extra": {"trace_id": trace_id, "tool": tool_name, "error_code": exc.code}},
        )
        raise HTTPException(status_code=503, detail=f"Tool not configured: {tool_name}") from exc

    latency_ms = int((time.time() - start) * 1000)
    logger.info(
        "tool_call",
        extra={
            "extra": {
                "trace_id": trace_id,
                "tool": tool_name,
                "latency_ms": latency_ms,
                "status": result.status,
            }
        },
    )
    return ToolResponse(
        result=result,
        meta=ToolMeta(tool_name=tool_name, trace_id=trace_id, latency_ms=latency_ms),
    )


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "enrichment.server:app",
        host=settings.tool_server_host,
        port=settings.tool_server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
