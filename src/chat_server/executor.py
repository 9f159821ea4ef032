"""Protocol adapter for incoming chat requests.

Keep this layer thin so protocol changes do not affect the engine.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, Field, ValidationError

from enrichment.logging import get_logger
from enrichment.tools import get_registry

from .engine import OrchestrationEngine
from .llm import get_completion_client
from .settings import ChatSettings
from .state import Phase
from .trace import build_trace, finalize_trace, record_final, write_trace

logger = get_logger("executor")

MESSAGE_REQUIRED = "Message is required"
OPENAI_NOT_CONFIGURED = "OpenAI API key not configured"
INTERNAL_ERROR = "Internal server error"


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1)


@dataclass
class ChatOutcome:
    status_code: int
    body: dict[str, Any]


EngineFactory = Callable[[ChatSettings], OrchestrationEngine]


def build_engine(settings: ChatSettings) -> OrchestrationEngine:
    return OrchestrationEngine(
        get_completion_client(),
        get_registry(),
        concurrent_tools=settings.concurrent_tools,
    )


async def handle_chat(
    payload: Any,
    trace_id: str,
    settings: ChatSettings,
    engine_factory: EngineFactory = build_engine,
) -> ChatOutcome:
    try:
        request = ChatMessageRequest.model_validate(payload)
    except ValidationError as exc:
        logger.debug(
            "chat_request_invalid",
            extra={"extra": {"trace_id": trace_id, "errors": exc.error_count()}},
        )
        return ChatOutcome(400, {"error": MESSAGE_REQUIRED})

    if not settings.openai_api_key:
        logger.error("chat_misconfigured", extra={"extra": {"trace_id": trace_id, "missing": "openai_api_key"}})
        return ChatOutcome(500, {"error": OPENAI_NOT_CONFIGURED})

    started_at_ts = time.time()
    trace = build_trace(trace_id, request.message)
    try:
        # Engine is built per request; the registry behind it is process-wide.
        engine = engine_factory(settings)
        state = await engine.run(request.message, trace_id, trace)
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "chat_failed",
            extra={"extra": {"trace_id": trace_id, "error": str(exc)}},
        )
        outcome = ChatOutcome(500, {"error": INTERNAL_ERROR})
    else:
        if state.phase is Phase.DONE and state.response is not None:
            record_final(
                trace,
                answer_text=state.response.content,
                render_meta={"sources": state.response.metadata.sources},
            )
            outcome = ChatOutcome(200, state.response.model_dump(by_alias=True, mode="json"))
        else:
            logger.error(
                "chat_aborted",
                extra={"extra": {"trace_id": trace_id, "phase": state.phase.value, "error": state.error}},
            )
            outcome = ChatOutcome(500, {"error": INTERNAL_ERROR})

    finalize_trace(trace, started_at_ts)
    if settings.trace_enabled:
        try:
            write_trace(trace, settings.trace_dir)
        except OSError as exc:
            logger.warning(
                "trace_write_failed",
                extra={"extra": {"trace_id": trace_id, "trace_dir": settings.trace_dir, "error": str(exc)}},
            )
    return outcome
