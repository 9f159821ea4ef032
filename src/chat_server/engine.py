"""Two-phase tool orchestration.

Phase one advertises the tool catalog and lets the model decide which tools
to call. The calls are executed, their results are folded back into the
transcript, and phase two asks the model for the final answer with no tools
advertised, so tool calls cannot chain.

Each phase is a step over an explicit ``RunState``:

    start -> plan -> execute_tools -> follow_up -> finish

Any LLM failure leaves the state ``ABORTED``, as does a tool that is not
configured. Other tool failures never do.
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import Any

from enrichment.adapters import ConfigurationError
from enrichment.logging import get_logger
from enrichment.schemas import Failed, ToolResult
from enrichment.tools import ToolRegistry

from .llm import CompletionClient, LLMTurn
from .prompts import FOLLOW_UP_INSTRUCTIONS, TOOL_INSTRUCTIONS
from .state import (
    ChatResponse,
    Phase,
    ResponseMetadata,
    RunState,
    ToolCallRecord,
    ToolInvocation,
    TraceRecord,
)
from .trace import now_utc_iso, record_llm_call, record_tool_call

logger = get_logger("engine")


def start(message: str, trace_id: str, trace: TraceRecord | None = None) -> RunState:
    state = RunState(message=message, trace_id=trace_id, trace=trace)
    state.transcript = [
        {"role": "system", "content": TOOL_INSTRUCTIONS},
        {"role": "user", "content": message},
    ]
    state.phase = Phase.TOOL_PHASE
    return state


def finish(state: RunState) -> RunState:
    state.response = ChatResponse(
        id=state.response_id or str(uuid.uuid4()),
        content=state.content or "",
        timestamp=now_utc_iso(),
        metadata=ResponseMetadata(
            processing_time_ms=int(round(state.processing_time_ms)),
            sources=list(state.sources),
            tool_calls=list(state.tool_calls),
        ),
    )
    state.phase = Phase.DONE
    return state


class OrchestrationEngine:
    def __init__(
        self,
        llm: CompletionClient,
        registry: ToolRegistry,
        *,
        concurrent_tools: bool = True,
    ) -> None:
        self._llm = llm
        self._registry = registry
        self._concurrent_tools = concurrent_tools

    async def run(self, message: str, trace_id: str, trace: TraceRecord | None = None) -> RunState:
        """Run a single request through both phases."""
        state = start(message, trace_id, trace)
        state = await self.plan(state)
        if state.phase is Phase.ABORTED:
            return state
        state = await self.execute_tools(state)
        if state.phase is Phase.ABORTED:
            return state
        state = await self.follow_up(state)
        if state.phase is Phase.ABORTED:
            return state
        return finish(state)

    async def plan(self, state: RunState) -> RunState:
        turn = await self._call_llm(state, "tool_phase", state.transcript, self._registry.openai_tools())
        if turn is None:
            return state
        state.response_id = turn.id
        state.invocations = list(turn.tool_calls)
        state.planner_text = turn.text
        state.phase = Phase.EXECUTING
        return state

    async def execute_tools(self, state: RunState) -> RunState:
        dispatchable: list[ToolInvocation] = []
        for invocation in state.invocations:
            if self._registry.get(invocation.name) is None:
                logger.warning(
                    "tool_unknown",
                    extra={"extra": {"trace_id": state.trace_id, "tool": invocation.name}},
                )
                continue
            dispatchable.append(invocation)

        if self._concurrent_tools:
            outcomes = await asyncio.gather(
                *(self._execute(state, invocation) for invocation in dispatchable),
                return_exceptions=True,
            )
        else:
            outcomes = []
            for invocation in dispatchable:
                try:
                    outcomes.append(await self._execute(state, invocation))
                except Exception as exc:  # noqa: BLE001
                    outcomes.append(exc)

        for invocation, outcome in zip(dispatchable, outcomes):
            if isinstance(outcome, ConfigurationError):
                logger.error(
                    "tool_misconfigured",
                    extra={
                        "extra": {
                            "trace_id": state.trace_id,
                            "tool": invocation.name,
                            "error_code": outcome.code,
                        }
                    },
                )
                state.phase = Phase.ABORTED
                state.error = outcome.message
                return state

        directives: list[dict[str, Any]] = []
        outputs: list[dict[str, Any]] = []
        # Record in directive order, whatever order the calls completed in.
        for invocation, outcome in zip(dispatchable, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(
                    "tool_error",
                    extra={
                        "extra": {
                            "trace_id": state.trace_id,
                            "tool": invocation.name,
                            "error": str(outcome),
                            "error_type": type(outcome).__name__,
                        }
                    },
                )
                continue
            call_id = invocation.id or str(uuid.uuid4())
            result_json = outcome.model_dump_json()
            directives.append(
                {
                    "id": call_id,
                    "type": "function",
                    "function": {"name": invocation.name, "arguments": invocation.raw_arguments},
                }
            )
            outputs.append({"role": "tool", "tool_call_id": call_id, "content": result_json})
            state.sources.append(invocation.name)
            state.tool_calls.append(
                ToolCallRecord(
                    id=call_id,
                    name=invocation.name,
                    arguments=invocation.raw_arguments,
                    result=result_json,
                )
            )

        if directives:
            # Tool outputs are only valid right after the assistant turn that requested them.
            state.transcript.append(
                {"role": "assistant", "content": state.planner_text or "", "tool_calls": directives}
            )
            state.transcript.extend(outputs)
        elif state.planner_text:
            state.transcript.append({"role": "assistant", "content": state.planner_text})

        state.phase = Phase.FOLLOW_UP
        return state

    async def follow_up(self, state: RunState) -> RunState:
        messages = [{"role": "system", "content": FOLLOW_UP_INSTRUCTIONS}] + state.transcript[1:]
        turn = await self._call_llm(state, "follow_up", messages, None)
        if turn is None:
            return state
        state.content = turn.text or ""
        state.transcript = messages + [{"role": "assistant", "content": state.content}]
        return state

    async def _execute(self, state: RunState, invocation: ToolInvocation) -> ToolResult:
        start_ts = time.time()
        arguments: dict[str, Any] | None = None
        try:
            try:
                arguments = json.loads(invocation.raw_arguments or "{}")
            except ValueError as exc:
                result: ToolResult = Failed(reason=f"Invalid arguments for {invocation.name}: {exc}")
            else:
                result = await self._registry.invoke(invocation.name, arguments)
        except Exception:
            record_tool_call(
                state.trace,
                tool_name=invocation.name,
                args=arguments,
                status="error",
                latency_ms=int((time.time() - start_ts) * 1000),
                result=None,
            )
            raise

        latency_ms = int((time.time() - start_ts) * 1000)
        logger.info(
            "tool_call",
            extra={
                "extra": {
                    "trace_id": state.trace_id,
                    "tool": invocation.name,
                    "latency_ms": latency_ms,
                    "status": result.status,
                }
            },
        )
        record_tool_call(
            state.trace,
            tool_name=invocation.name,
            args=arguments,
            status=result.status,
            latency_ms=latency_ms,
            result=result.model_dump(),
        )
        return result

    async def _call_llm(
        self,
        state: RunState,
        phase: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
    ) -> LLMTurn | None:
        started = time.perf_counter()
        try:
            turn = await self._llm.complete(messages, tools)
        except Exception as exc:  # noqa: BLE001
            latency_ms = int((time.perf_counter() - started) * 1000)
            logger.error(
                "llm_error",
                extra={"extra": {"trace_id": state.trace_id, "phase": phase, "error": str(exc)}},
            )
            record_llm_call(
                state.trace,
                phase=phase,
                latency_ms=latency_ms,
                tool_calls=[],
                messages_summary=_summarize_messages(messages),
                error=str(exc),
            )
            state.phase = Phase.ABORTED
            state.error = str(exc)
            return None

        elapsed_ms = (time.perf_counter() - started) * 1000
        state.processing_time_ms += elapsed_ms
        logger.info(
            "llm_call",
            extra={
                "extra": {
                    "trace_id": state.trace_id,
                    "phase": phase,
                    "latency_ms": int(elapsed_ms),
                    "tool_calls": len(turn.tool_calls),
                    "finish_reason": turn.finish_reason,
                }
            },
        )
        record_llm_call(
            state.trace,
            phase=phase,
            latency_ms=int(elapsed_ms),
            tool_calls=[{"name": call.name, "arguments": call.raw_arguments} for call in turn.tool_calls],
            messages_summary=_summarize_messages(messages),
            finish_reason=turn.finish_reason,
        )
        return turn


def _summarize_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {"role": msg.get("role"), "content_len": len(str(msg.get("content", "")))}
        for msg in messages
    ]
