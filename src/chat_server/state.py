"""Per-request state threaded through the orchestration phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


@dataclass
class TraceRecord:
    """Structured trace container for a single request."""

    trace_id: str
    started_at: str
    finished_at: str | None = None
    latency_ms: int | None = None
    request: dict[str, Any] = field(default_factory=dict)
    llm: list[dict[str, Any]] = field(default_factory=list)
    tools: list[dict[str, Any]] = field(default_factory=list)
    final: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolInvocation:
    """A tool-call directive from the first LLM turn."""

    id: str
    name: str
    raw_arguments: str


class Phase(str, Enum):
    START = "start"
    TOOL_PHASE = "tool_phase"
    EXECUTING = "executing"
    FOLLOW_UP = "follow_up"
    DONE = "done"
    ABORTED = "aborted"


class ToolCallRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    arguments: str
    result: str
    kind: str = Field(default="function", alias="type")


class ResponseMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    processing_time_ms: int = Field(alias="processingTimeMs")
    sources: list[str] = Field(default_factory=list)
    tool_calls: list[ToolCallRecord] = Field(default_factory=list, alias="toolCalls")


class ChatResponse(BaseModel):
    id: str
    content: str
    timestamp: str
    metadata: ResponseMetadata


@dataclass
class RunState:
    """Accumulator for one orchestration run.

    Each phase function takes the state and returns it; nothing survives
    the request.
    """

    message: str
    trace_id: str
    trace: TraceRecord | None = None
    phase: Phase = Phase.START
    transcript: list[dict[str, Any]] = field(default_factory=list)
    invocations: list[ToolInvocation] = field(default_factory=list)
    planner_text: str | None = None
    response_id: str | None = None
    sources: list[str] = field(default_factory=list)
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    processing_time_ms: float = 0.0
    content: str | None = None
    response: ChatResponse | None = None
    error: str | None = None
