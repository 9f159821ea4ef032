"""Trace recording utilities for debugging a single request."""

from __future__ import annotations

import json
import os
import re
import time
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .state import TraceRecord


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_trace(trace_id: str, message: str) -> TraceRecord:
    trace = TraceRecord(trace_id=trace_id, started_at=now_utc_iso())
    trace.request = {"message": message}
    return trace


def record_llm_call(
    trace: TraceRecord | None,
    *,
    phase: str,
    latency_ms: int,
    tool_calls: list[dict[str, Any]],
    messages_summary: list[dict[str, Any]] | None = None,
    finish_reason: str | None = None,
    error: str | None = None,
) -> None:
    if trace is None:
        return
    trace.llm.append(
        {
            "phase": phase,
            "latency_ms": latency_ms,
            "messages_summary": messages_summary or [],
            "tool_calls": tool_calls,
            "finish_reason": finish_reason,
            "error": error,
        }
    )


def record_tool_call(
    trace: TraceRecord | None,
    *,
    tool_name: str,
    args: dict[str, Any] | None,
    status: str,
    latency_ms: int | None,
    result: Any,
) -> None:
    if trace is None:
        return
    trace.tools.append(
        {
            "tool_name": tool_name,
            "args": args,
            "status": status,
            "latency_ms": latency_ms,
            "result": result,
        }
    )


def record_final(trace: TraceRecord, answer_text: str, render_meta: dict[str, Any] | None = None) -> None:
    trace.final = {
        "answer_text": answer_text,
        "render_meta": render_meta or {},
    }


def finalize_trace(trace: TraceRecord, started_at_ts: float) -> None:
    trace.finished_at = now_utc_iso()
    trace.latency_ms = int((time.time() - started_at_ts) * 1000)


def write_trace(trace: TraceRecord, trace_dir: str) -> Path:
    os.makedirs(trace_dir, exist_ok=True)
    ts = trace.started_at.replace(":", "-")
    # Trace ids come from a request header; keep them to one path component.
    safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", trace.trace_id)
    filename = f"{ts}_{safe_id}.json"
    path = Path(trace_dir) / filename
    path.write_text(json.dumps(asdict(trace), ensure_ascii=False, indent=2, default=str), encoding="utf-8")
    return path
