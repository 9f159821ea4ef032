"""LLM completion adapter.

The engine only sees ``CompletionClient``; the OpenAI implementation maps
Chat Completions responses onto ``LLMTurn``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

from openai import AsyncOpenAI

from .settings import ChatSettings, get_settings
from .state import ToolInvocation


@dataclass
class LLMTurn:
    id: str | None
    text: str | None
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    finish_reason: str | None = None


class CompletionClient(Protocol):
    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMTurn: ...


class OpenAICompletionClient:
    def __init__(self, settings: ChatSettings) -> None:
        self._settings = settings
        self._client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout_s)

    async def aclose(self) -> None:
        await self._client.close()

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMTurn:
        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        response = await self._client.chat.completions.create(
            model=self._settings.openai_model,
            messages=messages,
            temperature=self._settings.temperature,
            **kwargs,
        )
        choice = response.choices[0]
        message = choice.message
        invocations = [
            ToolInvocation(
                id=call.id,
                name=call.function.name,
                raw_arguments=call.function.arguments or "{}",
            )
            for call in message.tool_calls or []
            if call.type == "function"
        ]
        return LLMTurn(
            id=response.id,
            text=message.content,
            tool_calls=invocations,
            finish_reason=choice.finish_reason,
        )


@lru_cache(maxsize=1)
def get_completion_client() -> OpenAICompletionClient:
    """Process-wide OpenAI client; its connection pool is shared by all requests."""
    return OpenAICompletionClient(get_settings())
