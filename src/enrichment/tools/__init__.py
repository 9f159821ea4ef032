"""Tool registry shared by the chat server and the tool server."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from ..adapters.octave import EnrichmentClient
from ..schemas import (
    EmailSequenceInput,
    EnrichCompanyInput,
    EnrichPersonInput,
    Failed,
    ToolDescriptor,
    ToolResult,
    ToolSpec,
)
from ..settings import get_settings
from .company import enrich_company
from .person import enrich_person
from .sequence import generate_email_sequence

TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="enrichCompany",
        description=(
            "Enrich company information using the company domain. Provides detailed company data "
            "including size, industry, revenue, and other business intelligence."
        ),
        input_model=EnrichCompanyInput,
        handler=enrich_company,
    ),
    ToolSpec(
        name="enrichPerson",
        description=(
            "Enrich person information using their LinkedIn profile URL. Provides detailed information "
            "about the person including their role, experience, and company."
        ),
        input_model=EnrichPersonInput,
        handler=enrich_person,
    ),
    ToolSpec(
        name="generateEmailSequence",
        description=(
            "Generate a personalized outreach email sequence for a person. Requires their LinkedIn "
            "profile URL to create targeted, relevant email content."
        ),
        input_model=EmailSequenceInput,
        handler=generate_email_sequence,
    ),
)


class UnknownToolError(KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown tool: {self.name}"


class ToolRegistry:
    """Read-only catalog of tools bound to one EnrichmentClient."""

    def __init__(self, client: EnrichmentClient, specs: Iterable[ToolSpec] = TOOL_SPECS) -> None:
        self._client = client
        self._specs: Mapping[str, ToolSpec] = MappingProxyType({spec.name: spec for spec in specs})

    @property
    def client(self) -> EnrichmentClient:
        return self._client

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def describe_all(self) -> list[ToolDescriptor]:
        return [spec.describe() for spec in self._specs.values()]

    def openai_tools(self) -> list[dict[str, Any]]:
        """Translate descriptors into the Chat Completions tool schema."""
        return [
            {
                "type": "function",
                "function": {
                    "name": descriptor.name,
                    "description": descriptor.description,
                    "parameters": descriptor.parameter_schema,
                },
            }
            for descriptor in self.describe_all()
        ]

    async def invoke(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownToolError(name)
        try:
            payload = spec.input_model.model_validate(arguments)
        except ValidationError as exc:
            return Failed(reason=f"Invalid arguments for {name}: {_summarize_errors(exc)}")
        return await spec.handler(payload, self._client)


def _summarize_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(item) for item in error.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {error.get('msg')}")
    return "; ".join(parts)


@lru_cache(maxsize=1)
def get_registry() -> ToolRegistry:
    """Process-wide registry with a pooled enrichment client."""
    return ToolRegistry(EnrichmentClient(get_settings()))
