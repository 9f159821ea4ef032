"""Shared tool schemas (single source of truth).

The chat server and the tool server both import these models to avoid drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Found(BaseModel):
    """The remote agent ran and returned data."""
    status: Literal["found"] = "found"
    payload: Any = None


class NotFound(BaseModel):
    """The remote agent ran but had nothing for the given input."""
    status: Literal["not_found"] = "not_found"
    reason: str


class Failed(BaseModel):
    """Transport, HTTP or decoding failure."""
    status: Literal["failed"] = "failed"
    reason: str


ToolResult = Annotated[Union[Found, NotFound, Failed], Field(discriminator="status")]


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)


class EnrichCompanyInput(ToolInput):
    """Input for the company enrichment tool."""
    company_domain: str = Field(
        ...,
        alias="companyDomain",
        min_length=1,
        description="The company domain (e.g., example.com) to enrich information for",
    )


class EnrichPersonInput(ToolInput):
    """Input for the person enrichment tool."""
    linkedin_profile: str = Field(
        ...,
        alias="linkedInProfile",
        min_length=1,
        description="The LinkedIn profile URL of the person to enrich information for",
    )


class EmailSequenceInput(ToolInput):
    """Input for the email sequence tool."""
    linkedin_profile: str = Field(
        ...,
        alias="linkedInProfile",
        min_length=1,
        description="The LinkedIn profile URL of the person to generate emails for",
    )


class ToolMeta(BaseModel):
    """Metadata attached to tool server responses for observability."""
    tool_name: str
    trace_id: str
    latency_ms: int | None = None


class ToolResponse(BaseModel):
    """Envelope returned by the tool server."""
    result: ToolResult
    meta: ToolMeta


@dataclass(frozen=True)
class ToolDescriptor:
    """What the LLM is told about a tool."""
    name: str
    description: str
    parameter_schema: dict[str, Any]


ToolHandler = Callable[[Any, Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    """Registry entry: advertised metadata plus the bound executor."""
    name: str
    description: str
    input_model: type[ToolInput]
    handler: ToolHandler

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            parameter_schema=self.input_model.model_json_schema(),
        )
