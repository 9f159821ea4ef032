"""Email sequence tool."""

from __future__ import annotations

from ..adapters.octave import EnrichmentClient
from ..schemas import EmailSequenceInput, ToolResult


async def generate_email_sequence(payload: EmailSequenceInput, client: EnrichmentClient) -> ToolResult:
    return await client.generate_email_sequence(payload.linkedin_profile)
