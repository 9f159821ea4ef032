"""Person enrichment tool."""

from __future__ import annotations

from ..adapters.octave import EnrichmentClient
from ..schemas import EnrichPersonInput, ToolResult


async def enrich_person(payload: EnrichPersonInput, client: EnrichmentClient) -> ToolResult:
    return await client.enrich_person(payload.linkedin_profile)
