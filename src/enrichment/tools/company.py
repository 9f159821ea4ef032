"""Company enrichment tool."""

from __future__ import annotations

from ..adapters.octave import EnrichmentClient
from ..schemas import EnrichCompanyInput, ToolResult


async def enrich_company(payload: EnrichCompanyInput, client: EnrichmentClient) -> ToolResult:
    return await client.enrich_company(payload.company_domain)
