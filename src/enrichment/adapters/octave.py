"""Octave agents adapter.

Encapsulates the upstream agent API and normalizes every outcome into a
ToolResult. Only ConfigurationError escapes this module.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import httpx

from ..logging import get_logger
from ..schemas import Failed, Found, NotFound, ToolResult
from ..settings import EnrichmentSettings
from . import ConfigurationError

logger = get_logger("octave")

BODY_PREVIEW_CHARS = 200


@dataclass(frozen=True)
class AgentRoute:
    tool_name: str
    path: str
    input_field: str
    subject: str


COMPANY_ROUTE = AgentRoute(
    tool_name="enrichCompany",
    path="/agents/enrich-company/run",
    input_field="companyDomain",
    subject="No enrichment data found for company domain",
)
PERSON_ROUTE = AgentRoute(
    tool_name="enrichPerson",
    path="/agents/enrich-person/run",
    input_field="linkedInProfile",
    subject="No enrichment data found for LinkedIn profile",
)
SEQUENCE_ROUTE = AgentRoute(
    tool_name="generateEmailSequence",
    path="/agents/sequence/run",
    input_field="linkedInProfile",
    subject="No email sequence generated for LinkedIn profile",
)


class EnrichmentClient:
    """Async client for the three Octave agents.

    One pooled ``httpx.AsyncClient`` is shared by every call; pass
    ``transport`` to stub the network in tests.
    """

    def __init__(
        self,
        settings: EnrichmentSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._http = httpx.AsyncClient(
            base_url=settings.base_url,
            headers={
                "Content-Type": "application/json",
                "api_key": settings.octave_api_key or "",
            },
            timeout=settings.request_timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def enrich_company(self, company_domain: str) -> ToolResult:
        return await self._run_agent(COMPANY_ROUTE, self._settings.enrich_company_oid, company_domain)

    async def enrich_person(self, linkedin_profile: str) -> ToolResult:
        return await self._run_agent(PERSON_ROUTE, self._settings.enrich_person_oid, linkedin_profile)

    async def generate_email_sequence(self, linkedin_profile: str) -> ToolResult:
        return await self._run_agent(SEQUENCE_ROUTE, self._settings.sequence_oid, linkedin_profile)

    async def _run_agent(self, route: AgentRoute, agent_id: str | None, value: str) -> ToolResult:
        if not agent_id:
            logger.error(
                "enrichment_misconfigured",
                extra={"extra": {"tool": route.tool_name, "reason": "agent id not set"}},
            )
            raise ConfigurationError(
                "MISSING_AGENT_ID",
                f"Agent OID is required for {route.tool_name}",
                {"tool": route.tool_name},
            )

        logger.info(
            "enrichment_call",
            extra={"extra": {"tool": route.tool_name, route.input_field: value}},
        )
        start = time.time()
        try:
            resp = await self._http.post(route.path, json={"agentOId": agent_id, route.input_field: value})
        except httpx.RequestError as exc:
            return self._finish(
                route,
                start,
                Failed(reason=f"Error calling {route.tool_name} for {value}: {str(exc) or type(exc).__name__}"),
            )

        if resp.status_code != 200:
            reason = f"{route.tool_name} for {value} failed with status {resp.status_code}"
            body = resp.text[:BODY_PREVIEW_CHARS]
            if body:
                reason = f"{reason}: {body}"
            return self._finish(route, start, Failed(reason=reason))

        try:
            data = resp.json()
        except ValueError as exc:
            return self._finish(
                route,
                start,
                Failed(reason=f"{route.tool_name} for {value} returned invalid JSON: {exc}"),
            )

        if not isinstance(data, dict) or not data.get("found"):
            return self._finish(route, start, NotFound(reason=f"{route.subject}: {value}"))

        return self._finish(route, start, Found(payload=data.get("data")))

    def _finish(self, route: AgentRoute, start: float, result: ToolResult) -> ToolResult:
        latency_ms = int((time.time() - start) * 1000)
        fields = {"tool": route.tool_name, "status": result.status, "latency_ms": latency_ms}
        if isinstance(result, Failed):
            fields["reason"] = result.reason
            logger.warning("enrichment_result", extra={"extra": fields})
        else:
            logger.info("enrichment_result", extra={"extra": fields})
        return result
