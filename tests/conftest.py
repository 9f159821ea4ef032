import asyncio
import copy
import json

import httpx
import pytest

from chat_server.llm import get_completion_client
from chat_server.settings import get_settings as get_chat_settings
from enrichment.adapters.octave import EnrichmentClient
from enrichment.settings import get_settings as get_enrichment_settings
from enrichment.tools import ToolRegistry, get_registry

TEST_ENV = {
    "OPENAI_API_KEY": "test-openai-key",
    "OCTAVE_API_KEY": "test-octave-key",
    "OCTAVE_ENRICH_COMPANY_OID": "test-company-oid",
    "OCTAVE_ENRICH_PERSON_OID": "test-person-oid",
    "OCTAVE_SEQUENCE_OID": "test-sequence-oid",
    "OCTAVE_ENV": "dev",
}

COMPANY_DATA = {
    "companyName": "Test Company",
    "industry": "Technology",
    "size": "100-500",
    "revenue": "$10M-$50M",
    "location": "San Francisco, CA",
}
PERSON_DATA = {
    "name": "John Doe",
    "title": "Software Engineer",
    "company": "Test Company",
    "experience": "5 years",
    "skills": ["JavaScript", "React", "Node.js"],
}
SEQUENCE_DATA = {
    "emails": [
        {"subject": "Test Subject", "body": "Test email body content", "type": "introduction"},
    ]
}


def clear_caches() -> None:
    get_chat_settings.cache_clear()
    get_enrichment_settings.cache_clear()
    get_registry.cache_clear()
    get_completion_client.cache_clear()


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    # Clear cached settings so env takes effect
    clear_caches()
    yield
    clear_caches()


class OctaveStub:
    """Stand-in for the Octave agent endpoints.

    ``error.com`` / profiles containing "error" get a 500, ``notfound.com`` /
    profiles containing "notfound" get ``found: false``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.completed: list[str] = []
        self.delays: dict[str, float] = {}

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        agent = request.url.path.rsplit("/agents/", 1)[-1].removesuffix("/run")
        delay = self.delays.get(agent)
        if delay:
            await asyncio.sleep(delay)
        response = self._respond(agent, json.loads(request.content))
        self.completed.append(agent)
        return response

    def _respond(self, agent: str, body: dict) -> httpx.Response:
        if agent == "enrich-company":
            domain = body["companyDomain"]
            if domain == "error.com":
                return httpx.Response(500)
            if domain == "notfound.com":
                return httpx.Response(200, json={"found": False, "error": "No enrichment data found"})
            return httpx.Response(200, json={"found": True, "data": {**COMPANY_DATA, "domain": domain}})

        profile = body["linkedInProfile"]
        if "error" in profile:
            return httpx.Response(500)
        if "notfound" in profile:
            return httpx.Response(200, json={"found": False, "error": "No enrichment data found"})
        if agent == "enrich-person":
            return httpx.Response(200, json={"found": True, "data": PERSON_DATA})
        if agent == "sequence":
            return httpx.Response(200, json={"found": True, "data": SEQUENCE_DATA})
        return httpx.Response(404)


class ScriptedLLM:
    """CompletionClient returning canned turns (or raising canned errors) in order."""

    def __init__(self, *turns) -> None:
        self._turns = list(turns)
        self.calls: list[dict] = []

    async def complete(self, messages, tools=None):
        self.calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        turn = self._turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn


@pytest.fixture
def octave_stub():
    return OctaveStub()


@pytest.fixture
def enrichment_client(octave_stub):
    return EnrichmentClient(get_enrichment_settings(), transport=httpx.MockTransport(octave_stub))


@pytest.fixture
def registry(enrichment_client):
    return ToolRegistry(enrichment_client)


@pytest.fixture
def scripted_llm():
    return ScriptedLLM
