import httpx
import pytest
from fastapi.testclient import TestClient

from enrichment import server
from enrichment.adapters.octave import EnrichmentClient
from enrichment.settings import get_settings
from enrichment.tools import ToolRegistry, get_registry


@pytest.fixture
def client(registry):
    server.app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


def test_list_tools(client):
    resp = client.get("/tools")

    assert resp.status_code == 200
    tools = resp.json()
    assert [tool["name"] for tool in tools] == ["enrichCompany", "enrichPerson", "generateEmailSequence"]
    assert tools[0]["input_schema"]["required"] == ["companyDomain"]


def test_call_tool_found(client):
    resp = client.post("/tools/enrichCompany", json={"companyDomain": "acme.com"}, headers={"x-trace-id": "t-1"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["result"]["status"] == "found"
    assert data["result"]["payload"]["domain"] == "acme.com"
    assert data["meta"]["tool_name"] == "enrichCompany"
    assert data["meta"]["trace_id"] == "t-1"


def test_call_tool_not_found(client):
    resp = client.post("/tools/generateEmailSequence", json={"linkedInProfile": "https://linkedin.com/in/notfound"})

    assert resp.status_code == 200
    assert resp.json()["result"]["status"] == "not_found"


def test_call_tool_invalid_arguments(client):
    resp = client.post("/tools/enrichPerson", json={"profile": "x"})

    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["status"] == "failed"
    assert "Invalid arguments" in result["reason"]


def test_unknown_tool_is_404(client):
    resp = client.post("/tools/lookupWeather", json={"city": "Paris"})

    assert resp.status_code == 404


def test_unconfigured_tool_is_503(octave_stub):
    settings = get_settings().model_copy(update={"sequence_oid": None})
    registry = ToolRegistry(EnrichmentClient(settings, transport=httpx.MockTransport(octave_stub)))
    server.app.dependency_overrides[get_registry] = lambda: registry
    try:
        resp = TestClient(server.app).post(
            "/tools/generateEmailSequence",
            json={"linkedInProfile": "https://linkedin.com/in/johndoe"},
        )
    finally:
        server.app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert octave_stub.requests == []
