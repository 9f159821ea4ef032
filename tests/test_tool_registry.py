import dataclasses

import pytest

from enrichment.schemas import Failed, Found, NotFound
from enrichment.tools import UnknownToolError


def test_describe_all_lists_every_tool(registry):
    descriptors = registry.describe_all()

    assert [d.name for d in descriptors] == ["enrichCompany", "enrichPerson", "generateEmailSequence"]
    company = descriptors[0]
    assert company.parameter_schema["required"] == ["companyDomain"]
    assert company.parameter_schema["additionalProperties"] is False
    assert company.parameter_schema["properties"]["companyDomain"]["type"] == "string"


def test_descriptors_are_immutable(registry):
    descriptor = registry.describe_all()[0]
    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptor.name = "other"


@pytest.mark.asyncio
async def test_invoke_dispatches_to_client(registry, octave_stub):
    result = await registry.invoke("enrichCompany", {"companyDomain": "acme.com"})

    assert isinstance(result, Found)
    assert result.payload["domain"] == "acme.com"
    assert len(octave_stub.requests) == 1


@pytest.mark.asyncio
async def test_invoke_person_not_found(registry):
    result = await registry.invoke("enrichPerson", {"linkedInProfile": "https://linkedin.com/in/notfound"})

    assert isinstance(result, NotFound)


@pytest.mark.asyncio
async def test_unknown_tool_raises(registry):
    with pytest.raises(UnknownToolError) as excinfo:
        await registry.invoke("lookupWeather", {"city": "Paris"})

    assert "lookupWeather" in str(excinfo.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "arguments",
    [
        {},
        {"companyDomain": "   "},
        {"companyDomain": "acme.com", "extra": True},
        ["acme.com"],
    ],
)
async def test_invalid_arguments_become_failed(registry, octave_stub, arguments):
    result = await registry.invoke("enrichCompany", arguments)

    assert isinstance(result, Failed)
    assert result.reason.startswith("Invalid arguments for enrichCompany")
    assert octave_stub.requests == []
