import json
import uuid
from typing import Any

import pytest
from fastmcp import Client, FastMCP
from fastmcp.exceptions import ToolError

from canvas_provisioning.tools import ProvisioningToolDependencies, register_provisioning_tools
from canvas_provisioning.web import ClientContext
from tests.fakes import FakeSite


@pytest.fixture
def mcp(context: ClientContext) -> FastMCP:
    server = FastMCP(name="test-provisioning")
    register_provisioning_tools(server, ProvisioningToolDependencies(context=context))
    return server


async def _call(mcp: FastMCP, tool: str, arguments: dict[str, Any]) -> dict[str, Any]:
    async with Client(mcp) as client:
        result = await client.call_tool(tool, arguments)
    return result.structured_content


@pytest.mark.anyio
async def test_list_control_is_updated(site: FakeSite, mcp: FastMCP) -> None:
    docs = site.add("Docs", "Docs")
    result = await _call(
        mcp,
        "process_canvas_control",
        {"control_type": "List", "json_control_data": '{"listTitle":"Docs"}'},
    )
    assert result["status"] == "UPDATED"
    data = json.loads(result["json_control_data"])
    assert data["selectedListId"] == docs["Id"]
    assert data["selectedListUrl"] == "/sites/s/Docs"


@pytest.mark.anyio
async def test_unresolved_list_control_is_unchanged(mcp: FastMCP) -> None:
    payload = '{"listTitle":"Missing"}'
    result = await _call(mcp, "process_canvas_control", {"control_type": "list", "json_control_data": payload})
    assert result == {"status": "UNCHANGED", "json_control_data": payload}


@pytest.mark.anyio
@pytest.mark.parametrize("control_type", ["Text", "Carousel"])
async def test_non_list_controls_are_skipped(site: FakeSite, mcp: FastMCP, control_type: str) -> None:
    result = await _call(mcp, "process_canvas_control", {"control_type": control_type, "json_control_data": "{}"})
    assert result == {"status": "SKIPPED", "json_control_data": "{}"}
    assert site.calls == []


@pytest.mark.anyio
async def test_malformed_control_data_is_reported(mcp: FastMCP) -> None:
    result = await _call(mcp, "process_canvas_control", {"control_type": "List", "json_control_data": "{broken"})
    assert "not valid JSON" in result["error"]


@pytest.mark.anyio
async def test_sharepoint_errors_are_reported(mcp: FastMCP) -> None:
    payload = json.dumps({"selectedListId": str(uuid.uuid4())})
    result = await _call(mcp, "process_canvas_control", {"control_type": "List", "json_control_data": payload})
    assert "was not found" in result["error"]


@pytest.mark.anyio
async def test_resolve_list_returns_details(site: FakeSite, mcp: FastMCP) -> None:
    lib = site.add("Library", "Lib")
    result = await _call(mcp, "resolve_list", {"list_url": "Lib"})
    assert result == {"list_id": lib["Id"], "title": "Library", "root_folder_url": "/sites/s/Lib"}


@pytest.mark.anyio
async def test_resolve_list_without_match(mcp: FastMCP) -> None:
    result = await _call(mcp, "resolve_list", {"list_title": "Missing"})
    assert result == {"error": "No matching list was found."}


@pytest.mark.anyio
async def test_resolve_list_requires_a_reference(mcp: FastMCP) -> None:
    async with Client(mcp) as client:
        with pytest.raises(ToolError):
            await client.call_tool("resolve_list", {"list_url": " "})
