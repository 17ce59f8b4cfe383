"""Tests for the key personnel roster and its MCP server."""

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from staya import mcp_server, roster


def test_roster_has_key_personnel():
    names = [e.name for e in roster.list_roster()]
    assert names == ["Volk", "Igor Dmitrievich", "Nikolai Petrovich", "Takamiya Leon"]


def test_list_roster_returns_copy():
    entries = roster.list_roster()
    entries.clear()
    assert len(roster.list_roster()) == 4


def test_lookup_by_name_and_alias():
    found = roster.lookup(["volk", "Sovetnik"])
    assert [e.name for e in found] == ["Volk", "Igor Dmitrievich"]


def test_lookup_unknown_and_blank():
    assert roster.lookup(["Nobody", "  "]) == []


def test_summary_lines():
    summary = roster.roster_summary()
    assert summary.count("\n") == 3
    assert summary.startswith("- Volk (Pakhan), Supreme leader")


# ── MCP tools ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_mcp_list_roster():
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        result = await client.call_tool("list_roster", {})
    assert not result.isError
    text = "".join(c.text for c in result.content)
    assert "Takamiya Leon" in text


@pytest.mark.asyncio
async def test_mcp_lookup_roster():
    async with create_connected_server_and_client_session(mcp_server.mcp) as client:
        result = await client.call_tool("lookup_roster", {"names": ["Vor"]})
    assert not result.isError
    text = "".join(c.text for c in result.content)
    assert "Nikolai Petrovich" in text
    assert "Igor Dmitrievich" not in text


def test_mcp_tool_functions_direct():
    assert mcp_server.lookup_roster(["pakhan"])[0]["name"] == "Volk"
    assert len(mcp_server.list_roster()) == 4
