"""Tests for MCP server tools.

Every call goes through the in-process FastMCP client, so the tools are
exercised the way an MCP host invokes them.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from fastmcp import Client

from deepthinking import server
from deepthinking.server import get_session_store, mcp, reset_server_state


@pytest.fixture(autouse=True)
def fresh_server() -> None:
    """Start every test with an empty session store."""
    reset_server_state()
    yield
    reset_server_state()


async def _call(tool: str, **arguments: Any) -> dict[str, Any]:
    async with Client(mcp) as client:
        result = await client.call_tool(tool, arguments)
    assert not result.is_error, f"Tool returned error: {result.data}"
    return json.loads(result.data)


async def _think(**kwargs: Any) -> dict[str, Any]:
    params: dict[str, Any] = {"thought": "Reasoning step", "thought_number": 1, "total_thoughts": 2}
    params.update(kwargs)
    return await _call("think", **params)


# =============================================================================
# think
# =============================================================================


class TestThinkTool:
    """Tests for the think() tool."""

    async def test_records_thought_with_enhancements(self) -> None:
        """A valid step returns the thought, enhancements and session summary."""
        result = await _think(
            mode="modal",
            fields={"worlds": [{"id": "w1"}, {"id": "w2"}], "modalLogicType": "S5"},
        )
        assert result["status"] == "ok"
        assert result["thought"]["mode"] == "modal"
        assert result["thought"]["session_id"] == result["session_id"]
        assert "suggestions" in result["enhancements"]
        assert result["session"]["thought_count"] == 1

    async def test_session_accumulates(self) -> None:
        """Steps sharing a session id are appended in order."""
        first = await _think(mode="sequential")
        sid = first["session_id"]
        second = await _think(mode="deductive", session_id=sid, thought_number=2, next_thought_needed=False)
        assert second["session"]["thought_count"] == 2
        assert second["session"]["modes"] == {"sequential": 1, "deductive": 1}
        assert second["session"]["complete"] is True
        assert len(get_session_store().get(sid).thoughts) == 2

    async def test_empty_thought_is_invalid(self) -> None:
        """Blank content is rejected with a stable error code."""
        result = await _think(mode="sequential", thought="   ")
        assert result["status"] == "invalid"
        assert result["valid"] is False
        assert result["errors"][0]["code"] == "EMPTY_THOUGHT"

    async def test_thought_number_beyond_total(self) -> None:
        """A step number above the declared total is rejected."""
        result = await _think(mode="sequential", thought_number=5, total_thoughts=3)
        assert result["errors"][0]["code"] == "INVALID_THOUGHT_NUMBER"

    async def test_unknown_mode(self) -> None:
        """Unknown mode tags are reported, not raised."""
        result = await _think(mode="astrology")
        assert result["status"] == "invalid"
        assert result["errors"][0]["code"] == "UNKNOWN_MODE"

    async def test_total_thoughts_limit(self) -> None:
        """Oversized sequences are refused before validation."""
        result = await _think(mode="sequential", total_thoughts=1_000_000)
        assert result["errors"][0]["code"] == "INPUT_TOO_LARGE"

    async def test_fatal_reference_error(self) -> None:
        """Mode-specific fatal errors surface with their code."""
        result = await _think(
            mode="historical",
            fields={"events": [{"id": "e1", "name": "Storming", "causes": ["e0"]}]},
        )
        assert result["status"] == "invalid"
        assert result["errors"][0]["code"] == "INVALID_EVENT_REF"

    async def test_warnings_do_not_block(self) -> None:
        """Warnings are returned alongside a recorded thought."""
        result = await _think(mode="bayesian", fields={"priorProbability": 1.5})
        assert result["status"] == "ok"
        assert result["warnings"]

    async def test_default_mode(self) -> None:
        """Omitting the mode falls back to the configured default."""
        result = await _think()
        assert result["thought"]["mode"] == "hybrid"

    async def test_thought_type_passed_through(self) -> None:
        """Explicit thought types reach the handler."""
        result = await _think(mode="custom", thought_type="retro", fields={"customModeName": "Retro"})
        assert result["thought"]["thought_type"] == "retro"


# =============================================================================
# modes / status
# =============================================================================


class TestModesTool:
    """Tests for the modes() tool."""

    async def test_lists_all_modes(self) -> None:
        """Every built-in mode is listed with its thought types."""
        result = await _call("modes")
        assert len(result["modes"]) == 35
        assert result["modes_without_handlers"] == []
        assert all("thought_types" in m for m in result["modes"])

    async def test_describe_one_mode(self) -> None:
        """A single mode is described by tag."""
        result = await _call("modes", mode="Game-Theory")
        assert result["mode"] == "gametheory"
        assert result["has_handler"] is True

    async def test_unknown_mode(self) -> None:
        """Unknown tags list the available modes."""
        result = await _call("modes", mode="astrology")
        assert result["code"] == "UNKNOWN_MODE"
        assert "modal" in result["available"]


class TestStatusTool:
    """Tests for the status() tool."""

    async def test_server_status(self) -> None:
        """Server status reports tools, registry and engine settings."""
        result = await _call("status")
        assert result["server"]["tools"] == ["think", "modes", "status"]
        assert result["registry"]["total_handlers"] == 35
        assert result["sessions"]["total"] == 0
        assert result["engine"]["confirmation_threshold"] == 20.0

    async def test_session_status(self) -> None:
        """A known session is summarized."""
        sid = (await _think(mode="inductive"))["session_id"]
        result = await _call("status", session_id=sid)
        assert result["session_id"] == sid
        assert result["thought_count"] == 1

    async def test_missing_session(self) -> None:
        """Unknown sessions produce an error payload."""
        result = await _call("status", session_id="nope")
        assert result["error"] == "Session not found: nope"


# =============================================================================
# MCP protocol
# =============================================================================


class TestMCPProtocol:
    """Tests through the FastMCP client."""

    async def test_tools_registered(self) -> None:
        """The server exposes exactly the three tools."""
        async with Client(mcp) as client:
            tools = await client.list_tools()
        assert {tool.name for tool in tools} == {"think", "modes", "status"}

    async def test_think_round_trip(self) -> None:
        """A think call over the protocol returns the JSON payload."""
        async with Client(mcp) as client:
            result = await client.call_tool(
                "think",
                {
                    "thought": "Merge sort splits the input",
                    "thought_number": 1,
                    "total_thoughts": 1,
                    "mode": "algorithmic",
                    "next_thought_needed": False,
                    "fields": {"recurrence": {"formula": "T(n)", "masterTheorem": {"a": 2, "b": 2, "f": "n"}}},
                },
            )
        assert not result.is_error
        response = json.loads(result.data)
        assert response["status"] == "ok"
        assert "Solution: Θ(n log n)" in response["enhancements"]["suggestions"]


class TestSessionCleanup:
    """Tests for the background stale-session cleanup."""

    async def test_cleanup_runs_while_client_connected(self) -> None:
        """The cleanup task starts with the server session and stops with it."""
        assert server._cleanup_task is None
        async with Client(mcp) as client:
            result = await client.call_tool("status", {})
            response = json.loads(result.data)
            assert response["cleanup"]["task_running"] is True
            assert server._cleanup_task is not None
        assert server._cleanup_task is None

    async def test_overlapping_sessions_share_one_task(self) -> None:
        """The task survives until the last open server session closes."""
        async with server._lifespan(mcp):
            task = server._cleanup_task
            assert task is not None
            async with server._lifespan(mcp):
                assert server._cleanup_task is task
            assert server._cleanup_task is task
            assert not task.done()
        assert server._cleanup_task is None
