"""Tests for the FastMCP tool registrations."""

import asyncio

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from supabase_gateway_mcp.tools import mcp_tools

from conftest import SERVICE_KEY


@pytest.fixture
def installed(dispatcher):
    """Install the mocked dispatcher behind the MCP tools."""
    mcp_tools.initialize_dispatcher(dispatcher)
    yield dispatcher
    mcp_tools._dispatcher = None


class TestRegistration:
    """Test cases for tool registration."""

    def test_registered_tools(self):
        """Test the three tools are registered with FastMCP."""
        tools = asyncio.run(mcp_tools.app.list_tools())
        assert {tool.name for tool in tools} == {"supabase_query", "supabase_schema", "supabase_modify_schema"}

    def test_requires_initialization(self):
        """Test tools fail clearly before a dispatcher is installed."""
        mcp_tools._dispatcher = None
        with pytest.raises(RuntimeError, match="not initialized"):
            mcp_tools.get_dispatcher()


class TestToolCalls:
    """Test cases for calling the registered tool functions."""

    def test_query_tool_drops_unset_arguments(self, installed, mock_session, make_response):
        """Test unset optional arguments are not forwarded."""
        mock_session.request.return_value = make_response(200, [{"id": 1}])

        result = mcp_tools.supabase_query(action="select", table="users", limit=5)

        assert result["count"] == 1
        params = mock_session.request.call_args.kwargs["params"]
        assert ("limit", "5") in params
        assert all(name != "order" for name, _ in params)

    def test_modify_schema_tool(self, installed, mock_session):
        """Test the simulator tool never calls the backend."""
        result = mcp_tools.supabase_modify_schema(operation="drop_table", table="users")
        assert result["simulated"] is True
        assert result["destructive"] is True
        mock_session.request.assert_not_called()

    def test_errors_become_tool_errors(self, installed):
        """Test gateway errors are raised as ToolError."""
        with pytest.raises(ToolError, match="filters"):
            mcp_tools.supabase_query(action="delete", table="users")

    def test_tool_error_is_redacted(self, installed, mock_session, make_response):
        """Test the key is masked in ToolError messages."""
        mock_session.request.return_value = make_response(401, text=f'{{"message":"bad key {SERVICE_KEY}"}}')

        with pytest.raises(ToolError) as exc_info:
            mcp_tools.supabase_query(action="select", table="users")

        assert "bad key" in str(exc_info.value)
        assert SERVICE_KEY not in str(exc_info.value)
