"""MCP (stdio) registration of the Supabase gateway tools."""

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from ..config.settings import SERVICE_NAME
from ..errors import ErrorHandler, GatewayError, get_logger, log_operation
from .dispatcher import ToolDispatcher


logger = get_logger(__name__)

# Global dispatcher instance (will be initialized by the server)
_dispatcher: Optional[ToolDispatcher] = None


def initialize_dispatcher(dispatcher: ToolDispatcher) -> None:
    """Install the dispatcher the MCP tools route through."""
    global _dispatcher
    _dispatcher = dispatcher
    log_operation(logger, "mcp_tools_initialized")


def get_dispatcher() -> ToolDispatcher:
    if _dispatcher is None:
        raise RuntimeError("Tool dispatcher not initialized. Call initialize_dispatcher() first.")
    return _dispatcher


def _call(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    dispatcher = get_dispatcher()
    try:
        return dispatcher.call_tool(name, arguments)
    except GatewayError as e:
        raise ErrorHandler.to_mcp_error(e, secrets=dispatcher.config.secrets) from e


def _compact(**kwargs) -> Dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


app = FastMCP(SERVICE_NAME)


@app.tool()
def supabase_query(
    action: str,
    table: str,
    data: Optional[Dict[str, Any]] = None,
    filters: Optional[Dict[str, Any]] = None,
    select: str = "*",
    limit: Optional[int] = None,
    orderBy: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run a CRUD query against a Supabase table.

    Args:
        action: One of select, insert, update, delete
        table: Table name
        data: Row data for insert/update
        filters: Equality filters (column -> value); required for update/delete
        select: Columns to select (default: *)
        limit: Maximum number of rows
        orderBy: PostgREST ordering such as "name.asc"
    """
    return _call("supabase_query", _compact(
        action=action, table=table, data=data, filters=filters,
        select=select, limit=limit, orderBy=orderBy,
    ))


@app.tool()
def supabase_schema(operation: str, table: Optional[str] = None) -> Dict[str, Any]:
    """
    Inspect the database schema.

    Args:
        operation: One of list_tables, describe_table, table_stats
        table: Table name (required for describe_table and table_stats)
    """
    return _call("supabase_schema", _compact(operation=operation, table=table))


@app.tool()
def supabase_modify_schema(
    operation: str,
    table: str,
    column: Optional[str] = None,
    dataType: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Simulate a schema modification. No change is applied to the database.

    Args:
        operation: One of create_table, add_column, drop_column, drop_table
        table: Table name
        column: Column name (for column operations)
        dataType: Column data type (for add_column)
    """
    return _call("supabase_modify_schema", _compact(
        operation=operation, table=table, column=column, dataType=dataType,
    ))
