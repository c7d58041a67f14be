"""Tool implementations for the Supabase Gateway MCP server."""

from .catalog import TOOL_CATALOG, list_tools, tool_operations
from .dispatcher import ToolDispatcher, resolve_tool
from .query_translator import QueryTranslator, encode_filters
from .schema_inspector import SchemaInspector, parse_content_range, RPC_PREFIX
from .schema_simulator import SchemaMutationSimulator, SIMULATION_WARNING

__all__ = [
    "TOOL_CATALOG",
    "list_tools",
    "tool_operations",
    "ToolDispatcher",
    "resolve_tool",
    "QueryTranslator",
    "encode_filters",
    "SchemaInspector",
    "parse_content_range",
    "RPC_PREFIX",
    "SchemaMutationSimulator",
    "SIMULATION_WARNING",
]
