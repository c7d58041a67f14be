"""Static tool catalog returned by ``tools/list``."""

from copy import deepcopy
from typing import Any, Dict, List

from ..models import QueryAction, SchemaMutation, SchemaOperation, ToolName


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


TOOL_CATALOG: List[Dict[str, Any]] = [
    {
        "name": ToolName.SUPABASE_QUERY.value,
        "description": "Run CRUD queries against Supabase tables",
        "inputSchema": {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": _values(QueryAction),
                    "description": "Operation to perform",
                },
                "table": {
                    "type": "string",
                    "description": "Supabase table name",
                },
                "data": {
                    "type": "object",
                    "description": "Row data for insert/update (ignored by select/delete)",
                },
                "filters": {
                    "type": "object",
                    "description": "Equality filters, column -> value (required for update/delete)",
                },
                "select": {
                    "type": "string",
                    "description": "Columns to select (default: *)",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of rows (optional)",
                },
                "orderBy": {
                    "type": "string",
                    "description": "PostgREST ordering, e.g. \"name.asc\"",
                },
            },
            "required": ["action", "table"],
        },
    },
    {
        "name": ToolName.SUPABASE_SCHEMA.value,
        "description": "Inspect the database schema",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": _values(SchemaOperation),
                    "description": "Schema query to run",
                },
                "table": {
                    "type": "string",
                    "description": "Table name (required for describe_table and table_stats)",
                },
            },
            "required": ["operation"],
        },
    },
    {
        "name": ToolName.SUPABASE_MODIFY_SCHEMA.value,
        "description": "Modify the database structure (simulated, no change is applied)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": _values(SchemaMutation),
                    "description": "Schema modification to simulate",
                },
                "table": {
                    "type": "string",
                    "description": "Table name",
                },
                "column": {
                    "type": "string",
                    "description": "Column name (for column operations)",
                },
                "dataType": {
                    "type": "string",
                    "description": "Column data type, e.g. text, integer, boolean",
                },
            },
            "required": ["operation", "table"],
        },
    },
]


def list_tools() -> Dict[str, Any]:
    """Catalog payload for ``tools/list``. Returns a copy callers may mutate."""
    return {"tools": deepcopy(TOOL_CATALOG)}


def tool_operations(tool: Dict[str, Any]) -> List[str]:
    """Operations a catalog entry accepts, used by the diagnostics endpoint."""
    properties = tool.get("inputSchema", {}).get("properties", {})
    for key in ("operation", "action"):
        if key in properties and "enum" in properties[key]:
            return list(properties[key]["enum"])
    return ["general"]
