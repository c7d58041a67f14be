"""Data models for the Supabase Gateway MCP server."""

from .data_models import (
    ToolName,
    QueryAction,
    SchemaOperation,
    SchemaMutation,
    ValueShape,
    InferredColumn,
    RequestSpec,
    QueryDescriptor,
    INFERRED_TYPES,
    UNDETERMINABLE_COLUMN,
    classify_value,
    parse_enum,
    require_table,
    format_filter_value,
    utc_timestamp,
    result_count,
    build_envelope,
)

__all__ = [
    "ToolName",
    "QueryAction",
    "SchemaOperation",
    "SchemaMutation",
    "ValueShape",
    "InferredColumn",
    "RequestSpec",
    "QueryDescriptor",
    "INFERRED_TYPES",
    "UNDETERMINABLE_COLUMN",
    "classify_value",
    "parse_enum",
    "require_table",
    "format_filter_value",
    "utc_timestamp",
    "result_count",
    "build_envelope",
]
