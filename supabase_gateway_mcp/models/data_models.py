"""Data models for Supabase gateway operations."""

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple
from enum import Enum

from ..errors import ValidationError, ErrorContext


class ToolName(Enum):
    """Closed set of tools the gateway publishes."""
    SUPABASE_QUERY = "supabase_query"
    SUPABASE_SCHEMA = "supabase_schema"
    SUPABASE_MODIFY_SCHEMA = "supabase_modify_schema"


class QueryAction(Enum):
    """CRUD actions and the HTTP method each one maps to."""
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def http_method(self) -> str:
        return _ACTION_METHODS[self]

    @property
    def requires_filters(self) -> bool:
        return self in (QueryAction.UPDATE, QueryAction.DELETE)


_ACTION_METHODS = {
    QueryAction.SELECT: "GET",
    QueryAction.INSERT: "POST",
    QueryAction.UPDATE: "PATCH",
    QueryAction.DELETE: "DELETE",
}


class SchemaOperation(Enum):
    """Read-only schema inspection operations."""
    LIST_TABLES = "list_tables"
    DESCRIBE_TABLE = "describe_table"
    TABLE_STATS = "table_stats"


class SchemaMutation(Enum):
    """DDL-shaped operations that are only ever simulated."""
    CREATE_TABLE = "create_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    DROP_TABLE = "drop_table"

    @property
    def destructive(self) -> bool:
        return self in (SchemaMutation.DROP_COLUMN, SchemaMutation.DROP_TABLE)


def parse_enum(enum_cls, value: Any, field_name: str, operation: str):
    """Resolve ``value`` to a member of ``enum_cls`` or raise ValidationError."""
    if value is None or value == "":
        raise ValidationError(
            f"'{field_name}' is required",
            field=field_name,
            context=ErrorContext(operation=operation)
        )
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"'{value}' is not supported. Expected one of: {allowed}",
            field=field_name,
            context=ErrorContext(operation=operation)
        )


class ValueShape(Enum):
    """Shapes a JSON value sampled from a row can take."""
    NULL = "null"
    INTEGER = "integer"
    FRACTIONAL = "fractional"
    BOOLEAN = "boolean"
    STRUCTURED = "structured"
    TEXT = "text"


# Postgres-flavoured type names reported for each shape. A null sample
# cannot be typed, "text" is the conservative answer.
INFERRED_TYPES = {
    ValueShape.NULL: "text",
    ValueShape.INTEGER: "integer",
    ValueShape.FRACTIONAL: "numeric",
    ValueShape.BOOLEAN: "boolean",
    ValueShape.STRUCTURED: "json",
    ValueShape.TEXT: "text",
}


def classify_value(value: Any) -> ValueShape:
    """Classify a decoded JSON value. bool is checked before int on purpose."""
    if value is None:
        return ValueShape.NULL
    if isinstance(value, bool):
        return ValueShape.BOOLEAN
    if isinstance(value, int):
        return ValueShape.INTEGER
    if isinstance(value, float):
        return ValueShape.INTEGER if value.is_integer() else ValueShape.FRACTIONAL
    if isinstance(value, (dict, list)):
        return ValueShape.STRUCTURED
    return ValueShape.TEXT


@dataclass
class InferredColumn:
    """Column structure guessed from one sampled row."""
    name: str
    inferred_type: str
    sample_value: Any
    nullability_hint: str  # "YES" or "UNKNOWN", one row never proves NOT NULL

    @classmethod
    def from_sample(cls, name: str, value: Any) -> "InferredColumn":
        shape = classify_value(value)
        return cls(
            name=name,
            inferred_type=INFERRED_TYPES[shape],
            sample_value=value,
            nullability_hint="YES" if shape is ValueShape.NULL else "UNKNOWN",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "column_name": self.name,
            "data_type": self.inferred_type,
            "sample_value": self.sample_value,
            "is_nullable": self.nullability_hint,
        }


UNDETERMINABLE_COLUMN = {
    "column_name": "no_data",
    "data_type": "unknown",
    "undeterminable": True,
    "note": "Empty table - structure cannot be determined from a sample",
}


@dataclass
class RequestSpec:
    """A fully resolved REST call against the PostgREST API."""
    method: str
    path: str  # relative to /rest/v1, "" for the root
    params: List[Tuple[str, str]] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def param_values(self, key: str) -> List[str]:
        return [value for name, value in self.params if name == key]


@dataclass
class QueryDescriptor:
    """A ``supabase_query`` call with its defaults applied."""
    action: QueryAction
    table: str
    data: Any = field(default_factory=dict)
    filters: Dict[str, Any] = field(default_factory=dict)
    select: str = "*"
    limit: Optional[int] = None
    order_by: Optional[str] = None

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> "QueryDescriptor":
        action = parse_enum(QueryAction, arguments.get("action"), "action", "supabase_query")
        table = require_table(arguments, "supabase_query")

        filters = arguments.get("filters") or {}
        if not isinstance(filters, Mapping):
            raise ValidationError(
                "filters must be an object mapping column names to values",
                field="filters",
                context=ErrorContext(operation="supabase_query", resource=table)
            )

        limit = arguments.get("limit")
        if limit is not None:
            if (isinstance(limit, bool) or not isinstance(limit, (int, float))
                    or not math.isfinite(limit) or limit < 0):
                raise ValidationError(
                    "limit must be a non-negative number",
                    field="limit",
                    context=ErrorContext(operation="supabase_query", resource=table)
                )
            limit = int(limit)

        data = arguments.get("data")
        return cls(
            action=action,
            table=table,
            data={} if data is None else data,
            filters=dict(filters),
            select=arguments.get("select") or "*",
            limit=limit,
            order_by=arguments.get("orderBy") or None,
        )


# Characters that would let a table name leave its single path segment.
_PATH_BREAKING = set("/\\?#%")


def require_table(arguments: Mapping[str, Any], operation: str) -> str:
    """Return the stripped table name, which must be one plain path segment."""
    table = arguments.get("table")
    if not isinstance(table, str) or not table.strip():
        raise ValidationError(
            f"Table name is required for {operation}",
            field="table",
            context=ErrorContext(operation=operation)
        )
    table = table.strip()
    if ".." in table or table == "." or _PATH_BREAKING.intersection(table) or not table.isprintable():
        raise ValidationError(
            f"Table name '{table}' is not a valid table identifier",
            field="table",
            context=ErrorContext(operation=operation)
        )
    return table


def format_filter_value(value: Any) -> str:
    """Render a filter value the way PostgREST expects it after ``eq.``."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T10:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def result_count(payload: Any) -> int:
    if isinstance(payload, list):
        return len(payload)
    return 1 if payload is not None else 0


def build_envelope(kind: str, name: str, data: Any, table: Optional[str] = None, **extra) -> Dict[str, Any]:
    """
    Build the success envelope returned by every tool.

    Args:
        kind: ``"action"`` for CRUD calls, ``"operation"`` for schema calls
        name: The action or operation value
        data: Tool payload
        table: Target table, omitted from the envelope when None
        **extra: Additional top-level fields (count, simulated, ...)
    """
    envelope: Dict[str, Any] = {"success": True, kind: name}
    if table is not None:
        envelope["table"] = table
    envelope["data"] = data
    envelope.update(extra)
    envelope["timestamp"] = utc_timestamp()
    return envelope
