"""Read-only schema inspection through the PostgREST API."""

import re
from typing import Any, Dict, List, Mapping, Optional

from ..client.supabase_client import SupabaseRestClient, build_headers, PREFER_EXACT_COUNT
from ..config.settings import ServerConfig
from ..models import (
    SchemaOperation,
    RequestSpec,
    InferredColumn,
    UNDETERMINABLE_COLUMN,
    build_envelope,
    parse_enum,
    require_table,
    utc_timestamp,
)
from ..errors import (
    BackendError,
    NotFoundError,
    SchemaError,
    ErrorContext,
    get_logger,
    log_operation,
    OperationLogger,
)


logger = get_logger(__name__)

# PostgREST exposes remote procedures next to tables in its OpenAPI
# definitions. Hiding names with this prefix is specific to how this
# backend is set up and is not a general schema rule.
RPC_PREFIX = "rpc_"

_TOTAL_PATTERN = re.compile(r"\s*(\d+)")


def parse_content_range(header: Optional[str]) -> int:
    """
    Extract the total from a ``Content-Range`` header (``0-24/3573`` or ``*/0``).

    Counting is best-effort: a missing or malformed header yields 0.
    """
    if not header or "/" not in header:
        return 0
    match = _TOTAL_PATTERN.match(header.split("/", 1)[1])
    return int(match.group(1)) if match else 0


def filter_table_names(definitions: Mapping[str, Any]) -> List[str]:
    return [name for name in definitions if not name.startswith(RPC_PREFIX)]


class SchemaInspector:
    """Implements the ``supabase_schema`` tool."""

    def __init__(self, config: ServerConfig, client: SupabaseRestClient):
        self.config = config
        self.client = client

    def execute(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        operation = parse_enum(SchemaOperation, arguments.get("operation"), "operation", "supabase_schema")

        if operation is SchemaOperation.LIST_TABLES:
            return self.list_tables()
        elif operation is SchemaOperation.DESCRIBE_TABLE:
            return self.describe_table(require_table(arguments, operation.value))
        elif operation is SchemaOperation.TABLE_STATS:
            return self.table_stats(require_table(arguments, operation.value))
        raise AssertionError(f"unhandled schema operation {operation}")

    def list_tables(self) -> Dict[str, Any]:
        """List tables from the root OpenAPI description, minus RPC entries."""
        with OperationLogger(logger, "list_tables"):
            spec = RequestSpec(method="GET", path="", headers=build_headers(self.config))
            context = ErrorContext(operation="list_tables")
            try:
                response = self.client.execute(spec, operation="list_tables")
            except BackendError as e:
                raise SchemaError(
                    f"Error querying schema: {e.message}",
                    context=context,
                    cause=e
                )

            if not response.ok:
                raise SchemaError(
                    f"Error querying schema: {response.status_code}",
                    backend_status=response.status_code,
                    response_body=response.text,
                    context=context
                )

            try:
                document = response.json() or {}
            except BackendError as e:
                raise SchemaError(
                    f"Error querying schema: {e.message}",
                    backend_status=response.status_code,
                    response_body=e.response_body,
                    context=context,
                    cause=e
                )
            definitions = document.get("definitions") if isinstance(document, dict) else None
            tables = filter_table_names(definitions or {})

            log_operation(logger, "list_tables_completed", table_count=len(tables))
            return build_envelope(
                "operation",
                SchemaOperation.LIST_TABLES.value,
                {"tables": tables, "count": len(tables)},
            )

    def describe_table(self, table: str) -> Dict[str, Any]:
        """
        Infer a table's columns from a single sampled row.

        The result is a best-effort guess, not catalog metadata: types come
        from the JSON shape of one value and nullability is only ever
        "YES" (null seen) or "UNKNOWN".
        """
        with OperationLogger(logger, "describe_table", table=table):
            context = ErrorContext(operation="describe_table", resource=table)
            headers = build_headers(self.config)

            probe = RequestSpec(method="HEAD", path=table, params=[("limit", "0")], headers=headers)
            probe_response = self.client.execute(probe, operation="describe_table")
            if not probe_response.ok:
                raise NotFoundError(
                    f"Table '{table}' not found or not accessible",
                    resource=table,
                    context=context.add(backend_status=probe_response.status_code)
                )

            sample = RequestSpec(method="GET", path=table, params=[("limit", "1")], headers=headers)
            sample_response = self.client.execute(sample, operation="describe_table")
            if not sample_response.ok:
                raise BackendError(
                    f"Error querying table '{table}': {sample_response.status_code}",
                    backend_status=sample_response.status_code,
                    response_body=sample_response.text,
                    context=context
                )

            rows = sample_response.json() or []
            if rows and isinstance(rows, list) and isinstance(rows[0], dict):
                columns = [
                    InferredColumn.from_sample(name, value).to_dict()
                    for name, value in rows[0].items()
                ]
            else:
                columns = [dict(UNDETERMINABLE_COLUMN)]

            log_operation(logger, "describe_table_completed", table=table, column_count=len(columns))
            return build_envelope(
                "operation",
                SchemaOperation.DESCRIBE_TABLE.value,
                {"table": table, "columns": columns, "column_count": len(columns)},
                table=table,
            )

    def table_stats(self, table: str) -> Dict[str, Any]:
        """Exact row count from the ``Content-Range`` header of a zero-row request."""
        with OperationLogger(logger, "table_stats", table=table):
            spec = RequestSpec(
                method="HEAD",
                path=table,
                params=[("select", "*"), ("limit", "0")],
                headers=build_headers(self.config, prefer=PREFER_EXACT_COUNT),
            )
            response = self.client.execute(spec, operation="table_stats")
            if not response.ok:
                raise BackendError(
                    f"Error getting statistics for '{table}': {response.status_code}",
                    backend_status=response.status_code,
                    response_body=response.text,
                    context=ErrorContext(operation="table_stats", resource=table)
                )

            content_range = response.headers.get("Content-Range")
            total_rows = parse_content_range(content_range)
            if content_range is None:
                log_operation(logger, "content_range_missing", table=table, level="warning")

            return build_envelope(
                "operation",
                SchemaOperation.TABLE_STATS.value,
                {"table": table, "total_rows": total_rows, "last_checked": utc_timestamp()},
                table=table,
            )
