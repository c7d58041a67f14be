"""Simulated schema modifications. Nothing here talks to Supabase."""

from typing import Any, Dict, Mapping

from ..models import SchemaMutation, build_envelope, parse_enum, require_table
from ..errors import ValidationError, ErrorContext, get_logger, log_operation


logger = get_logger(__name__)

SIMULATION_WARNING = (
    "This is a SIMULATION. No change was made to the database; "
    "real schema changes require running SQL against Supabase directly."
)


class SchemaMutationSimulator:
    """Implements the ``supabase_modify_schema`` tool."""

    def execute(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        mutation = parse_enum(SchemaMutation, arguments.get("operation"), "operation", "supabase_modify_schema")
        table = require_table(arguments, mutation.value)
        column = arguments.get("column")
        data_type = arguments.get("dataType")

        log_operation(
            logger,
            "schema_modification_requested",
            level="warning",
            simulated=True,
            mutation=mutation.value,
            table=table,
            column=column,
            data_type=data_type,
        )

        if mutation is SchemaMutation.CREATE_TABLE:
            message = f"SIMULATION: create table '{table}' requested."
        elif mutation is SchemaMutation.ADD_COLUMN:
            self._require(column, "column", mutation, table)
            self._require(data_type, "dataType", mutation, table)
            message = f"SIMULATION: add column '{column}' of type '{data_type}' to table '{table}'."
        elif mutation is SchemaMutation.DROP_COLUMN:
            self._require(column, "column", mutation, table)
            message = f"SIMULATION: drop column '{column}' from table '{table}'. DESTRUCTIVE OPERATION!"
        else:
            message = f"SIMULATION: drop table '{table}'. DESTRUCTIVE OPERATION!"

        requested = {"operation": mutation.value, "table": table}
        if column:
            requested["column"] = column
        if data_type:
            requested["dataType"] = data_type

        return build_envelope(
            "operation",
            mutation.value,
            requested,
            table=table,
            simulated=True,
            destructive=mutation.destructive,
            message=message,
            warning=SIMULATION_WARNING,
        )

    @staticmethod
    def _require(value: Any, field: str, mutation: SchemaMutation, table: str) -> None:
        if not value:
            raise ValidationError(
                f"'{field}' is required for {mutation.value}",
                field=field,
                context=ErrorContext(operation=mutation.value, resource=table)
            )
