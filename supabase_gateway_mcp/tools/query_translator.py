"""Translation of ``supabase_query`` CRUD calls into PostgREST requests."""

import json
from typing import Any, Dict, List, Mapping, Tuple

from ..client.supabase_client import SupabaseRestClient, build_headers, PREFER_REPRESENTATION
from ..config.settings import ServerConfig
from ..models import (
    QueryAction,
    QueryDescriptor,
    RequestSpec,
    build_envelope,
    format_filter_value,
    result_count,
)
from ..errors import (
    BackendError,
    ErrorContext,
    ValidationError,
    get_logger,
    log_operation,
    OperationLogger,
)


logger = get_logger(__name__)


def encode_filters(filters: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """
    Encode a filter set as PostgREST equality parameters.

    Only ``eq.`` is produced. Range, pattern and set operators are outside
    the tool's vocabulary.
    """
    return [(column, f"eq.{format_filter_value(value)}") for column, value in filters.items()]


class QueryTranslator:
    """Builds and runs the single REST request behind a CRUD tool call."""

    def __init__(self, config: ServerConfig, client: SupabaseRestClient):
        self.config = config
        self.client = client

    def build_request(self, descriptor: QueryDescriptor) -> RequestSpec:
        """
        Derive the Request Spec for a descriptor.

        Raises:
            ValidationError: For update/delete without filters
            ConfigurationError: If the backend is not configured
        """
        action = descriptor.action

        if action.requires_filters and not descriptor.filters:
            raise ValidationError(
                f"{action.value.upper()} requires filters to specify which rows to "
                f"{'update' if action is QueryAction.UPDATE else 'delete'}",
                field="filters",
                context=ErrorContext(operation=f"supabase_query.{action.value}", resource=descriptor.table)
            )

        params: List[Tuple[str, str]] = []
        body = None
        prefer = None

        if action is QueryAction.SELECT:
            if descriptor.select and descriptor.select != "*":
                params.append(("select", descriptor.select))
            params.extend(encode_filters(descriptor.filters))
            if descriptor.limit is not None:
                params.append(("limit", str(descriptor.limit)))
            if descriptor.order_by:
                params.append(("order", descriptor.order_by))
        elif action is QueryAction.INSERT:
            prefer = PREFER_REPRESENTATION
            body = json.dumps(descriptor.data)
        elif action is QueryAction.UPDATE:
            prefer = PREFER_REPRESENTATION
            body = json.dumps(descriptor.data)
            params.extend(encode_filters(descriptor.filters))
        else:
            prefer = PREFER_REPRESENTATION
            params.extend(encode_filters(descriptor.filters))

        return RequestSpec(
            method=action.http_method,
            path=descriptor.table,
            params=params,
            headers=build_headers(self.config, prefer=prefer),
            body=body,
        )

    def execute(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        """Run a ``supabase_query`` call and return its result envelope."""
        descriptor = QueryDescriptor.from_arguments(arguments)
        operation = f"supabase_query.{descriptor.action.value}"

        with OperationLogger(logger, operation, table=descriptor.table):
            spec = self.build_request(descriptor)
            response = self.client.execute(spec, operation=operation)

            if not response.ok:
                raise BackendError(
                    message=f"Supabase error ({response.status_code}): {response.text}",
                    backend_status=response.status_code,
                    response_body=response.text,
                    context=ErrorContext(operation=operation, resource=descriptor.table)
                )

            payload = response.json()
            count = result_count(payload)
            log_operation(logger, f"{operation}_completed", table=descriptor.table, count=count)

            return build_envelope(
                "action",
                descriptor.action.value,
                payload,
                table=descriptor.table,
                count=count,
            )
