"""Error handling utilities: normalization, MCP conversion and HTTP formatting."""

from typing import Any, Dict, Iterable, Optional, Tuple
from datetime import datetime, timezone

from mcp.server.fastmcp.exceptions import ToolError
import requests

from .exceptions import (
    GatewayError,
    BackendError,
    InternalError,
    ErrorContext,
)
from .logging_config import redact


class ErrorHandler:
    """Central error handler for converting exceptions at the gateway boundary."""

    @staticmethod
    def handle_gateway_error(
        error: Exception,
        operation: Optional[str] = None,
        resource: Optional[str] = None,
        context: Optional[ErrorContext] = None
    ) -> GatewayError:
        """
        Convert any exception to a GatewayError.

        Args:
            error: The original exception
            operation: Operation that failed
            resource: Resource (usually a table) being accessed
            context: Additional error context

        Returns:
            GatewayError: the error itself when already classified, otherwise
            a BackendError for transport failures or an InternalError
        """
        if context is None:
            context = ErrorContext(
                operation=operation,
                resource=resource,
                timestamp=datetime.now(timezone.utc).isoformat()
            )
        else:
            if operation and not context.operation:
                context.operation = operation
            if resource and not context.resource:
                context.resource = resource
            if not context.timestamp:
                context.timestamp = datetime.now(timezone.utc).isoformat()

        if isinstance(error, GatewayError):
            if not error.context or not error.context.operation:
                error.context = context
            return error

        if isinstance(error, requests.exceptions.Timeout):
            return BackendError(
                message="Supabase request timed out",
                context=context,
                cause=error
            )
        if isinstance(error, requests.exceptions.ConnectionError):
            return BackendError(
                message="Unable to reach Supabase",
                context=context,
                cause=error
            )
        if isinstance(error, requests.exceptions.RequestException):
            return BackendError(
                message=f"Supabase request failed: {error}",
                context=context,
                cause=error
            )

        return InternalError(
            message=f"Unexpected error: {error}",
            context=context,
            cause=error
        )

    @staticmethod
    def to_mcp_error(error: GatewayError, secrets: Iterable[str] = ()) -> ToolError:
        """Convert a GatewayError to an MCP ToolError."""
        return ToolError(redact(error.get_user_message(), secrets))

    @staticmethod
    def to_http_response(
        error: GatewayError,
        include_details: bool = False,
        secrets: Iterable[str] = ()
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Format a GatewayError as an HTTP status and JSON body.

        Caller-fixable errors always carry their message. The technical
        details (backend body, underlying cause) are only included when
        ``include_details`` is set, i.e. outside production.
        """
        body: Dict[str, Any] = {
            "error": error.get_user_message(),
            "error_code": error.error_code,
        }
        if isinstance(error, BackendError) and error.backend_status is not None:
            body["backend_status"] = error.backend_status
        if include_details:
            body["details"] = error.get_technical_details()
        elif isinstance(error, InternalError):
            body["details"] = "Error processing request"

        return error.status_code, redact(body, secrets)
