"""Custom exception classes for the Supabase Gateway MCP Server."""

from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass


class ErrorCategory(Enum):
    """Categories of errors that can occur in the gateway."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    BACKEND = "backend"
    SCHEMA = "schema"
    DISPATCH = "dispatch"
    INTERNAL = "internal"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Additional context information for errors."""
    operation: Optional[str] = None
    resource: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None

    def add(self, **kwargs) -> "ErrorContext":
        """Merge extra fields into ``additional_data``."""
        if not self.additional_data:
            self.additional_data = {}
        self.additional_data.update(kwargs)
        return self


class GatewayError(Exception):
    """Base exception class for all gateway errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
        status_code: int = 500,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.error_code = error_code or self._generate_error_code()
        self.status_code = status_code
        self.context = context or ErrorContext()
        self.cause = cause

    def _generate_error_code(self) -> str:
        """Generate a default error code based on category."""
        return f"GATEWAY_{self.category.value.upper()}_ERROR"

    def get_user_message(self) -> str:
        """Get a user-friendly error message."""
        return self.message

    def get_technical_details(self) -> str:
        """Get technical details for debugging."""
        details = [f"Error: {self.message}"]

        if self.cause:
            details.append(f"Underlying Cause: {self.cause}")

        return " | ".join(details)


def _with_field(context: Optional[ErrorContext], key: str, value: Any) -> Optional[ErrorContext]:
    if value is None:
        return context
    if context is None:
        context = ErrorContext()
    return context.add(**{key: value})


class ConfigurationError(GatewayError):
    """Missing or invalid configuration (backend URL, credential, settings)."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            error_code=error_code or "CONFIG_ERROR",
            status_code=503,
            context=_with_field(context, "config_key", config_key),
        )
        self.config_key = config_key

    def get_user_message(self) -> str:
        if self.config_key:
            return f"Configuration error for '{self.config_key}': {self.message}"
        return f"Configuration error: {self.message}"


class ValidationError(GatewayError):
    """Missing required argument or a forbidden argument combination."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            error_code=error_code or "VALIDATION_FAILED",
            status_code=400,
            context=_with_field(context, "field", field),
        )
        self.field = field

    def get_user_message(self) -> str:
        if self.field:
            return f"Invalid value for '{self.field}': {self.message}"
        return f"Validation error: {self.message}"


class NotFoundError(GatewayError):
    """Table or resource absent (or not visible with the configured key)."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        if resource and context is None:
            context = ErrorContext(resource=resource)
        elif resource and not context.resource:
            context.resource = resource

        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            error_code=error_code or "NOT_FOUND",
            status_code=404,
            context=context,
            cause=cause,
        )


class BackendError(GatewayError):
    """Non-2xx or unusable response from the Supabase REST backend."""

    def __init__(
        self,
        message: str,
        backend_status: Optional[int] = None,
        response_body: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        category: ErrorCategory = ErrorCategory.BACKEND,
    ):
        super().__init__(
            message=message,
            category=category,
            severity=ErrorSeverity.MEDIUM,
            error_code=error_code or "BACKEND_ERROR",
            status_code=502,
            context=context,
            cause=cause,
        )
        self.backend_status = backend_status
        self.response_body = response_body

    def get_technical_details(self) -> str:
        details = [f"Error: {self.message}"]
        if self.backend_status is not None:
            details.append(f"Backend Status: {self.backend_status}")
        if self.response_body:
            details.append(f"Backend Body: {self.response_body}")
        if self.cause:
            details.append(f"Underlying Cause: {self.cause}")
        return " | ".join(details)


class SchemaError(BackendError):
    """The backend's root schema description could not be retrieved."""

    def __init__(
        self,
        message: str,
        backend_status: Optional[int] = None,
        response_body: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            backend_status=backend_status,
            response_body=response_body,
            error_code="SCHEMA_UNAVAILABLE",
            context=context,
            cause=cause,
            category=ErrorCategory.SCHEMA,
        )


class UnknownToolError(GatewayError):
    """Tool name outside the published catalog."""

    def __init__(self, tool_name: Any, available: Optional[list] = None):
        super().__init__(
            message=f"Tool '{tool_name}' is not recognized",
            category=ErrorCategory.DISPATCH,
            severity=ErrorSeverity.LOW,
            error_code="UNKNOWN_TOOL",
            status_code=400,
            context=ErrorContext(additional_data={"available_tools": available or []}),
        )
        self.tool_name = tool_name
        self.available = available or []


class UnknownMethodError(GatewayError):
    """Top-level protocol method other than ``tools/list`` or ``tools/call``."""

    def __init__(self, method: Any, available: Optional[list] = None):
        super().__init__(
            message=f"Method '{method}' is not supported",
            category=ErrorCategory.DISPATCH,
            severity=ErrorSeverity.LOW,
            error_code="UNKNOWN_METHOD",
            status_code=404,
            context=ErrorContext(additional_data={"available_methods": available or []}),
        )
        self.method = method
        self.available = available or []


class InternalError(GatewayError):
    """Anything unexpected. Detail is hidden from callers in production."""

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.INTERNAL,
            severity=ErrorSeverity.CRITICAL,
            error_code="INTERNAL_ERROR",
            status_code=500,
            context=context,
            cause=cause,
        )

    def get_user_message(self) -> str:
        return "Internal server error"
