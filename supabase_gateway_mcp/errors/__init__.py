"""Error handling and logging utilities for the Supabase Gateway MCP Server."""

from .exceptions import *
from .handlers import *
from .logging_config import *

__all__ = [
    # Exceptions
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'GatewayError',
    'ConfigurationError',
    'ValidationError',
    'NotFoundError',
    'BackendError',
    'SchemaError',
    'UnknownToolError',
    'UnknownMethodError',
    'InternalError',

    # Error handlers
    'ErrorHandler',

    # Logging
    'setup_logging',
    'get_logger',
    'log_operation',
    'log_error',
    'log_performance',
    'OperationLogger',
    'SecretRedactor',
    'redact',
]
