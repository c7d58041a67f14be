"""Structured logging configuration for the Supabase Gateway MCP Server."""

import logging
import sys
import json
import time
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Iterable, Optional, Union
from pathlib import Path
import structlog
from structlog.types import FilteringBoundLogger

from .exceptions import GatewayError, ErrorContext


REDACTED = "***"


def redact(value: Any, secrets: Iterable[str]) -> Any:
    """Replace every occurrence of the given secrets inside strings."""
    if isinstance(value, str):
        for secret in secrets:
            if secret:
                value = value.replace(secret, REDACTED)
        return value
    if isinstance(value, dict):
        return {key: redact(item, secrets) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item, secrets) for item in value)
    return value


class SecretRedactor:
    """structlog processor masking configured secret values in every event."""

    def __init__(self, secrets: Iterable[str] = ()):
        self.secrets = tuple(s for s in secrets if s)

    def __call__(self, logger, method_name, event_dict):
        if not self.secrets:
            return event_dict
        return redact(event_dict, self.secrets)


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs stdlib log records as JSON lines."""

    _RESERVED = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
        'filename', 'module', 'lineno', 'funcName', 'created',
        'msecs', 'relativeCreated', 'thread', 'threadName',
        'processName', 'process', 'getMessage', 'exc_info',
        'exc_text', 'stack_info', 'taskName'
    }

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in self._RESERVED:
                continue
            try:
                json.dumps(value)
                extra_fields[key] = value
            except (TypeError, ValueError):
                extra_fields[key] = str(value)

        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False)


class GatewayErrorFilter(logging.Filter):
    """Copies structured gateway error fields onto stdlib error records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.ERROR and record.exc_info:
            exc_value = record.exc_info[1]
            if isinstance(exc_value, GatewayError):
                record.error_category = exc_value.category.value
                record.error_code = exc_value.error_code
                record.status_code = exc_value.status_code
                if exc_value.context and exc_value.context.operation:
                    record.operation = exc_value.context.operation
        return True


def setup_logging(
    level: Union[str, int] = logging.INFO,
    log_file: Optional[str] = None,
    structured: bool = True,
    redact_values: Iterable[str] = (),
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """
    Set up structured logging for the gateway.

    Console output goes to stderr so the stdio MCP transport keeps stdout
    for protocol frames.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a rotating log file
        structured: Whether to render JSON instead of console output
        redact_values: Secret strings masked in every structlog event
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of backup log files to keep
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logging.root.handlers.clear()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="ISO"),
            SecretRedactor(redact_values),
            structlog.dev.ConsoleRenderer() if not structured else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if structured:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    console_handler.addFilter(GatewayErrorFilter())
    handlers = [console_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(level)
        if structured:
            file_handler.setFormatter(StructuredFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
                )
            )
        file_handler.addFilter(GatewayErrorFilter())
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('mcp').setLevel(logging.INFO)


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def log_operation(
    logger: FilteringBoundLogger,
    operation: str,
    level: str = "info",
    **kwargs
) -> None:
    """
    Log an operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name/description
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional context fields
    """
    log_func = getattr(logger, level.lower())
    log_func(f"Operation: {operation}", operation=operation, **kwargs)


def log_error(
    logger: FilteringBoundLogger,
    error: Exception,
    operation: Optional[str] = None,
    context: Optional[ErrorContext] = None,
    **kwargs
) -> None:
    """Log an error with its structured gateway fields and context."""
    log_data: Dict[str, Any] = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **kwargs
    }

    if operation:
        log_data["operation"] = operation

    if isinstance(error, GatewayError):
        log_data.update({
            "error_category": error.category.value,
            "error_severity": error.severity.value,
            "error_code": error.error_code,
            "status_code": error.status_code,
        })
        if error.cause:
            log_data["cause"] = str(error.cause)
        if not context and error.context:
            context = error.context

    if context:
        if context.operation and "operation" not in log_data:
            log_data["operation"] = context.operation
        if context.resource:
            log_data["resource"] = context.resource
        if context.request_id:
            log_data["request_id"] = context.request_id
        if context.additional_data:
            for key, value in context.additional_data.items():
                log_data.setdefault(key, value)

    logger.error(f"Error occurred: {str(error)}", **log_data)


def log_performance(
    logger: FilteringBoundLogger,
    operation: str,
    duration_ms: float,
    success: bool = True,
    **kwargs
) -> None:
    """Log timing for an operation."""
    logger.info(
        f"Performance: {operation}",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        success=success,
        **kwargs
    )


class OperationLogger:
    """Context manager for logging operation start/end with timing."""

    def __init__(
        self,
        logger: FilteringBoundLogger,
        operation: str,
        level: str = "debug",
        **context
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.context = context
        self.start_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        log_func = getattr(self.logger, self.level.lower())
        log_func(f"Starting operation: {self.operation}", operation=self.operation, **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self.start_time) * 1000 if self.start_time else 0
        log_performance(
            self.logger,
            self.operation,
            duration_ms,
            success=exc_type is None,
            **self.context
        )
        return False
