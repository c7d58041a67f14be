"""Configuration settings for the Supabase Gateway MCP server."""

import os
from dataclasses import dataclass, replace
from typing import List, Optional
from dotenv import load_dotenv

from ..errors import ConfigurationError, ErrorContext, get_logger

# Load environment variables from .env file if it exists
load_dotenv()

logger = get_logger(__name__)

SERVICE_NAME = "mcp-supabase-server"
SERVICE_VERSION = "2.0.0"
REST_PREFIX = "/rest/v1"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_ENVIRONMENTS = ["development", "test", "production"]


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return 30.0
    raw = raw.strip().lower()
    if raw in ("", "0", "none", "off"):
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"SUPABASE_REQUEST_TIMEOUT must be a number of seconds, got '{raw}'",
            config_key="SUPABASE_REQUEST_TIMEOUT"
        )


def _parse_port(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"PORT must be an integer, got '{raw}'", config_key="PORT")


@dataclass(frozen=True)
class ServerConfig:
    """
    Immutable server configuration, built once at startup.

    The Supabase URL and service-role key are optional here: a gateway
    without them still serves the tool catalog and the schema simulator,
    while every data-touching call fails through ``require_backend``.
    """

    # Supabase connection settings
    supabase_url: Optional[str] = None
    service_role_key: Optional[str] = None
    request_timeout: Optional[float] = 30.0  # seconds, None disables

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3001
    environment: str = "production"  # development, test, production

    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None
    structured_logging: bool = True

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create configuration from environment variables."""
        return cls(
            supabase_url=os.getenv("SUPABASE_URL") or None,
            service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
            request_timeout=_parse_timeout(os.getenv("SUPABASE_REQUEST_TIMEOUT")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_parse_port(os.getenv("PORT", "3001")),
            environment=os.getenv("ENVIRONMENT", "production").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE"),
            structured_logging=os.getenv("STRUCTURED_LOGGING", "true").lower() == "true",
        )

    def with_overrides(self, **overrides) -> "ServerConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def validate(self) -> None:
        """Validate configuration settings."""
        if not 0 < self.port < 65536:
            context = ErrorContext(operation="validate_config", additional_data={"value": self.port})
            raise ConfigurationError("port must be between 1 and 65535", config_key="port", context=context)

        if self.log_level not in VALID_LOG_LEVELS:
            context = ErrorContext(operation="validate_config", additional_data={"value": self.log_level})
            raise ConfigurationError(
                "log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL",
                config_key="log_level",
                context=context
            )

        if self.environment not in VALID_ENVIRONMENTS:
            context = ErrorContext(operation="validate_config", additional_data={"value": self.environment})
            raise ConfigurationError(
                "environment must be one of: development, test, production",
                config_key="environment",
                context=context
            )

        if self.request_timeout is not None and self.request_timeout <= 0:
            context = ErrorContext(operation="validate_config", additional_data={"value": self.request_timeout})
            raise ConfigurationError(
                "request_timeout must be positive",
                config_key="request_timeout",
                context=context
            )

        if self.supabase_url and not self.supabase_url.startswith(("http://", "https://")):
            context = ErrorContext(operation="validate_config")
            raise ConfigurationError(
                "SUPABASE_URL must start with http:// or https://",
                config_key="SUPABASE_URL",
                context=context
            )

    @property
    def missing_backend_settings(self) -> List[str]:
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.service_role_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing

    @property
    def is_backend_configured(self) -> bool:
        return not self.missing_backend_settings

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def require_backend(self, operation: Optional[str] = None) -> None:
        """Fail fast with a ConfigurationError when URL or key is absent."""
        missing = self.missing_backend_settings
        if missing:
            context = ErrorContext(operation=operation, additional_data={"missing": missing})
            raise ConfigurationError(
                f"Supabase credentials are not configured. Set {' and '.join(missing)}",
                config_key=missing[0],
                context=context
            )

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST API, e.g. ``https://x.supabase.co/rest/v1``."""
        self.require_backend(operation="rest_url")
        return self.supabase_url.rstrip("/") + REST_PREFIX

    @property
    def secrets(self) -> List[str]:
        """Values that must never appear in logs or error bodies."""
        return [self.service_role_key] if self.service_role_key else []
