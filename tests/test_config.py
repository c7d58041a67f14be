"""Tests for configuration management."""

import pytest
from dataclasses import FrozenInstanceError

from supabase_gateway_mcp.config.settings import ServerConfig
from supabase_gateway_mcp.errors import ConfigurationError


ENV_KEYS = [
    "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_REQUEST_TIMEOUT",
    "HOST", "PORT", "ENVIRONMENT", "LOG_LEVEL", "LOG_FILE", "STRUCTURED_LOGGING",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every gateway setting from the environment."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestServerConfig:
    """Test cases for ServerConfig."""

    def test_server_config_validation(self, mock_config):
        """Test a complete configuration validates."""
        mock_config.validate()

    def test_config_is_immutable(self, mock_config):
        """Test the configuration cannot be changed after construction."""
        with pytest.raises(FrozenInstanceError):
            mock_config.service_role_key = "other"

    @pytest.mark.parametrize("overrides,message", [
        ({"port": 0}, "port must be between"),
        ({"log_level": "LOUD"}, "log_level must be one of"),
        ({"environment": "staging"}, "environment must be one of"),
        ({"request_timeout": -1.0}, "request_timeout must be positive"),
        ({"supabase_url": "abc.supabase.co"}, "must start with http"),
    ])
    def test_validate_rejects(self, overrides, message):
        """Test invalid settings raise ConfigurationError."""
        config = ServerConfig(**overrides)
        with pytest.raises(ConfigurationError, match=message):
            config.validate()

    def test_require_backend_lists_missing_settings(self):
        """Test require_backend names only the missing settings."""
        config = ServerConfig(supabase_url="https://abc.supabase.co")
        with pytest.raises(ConfigurationError) as exc_info:
            config.require_backend()
        assert exc_info.value.config_key == "SUPABASE_SERVICE_ROLE_KEY"
        assert "SUPABASE_URL" not in exc_info.value.message

    def test_with_overrides_ignores_none(self, mock_config):
        """Test None overrides leave settings untouched."""
        updated = mock_config.with_overrides(port=9000, host=None)
        assert updated.port == 9000
        assert updated.host == mock_config.host
        assert mock_config.port == 3001

    def test_secrets(self, mock_config, unconfigured_config):
        """Test the secrets list holds only the service-role key."""
        assert mock_config.secrets == [mock_config.service_role_key]
        assert unconfigured_config.secrets == []


class TestFromEnv:
    """Test cases for ServerConfig.from_env."""

    def test_defaults(self, clean_env):
        """Test the defaults of an empty environment."""
        config = ServerConfig.from_env()
        assert config.supabase_url is None
        assert config.service_role_key is None
        assert config.port == 3001
        assert config.environment == "production"
        assert config.request_timeout == 30.0
        assert config.is_backend_configured is False
        config.validate()

    def test_reads_values(self, clean_env):
        """Test settings are read and normalized from the environment."""
        clean_env.setenv("SUPABASE_URL", "https://abc.supabase.co")
        clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "key")
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("ENVIRONMENT", "Development")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("SUPABASE_REQUEST_TIMEOUT", "none")

        config = ServerConfig.from_env()

        assert config.rest_url == "https://abc.supabase.co/rest/v1"
        assert config.port == 8080
        assert config.environment == "development"
        assert config.is_production is False
        assert config.log_level == "DEBUG"
        assert config.request_timeout is None

    def test_bad_port(self, clean_env):
        """Test a non-numeric PORT is a configuration error."""
        clean_env.setenv("PORT", "eighty")
        with pytest.raises(ConfigurationError, match="PORT must be an integer"):
            ServerConfig.from_env()

    def test_bad_timeout(self, clean_env):
        """Test a non-numeric timeout is a configuration error."""
        clean_env.setenv("SUPABASE_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="SUPABASE_REQUEST_TIMEOUT"):
            ServerConfig.from_env()
