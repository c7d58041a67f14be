"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from supabase_gateway_mcp.main import main

from conftest import SERVICE_KEY, SUPABASE_URL


@pytest.fixture
def runner(monkeypatch):
    """Create a CliRunner with gateway settings cleared from the environment."""
    for key in ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "PORT", "ENVIRONMENT", "LOG_LEVEL", "LOG_FILE"]:
        monkeypatch.delenv(key, raising=False)
    return CliRunner()


class TestMain:
    """Test cases for the main CLI command."""

    def test_version(self, runner):
        """Test --version prints the server name."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "Supabase Gateway MCP Server" in result.output

    def test_validate_config_ok(self, runner):
        """Test --validate-config accepts a partial config and warns about the key."""
        result = runner.invoke(main, ["--validate-config", "--supabase-url", SUPABASE_URL])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "SUPABASE_SERVICE_ROLE_KEY" in result.output

    def test_validate_config_rejects_bad_port(self, runner):
        """Test --validate-config exits non-zero on an invalid port."""
        result = runner.invoke(main, ["--validate-config", "--port", "0"])
        assert result.exit_code == 1

    def test_status_masks_key(self, runner):
        """Test --status shows the URL but masks the key."""
        result = runner.invoke(main, [
            "--status", "--supabase-url", SUPABASE_URL, "--service-role-key", SERVICE_KEY
        ])
        assert result.exit_code == 0
        assert SUPABASE_URL in result.output
        assert SERVICE_KEY not in result.output
        assert "test..." in result.output

    @patch("supabase_gateway_mcp.main.setup_logging")
    @patch("supabase_gateway_mcp.main.SupabaseGatewayServer")
    def test_stdio_transport(self, mock_server_cls, mock_setup_logging, runner):
        """Test --transport stdio runs the stdio server and stops it."""
        result = runner.invoke(main, ["--transport", "stdio", "--environment", "test"])

        assert result.exit_code == 0
        server = mock_server_cls.return_value
        server.run_stdio.assert_called_once()
        server.run_http.assert_not_called()
        server.stop.assert_called_once()
        config = mock_server_cls.call_args.args[0]
        assert config.environment == "test"
