"""Pytest configuration and fixtures."""

import json
from unittest.mock import Mock

import pytest

from supabase_gateway_mcp.client.supabase_client import SupabaseRestClient
from supabase_gateway_mcp.config.settings import ServerConfig
from supabase_gateway_mcp.tools.dispatcher import ToolDispatcher


SERVICE_KEY = "test-service-role-key-123"
SUPABASE_URL = "https://test-project.supabase.co"


@pytest.fixture
def mock_config():
    """Server configuration pointing at a fake Supabase project."""
    return ServerConfig(
        supabase_url=SUPABASE_URL,
        service_role_key=SERVICE_KEY,
        environment="test",
        log_level="DEBUG",
    )


@pytest.fixture
def unconfigured_config():
    """Configuration without Supabase credentials."""
    return ServerConfig(environment="test")


@pytest.fixture
def make_response():
    """Factory for fake ``requests.Response`` objects."""
    def _make(status_code=200, json_body=None, text=None, headers=None):
        response = Mock()
        response.status_code = status_code
        response.headers = headers or {}
        if text is None:
            text = json.dumps(json_body) if json_body is not None else ""
        response.text = text
        return response
    return _make


@pytest.fixture
def mock_session(make_response):
    """A requests.Session stand-in recording every outbound call."""
    session = Mock()
    session.headers = {}
    session.request.return_value = make_response(200, [])
    return session


@pytest.fixture
def rest_client(mock_config, mock_session):
    """Create a SupabaseRestClient around the mocked session."""
    return SupabaseRestClient(mock_config, session=mock_session)


@pytest.fixture
def dispatcher(mock_config, rest_client):
    """Create a ToolDispatcher around the mocked REST client."""
    return ToolDispatcher(mock_config, rest_client)
