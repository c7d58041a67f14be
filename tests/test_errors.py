"""Tests for the error taxonomy, error handlers and log redaction."""

import pytest
import requests
from mcp.server.fastmcp.exceptions import ToolError

from supabase_gateway_mcp.errors import (
    BackendError,
    ConfigurationError,
    ErrorHandler,
    GatewayError,
    InternalError,
    NotFoundError,
    SchemaError,
    SecretRedactor,
    UnknownMethodError,
    UnknownToolError,
    ValidationError,
    redact,
)


class TestExceptions:
    """Test cases for the exception classes."""

    @pytest.mark.parametrize("error,status", [
        (ConfigurationError("missing"), 503),
        (ValidationError("bad", field="table"), 400),
        (NotFoundError("gone", resource="users"), 404),
        (BackendError("down", backend_status=500), 502),
        (SchemaError("no schema"), 502),
        (UnknownToolError("supabase_sql", ["supabase_query"]), 400),
        (UnknownMethodError("resources/list", ["tools/list"]), 404),
        (InternalError("boom"), 500),
    ])
    def test_status(self, error, status):
        """Test each error class carries its HTTP status."""
        assert error.status_code == status
        assert isinstance(error, GatewayError)

    def test_schema_error_is_backend_error(self):
        """Test SchemaError is a kind of BackendError."""
        assert isinstance(SchemaError("x"), BackendError)

    def test_validation_user_message_names_field(self):
        """Test validation messages name the offending field."""
        assert ValidationError("must be set", field="column").get_user_message() == \
            "Invalid value for 'column': must be set"

    def test_unknown_tool_message(self):
        """Test the unknown tool message names the tool."""
        assert "Tool 'supabase_sql' is not recognized" in str(UnknownToolError("supabase_sql", []))

    def test_internal_error_hides_message(self):
        """Test internal errors expose only a generic user message."""
        assert InternalError("KeyError: secret").get_user_message() == "Internal server error"

    def test_backend_technical_details(self):
        """Test backend details include status and body."""
        details = BackendError("failed", backend_status=409, response_body="conflict").get_technical_details()
        assert "Backend Status: 409" in details
        assert "Backend Body: conflict" in details


class TestErrorHandler:
    """Test cases for ErrorHandler."""

    def test_gateway_errors_pass_through(self):
        """Test classified errors are returned unchanged with context filled in."""
        error = ValidationError("bad")
        assert ErrorHandler.handle_gateway_error(error, operation="op") is error
        assert error.context.operation == "op"

    @pytest.mark.parametrize("exc,message", [
        (requests.exceptions.Timeout(), "timed out"),
        (requests.exceptions.ConnectionError(), "Unable to reach"),
        (requests.exceptions.InvalidURL("x"), "request failed"),
    ])
    def test_transport_errors(self, exc, message):
        """Test requests failures become BackendError."""
        converted = ErrorHandler.handle_gateway_error(exc)
        assert isinstance(converted, BackendError)
        assert message in converted.message

    def test_other_errors_are_internal(self):
        """Test unexpected exceptions become InternalError."""
        converted = ErrorHandler.handle_gateway_error(ValueError("nope"), operation="describe_table")
        assert isinstance(converted, InternalError)
        assert converted.context.operation == "describe_table"

    def test_to_mcp_error_redacts(self):
        """Test ToolError messages have the key masked."""
        error = BackendError("Supabase error (401): bad key sk-123", backend_status=401)
        tool_error = ErrorHandler.to_mcp_error(error, secrets=["sk-123"])
        assert isinstance(tool_error, ToolError)
        assert "sk-123" not in str(tool_error)


class TestHttpResponse:
    """Test cases for ErrorHandler.to_http_response."""

    def test_backend_error_body(self):
        """Test backend errors carry their backend status and details."""
        error = BackendError("Supabase error (409): conflict", backend_status=409, response_body="conflict")
        status, body = ErrorHandler.to_http_response(error, include_details=True)
        assert status == 502
        assert body["backend_status"] == 409
        assert "conflict" in body["details"]

    def test_details_omitted_in_production(self):
        """Test details are left out unless requested."""
        status, body = ErrorHandler.to_http_response(ValidationError("bad", field="limit"))
        assert status == 400
        assert "details" not in body
        assert body["error_code"] == "VALIDATION_FAILED"

    def test_internal_error_generic_details(self):
        """Test internal errors get a generic detail string."""
        status, body = ErrorHandler.to_http_response(InternalError("KeyError: 'x'"))
        assert status == 500
        assert body == {
            "error": "Internal server error",
            "error_code": body["error_code"],
            "details": "Error processing request",
        }

    def test_secrets_redacted(self):
        """Test the key is masked in the response body."""
        error = BackendError("failed with key sk-123")
        _, body = ErrorHandler.to_http_response(error, include_details=True, secrets=["sk-123"])
        assert "sk-123" not in str(body)


class TestRedaction:
    """Test cases for secret redaction."""

    def test_nested_structures(self):
        """Test secrets are masked inside dicts, lists and tuples."""
        value = {"url": "https://x?apikey=sk-1", "items": ["sk-1", 3], "pair": ("a", "sk-1")}
        assert redact(value, ["sk-1"]) == {"url": "https://x?apikey=***", "items": ["***", 3], "pair": ("a", "***")}

    def test_empty_secrets_ignored(self):
        """Test empty secrets do not alter values."""
        assert redact("abc", ["", None]) == "abc"

    def test_structlog_processor(self):
        """Test the structlog processor masks event fields."""
        processor = SecretRedactor(["sk-1"])
        event = processor(None, "info", {"event": "calling", "headers": {"apikey": "sk-1"}})
        assert event["headers"]["apikey"] == "***"
