"""Tests for the error taxonomy and helpers."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest
from google.genai import errors as genai_errors

from el_professor.core.client.errors import (
    ConfigurationError,
    ElProfessorError,
    GenAIError,
    MCPConnectionError,
    OperationTimeoutError,
    RetryExhaustedError,
    classify_genai_error,
    create_user_friendly_message,
    handle_async,
    handle_error,
    handle_sync,
    is_retryable_error,
)


def api_error(code: int, status: str, message: str = "upstream said no") -> genai_errors.APIError:
    payload = {"error": {"code": code, "message": message, "status": status}}
    error_class = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
    return error_class(code, payload)


class TestErrorTypes:
    """Test cases for the exception hierarchy."""

    def test_base_error_defaults(self) -> None:
        error = ElProfessorError("boom")

        assert str(error) == "boom"
        assert error.code == "UNKNOWN_ERROR"
        assert error.status_code == 500
        assert error.details == {}
        assert error.original_error is None

    def test_to_dict(self) -> None:
        cause = RuntimeError("socket closed")
        error = GenAIError("Failed to generate content: timeout", details={"status": 504}, original_error=cause)

        assert error.to_dict() == {
            "message": "Failed to generate content: timeout",
            "code": "GENAI_ERROR",
            "status_code": 502,
            "details": {"status": 504},
            "type": "GenAIError",
        }
        assert error.original_error is cause

    def test_mcp_connection_error_names_server(self) -> None:
        error = MCPConnectionError("process exited", "terraform")

        assert str(error) == "MCP Server 'terraform': process exited"
        assert error.server_name == "terraform"
        assert error.status_code == 503
        assert error.details["server_name"] == "terraform"

    def test_operation_timeout_message(self) -> None:
        error = OperationTimeoutError(1000, "connect cdk")

        assert str(error) == "Operation timed out after 1000ms in connect cdk"
        assert error.timeout_ms == 1000
        assert error.context == "connect cdk"
        assert error.status_code == 504

    def test_configuration_and_exhausted_codes(self) -> None:
        assert ConfigurationError().code == "CONFIGURATION_ERROR"
        assert ConfigurationError().status_code == 400
        assert str(RetryExhaustedError()) == "Max retry attempts exceeded"
        assert RetryExhaustedError().code == "RETRY_EXHAUSTED"


class TestIsRetryableError:
    """Test cases for the retryability predicate."""

    @pytest.mark.parametrize("error", [
        MCPConnectionError("refused", "cdk"),
        OperationTimeoutError(500, "generate_content"),
        GenAIError("Failed to generate content: Rate Limit exceeded"),
        GenAIError("Failed to generate content: timeout (deadline)"),
        GenAIError("Failed to generate content: service unavailable"),
    ])
    def test_retryable(self, error) -> None:
        assert is_retryable_error(error) is True

    @pytest.mark.parametrize("error", [
        GenAIError("Failed to generate content: authentication failed"),
        ConfigurationError("GEMINI_API_KEY environment variable is required"),
        RetryExhaustedError(),
        ValueError("bad input"),
        TimeoutError("plain timeout"),
    ])
    def test_not_retryable(self, error) -> None:
        assert is_retryable_error(error) is False


class TestClassifyGenAIError:
    """Test cases for mapping SDK failures onto GenAIError."""

    @pytest.mark.parametrize("code, status, reason", [
        (429, "RESOURCE_EXHAUSTED", "rate limit exceeded"),
        (503, "UNAVAILABLE", "service unavailable"),
        (504, "DEADLINE_EXCEEDED", "timeout"),
        (500, "INTERNAL", "server error"),
        (401, "UNAUTHENTICATED", "authentication failed"),
        (400, "INVALID_ARGUMENT", "request failed"),
    ])
    def test_api_errors(self, code, status, reason) -> None:
        error = classify_genai_error(api_error(code, status))

        assert isinstance(error, GenAIError)
        assert error.message.startswith(f"Failed to generate content: {reason}")
        assert error.details == {"status": code}

    def test_transient_api_errors_become_retryable(self) -> None:
        assert is_retryable_error(classify_genai_error(api_error(429, "RESOURCE_EXHAUSTED")))
        assert is_retryable_error(classify_genai_error(api_error(503, "UNAVAILABLE")))
        assert not is_retryable_error(classify_genai_error(api_error(403, "PERMISSION_DENIED")))

    def test_generic_exception(self) -> None:
        cause = ConnectionError("connection timed out")
        error = classify_genai_error(cause, "Failed to start stream")

        assert error.message == "Failed to start stream: timeout (connection timed out)"
        assert error.original_error is cause

    def test_own_errors_pass_through(self) -> None:
        original = OperationTimeoutError(10, "generate_content")

        assert classify_genai_error(original) is original


class TestErrorHelpers:
    """Test cases for logging and user-facing helpers."""

    def test_handle_error_logs_structured(self) -> None:
        log = Mock(spec=logging.Logger)

        handle_error(MCPConnectionError("refused", "cdk"), "startup", log)

        message = log.error.call_args.args[0]
        assert message == "MCPConnectionError in startup: MCP Server 'cdk': refused"
        assert log.error.call_args.kwargs["extra"] == {"code": "MCP_CONNECTION_ERROR", "status_code": 503}
        log.debug.assert_called_once()

    def test_handle_error_unexpected(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR):
            handle_error(KeyError("missing"))

        assert "Unexpected error: 'missing'" in caplog.text

    @pytest.mark.asyncio
    async def test_handle_async(self) -> None:
        assert await handle_async(AsyncMock(return_value=3), "ok") == 3
        assert await handle_async(AsyncMock(side_effect=GenAIError("boom")), "fails") is None

    def test_handle_sync(self) -> None:
        assert handle_sync(lambda: "value") == "value"
        assert handle_sync(Mock(side_effect=ValueError("bad")), "parse") is None

    @pytest.mark.parametrize("error, expected", [
        (ConfigurationError("GEMINI_API_KEY environment variable is required"), "Configuration problem"),
        (MCPConnectionError("refused", "cdk"), "Could not reach a tool server"),
        (OperationTimeoutError(10, "x"), "timed out"),
        (GenAIError("Failed: rate limit exceeded"), "rate limit exceeded"),
        (GenAIError("Failed: authentication failed"), "GEMINI_API_KEY"),
        (GenAIError("Failed: service unavailable"), "unavailable"),
        (GenAIError("Failed: request failed"), "Gemini error"),
        (RetryExhaustedError(), "An error occurred"),
        (ValueError("odd"), "Unexpected error: odd"),
    ])
    def test_create_user_friendly_message(self, error, expected) -> None:
        assert expected in create_user_friendly_message(error)
