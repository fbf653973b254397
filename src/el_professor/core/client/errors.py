"""
Structured error system for ElProfessor.

This module defines the error taxonomy shared by the Gemini service, the MCP
manager and the retry executor, together with the retryability predicate the
executor consults and a few helpers for logging failures.
"""

import logging
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from google.genai import errors as genai_errors

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_GENAI_KEYWORDS = ("rate limit", "timeout", "service unavailable")


class ElProfessorError(Exception):
    """Base exception for all ElProfessor errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ElProfessorError):
    """Missing environment variables or invalid settings."""

    def __init__(self, message: str = "Configuration error", **kwargs):
        super().__init__(message, code="CONFIGURATION_ERROR", status_code=400, **kwargs)


class MCPConnectionError(ElProfessorError):
    """Error raised when a connection to an MCP server fails."""

    def __init__(self, message: str, server_name: str, **kwargs):
        super().__init__(
            f"MCP Server '{server_name}': {message}",
            code="MCP_CONNECTION_ERROR",
            status_code=503,
            **kwargs
        )
        self.server_name = server_name
        self.details["server_name"] = server_name


class GenAIError(ElProfessorError):
    """Error from the Generative AI service (rate limits, timeouts, upstream failures)."""

    def __init__(self, message: str = "Generative AI error", **kwargs):
        super().__init__(message, code="GENAI_ERROR", status_code=502, **kwargs)


class OperationTimeoutError(ElProfessorError):
    """Raised when an operation does not finish before its deadline."""

    def __init__(self, timeout_ms: int, context: Optional[str] = None, **kwargs):
        super().__init__(
            f"Operation timed out after {timeout_ms}ms in {context}",
            code="TIMEOUT_ERROR",
            status_code=504,
            **kwargs
        )
        self.timeout_ms = timeout_ms
        self.context = context
        self.details["timeout_ms"] = timeout_ms


class RetryExhaustedError(ElProfessorError):
    """Raised when a retry loop ends without any recorded error."""

    def __init__(self, message: str = "Max retry attempts exceeded", **kwargs):
        super().__init__(message, code="RETRY_EXHAUSTED", **kwargs)


def is_retryable_error(error: BaseException) -> bool:
    """
    Check if an error is worth retrying.

    MCP connection failures and timeouts are always transient. Gemini errors
    are retried only when they report a rate limit, a timeout or an
    unavailable service.

    Args:
        error: The error to check

    Returns:
        True if the error is retryable
    """
    if isinstance(error, (MCPConnectionError, OperationTimeoutError)):
        return True

    if isinstance(error, GenAIError):
        error_msg = error.message.lower()
        return any(keyword in error_msg for keyword in RETRYABLE_GENAI_KEYWORDS)

    return False


def classify_genai_error(error: BaseException, prefix: str = "Failed to generate content") -> ElProfessorError:
    """
    Classify an exception raised by the Gemini SDK into a GenAIError.

    The resulting message always carries a keyword that
    :func:`is_retryable_error` understands when the failure is transient.

    Args:
        error: The original exception
        prefix: Leading text for the resulting message

    Returns:
        Classified error instance
    """
    if isinstance(error, ElProfessorError):
        return error

    status = getattr(error, 'code', None) if isinstance(error, genai_errors.APIError) else None
    if status is None:
        status = getattr(error, 'status_code', None)

    error_lower = str(error).lower()

    if status == 429 or "resource_exhausted" in error_lower or "rate limit" in error_lower:
        reason = "rate limit exceeded"
    elif status == 503 or "unavailable" in error_lower:
        reason = "service unavailable"
    elif status in (408, 504) or "deadline" in error_lower or "timed out" in error_lower:
        reason = "timeout"
    elif isinstance(status, int) and 500 <= status < 600:
        reason = "server error"
    elif status in (401, 403):
        reason = "authentication failed"
    else:
        reason = "request failed"

    return GenAIError(
        f"{prefix}: {reason} ({error})",
        details={"status": status} if status else None,
        original_error=error
    )


def handle_error(
    error: BaseException,
    context: Optional[str] = None,
    log: Optional[logging.Logger] = None
) -> None:
    """
    Log an error with optional context.

    Args:
        error: The error instance to handle
        context: Optional context string (e.g., operation name)
        log: Logger to write to, defaults to this module's logger
    """
    log = log or logger
    context_message = f" in {context}" if context else ""
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))

    if isinstance(error, ElProfessorError):
        log.error(
            f"{type(error).__name__}{context_message}: {error.message}",
            extra={"code": error.code, "status_code": error.status_code}
        )
    else:
        log.error(f"Unexpected error{context_message}: {error}")
    log.debug(stack)


async def handle_async(
    operation: Callable[[], Awaitable[T]],
    context: Optional[str] = None
) -> Optional[T]:
    """Run an async operation, logging any failure and returning None instead."""
    try:
        return await operation()
    except Exception as e:
        handle_error(e, context)
        return None


def handle_sync(operation: Callable[[], T], context: Optional[str] = None) -> Optional[T]:
    """Run a sync operation, logging any failure and returning None instead."""
    try:
        return operation()
    except Exception as e:
        handle_error(e, context)
        return None


def create_user_friendly_message(error: BaseException) -> str:
    """
    Create a user-friendly error message.

    Args:
        error: The error to convert

    Returns:
        User-friendly error message
    """
    if isinstance(error, ConfigurationError):
        return f"Configuration problem: {error.message}. Check your .env file or environment."

    elif isinstance(error, MCPConnectionError):
        return f"Could not reach a tool server. {error.message}"

    elif isinstance(error, OperationTimeoutError):
        return "The request timed out. Please try again."

    elif isinstance(error, GenAIError):
        message = error.message.lower()
        if "rate limit" in message:
            return "Gemini API rate limit exceeded. Please try again later."
        if "authentication" in message:
            return "Gemini authentication failed. Please check GEMINI_API_KEY."
        if "service unavailable" in message:
            return "The Gemini service is unavailable right now. Please try again later."
        return f"Gemini error: {error.message}"

    elif isinstance(error, ElProfessorError):
        return f"An error occurred: {error.message}"

    return f"Unexpected error: {error}"
