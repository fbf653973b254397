"""
API client layer for ElProfessor.

This package provides the Gemini content generation service together with
the retry executor and the error taxonomy it relies on.
"""

from .errors import (
    ElProfessorError,
    ConfigurationError,
    MCPConnectionError,
    GenAIError,
    OperationTimeoutError,
    RetryExhaustedError,
    is_retryable_error,
    classify_genai_error,
    handle_error,
    handle_async,
    handle_sync,
    create_user_friendly_message,
)
from .retry import (
    RetryConfig,
    RetryExecutor,
    resolve_retry_config,
    execute_with_retry,
    execute_with_timeout,
)
from .responses import (
    AgentResponse,
    ChatMessage,
    MessageRole,
    ResponseMetadata,
)
from .genai_service import GenAIService

__all__ = [
    # Errors
    "ElProfessorError",
    "ConfigurationError",
    "MCPConnectionError",
    "GenAIError",
    "OperationTimeoutError",
    "RetryExhaustedError",
    "is_retryable_error",
    "classify_genai_error",
    "handle_error",
    "handle_async",
    "handle_sync",
    "create_user_friendly_message",
    # Retry Logic
    "RetryConfig",
    "RetryExecutor",
    "resolve_retry_config",
    "execute_with_retry",
    "execute_with_timeout",
    # Responses
    "AgentResponse",
    "ChatMessage",
    "MessageRole",
    "ResponseMetadata",
    # Content Generation
    "GenAIService",
]
