"""
Gemini content generation for ElProfessor.

Thin wrapper around the ``google-genai`` client that exposes connected MCP
sessions to the model as tools and normalizes responses into
:class:`AgentResponse`. Every request goes through the retry executor.
"""

import logging
from typing import Any, AsyncIterator, List, Optional, Sequence

from google import genai
from google.genai import types
from mcp import ClientSession

from .errors import ElProfessorError, classify_genai_error
from .responses import AgentResponse, ResponseMetadata
from .retry import RetryExecutor, RetryOptions

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_REQUEST_TIMEOUT_MS = 120000


class GenAIService:
    """Single-response and streaming generation against the Gemini API."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        executor: Optional[RetryExecutor] = None,
        retry_config: RetryOptions = None,
        request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS,
        client: Optional[genai.Client] = None,
    ):
        self.model = model
        self.executor = executor or RetryExecutor()
        self.retry_config = retry_config
        self.request_timeout_ms = request_timeout_ms
        self._client = client or genai.Client(api_key=api_key)

    async def generate_content(
        self,
        prompt: str,
        mcp_sessions: Optional[Sequence[ClientSession]] = None
    ) -> AgentResponse:
        """
        Generate a single response.

        When MCP sessions are given they are exposed as tools and the model
        may call them automatically.

        Args:
            prompt: Text prompt to send
            mcp_sessions: Connected MCP client sessions

        Returns:
            Normalized response
        """
        request_config = self._build_request_config(mcp_sessions)

        async def _attempt() -> types.GenerateContentResponse:
            return await self.executor.execute_with_timeout(
                lambda: self._generate(prompt, request_config),
                self.request_timeout_ms,
                "generate_content"
            )

        try:
            response = await self.executor.execute_with_retry(
                _attempt, self.retry_config, "generate_content"
            )
        except Exception as e:
            logger.error(f"Error generating content: {e}")
            raise

        return self._to_agent_response(response)

    async def generate_content_stream(
        self,
        prompt: str,
        mcp_sessions: Optional[Sequence[ClientSession]] = None
    ) -> AsyncIterator[str]:
        """
        Generate a response as a stream of text chunks.

        Opening the stream is retried; once chunks start flowing a failure
        is raised to the consumer.

        Args:
            prompt: Text prompt to stream
            mcp_sessions: Connected MCP client sessions

        Returns:
            Async iterator of non-empty text chunks
        """
        request_config = self._build_request_config(mcp_sessions)

        async def _attempt() -> AsyncIterator[types.GenerateContentResponse]:
            return await self.executor.execute_with_timeout(
                lambda: self._open_stream(prompt, request_config),
                self.request_timeout_ms,
                "generate_content_stream"
            )

        try:
            stream = await self.executor.execute_with_retry(
                _attempt, self.retry_config, "generate_content_stream"
            )
        except Exception as e:
            logger.error(f"Error generating streaming content: {e}")
            raise

        return self._iter_text(stream)

    async def _generate(
        self,
        prompt: str,
        request_config: Optional[types.GenerateContentConfig]
    ) -> types.GenerateContentResponse:
        try:
            return await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=request_config
            )
        except ElProfessorError:
            raise
        except Exception as e:
            raise classify_genai_error(e) from e

    async def _open_stream(
        self,
        prompt: str,
        request_config: Optional[types.GenerateContentConfig]
    ) -> AsyncIterator[types.GenerateContentResponse]:
        try:
            return await self._client.aio.models.generate_content_stream(
                model=self.model,
                contents=prompt,
                config=request_config
            )
        except ElProfessorError:
            raise
        except Exception as e:
            raise classify_genai_error(e, "Failed to generate streaming content") from e

    async def _iter_text(
        self,
        stream: AsyncIterator[types.GenerateContentResponse]
    ) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except ElProfessorError:
            raise
        except Exception as e:
            raise classify_genai_error(e, "Streaming interrupted") from e

    def _build_request_config(
        self,
        mcp_sessions: Optional[Sequence[ClientSession]]
    ) -> Optional[types.GenerateContentConfig]:
        """Tool-enabled request config, or None when there are no sessions."""
        if not mcp_sessions:
            return None

        tools: List[Any] = list(mcp_sessions)
        return types.GenerateContentConfig(
            tools=tools,
            tool_config=types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(
                    mode=types.FunctionCallingConfigMode.AUTO
                )
            )
        )

    def _to_agent_response(self, response: types.GenerateContentResponse) -> AgentResponse:
        function_calls = [
            call.model_dump(exclude_none=True)
            for call in (response.function_calls or [])
        ]
        usage = response.usage_metadata
        return AgentResponse(
            text=response.text or "",
            function_calls=function_calls,
            metadata=ResponseMetadata(
                model=self.model,
                tokens_used=usage.total_token_count if usage else None
            )
        )
