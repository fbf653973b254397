"""Tests for the Gemini content generation service."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from el_professor.core.client.errors import GenAIError, OperationTimeoutError
from el_professor.core.client.genai_service import GenAIService
from el_professor.core.client.retry import RetryExecutor


def api_error(code: int, status: str) -> genai_errors.APIError:
    payload = {"error": {"code": code, "message": "from upstream", "status": status}}
    error_class = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
    return error_class(code, payload)


def model_response(text="Use an S3 bucket.", function_calls=None, tokens=42):
    response = Mock()
    response.text = text
    response.function_calls = function_calls
    response.usage_metadata = Mock(total_token_count=tokens) if tokens is not None else None
    return response


async def chunks(*texts, error=None):
    for text in texts:
        yield Mock(text=text)
    if error is not None:
        raise error


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def client() -> Mock:
    client = Mock()
    client.aio.models.generate_content = AsyncMock(return_value=model_response())
    client.aio.models.generate_content_stream = AsyncMock()
    return client


@pytest.fixture
def service(client: Mock) -> GenAIService:
    return GenAIService(
        api_key="test-key",
        model="gemini-2.5-flash",
        executor=RetryExecutor(sleep=no_sleep),
        retry_config={"max_attempts": 3, "jitter": False},
        client=client,
    )


class TestGenerateContent:
    """Test cases for GenAIService.generate_content."""

    @pytest.mark.asyncio
    async def test_returns_normalized_response(self, service, client) -> None:
        response = await service.generate_content("How do I host a static site?")

        assert response.text == "Use an S3 bucket."
        assert response.function_calls == []
        assert response.metadata.model == "gemini-2.5-flash"
        assert response.metadata.tokens_used == 42
        client.aio.models.generate_content.assert_awaited_once_with(
            model="gemini-2.5-flash", contents="How do I host a static site?", config=None
        )

    @pytest.mark.asyncio
    async def test_sessions_are_passed_as_tools(self, service, client) -> None:
        session = Mock(name="terraform-session")

        await service.generate_content("Plan a VPC", [session])

        config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert len(config.tools) == 1
        assert config.tool_config.function_calling_config.mode == types.FunctionCallingConfigMode.AUTO

    @pytest.mark.asyncio
    async def test_function_calls_and_missing_usage(self, service, client) -> None:
        call = types.FunctionCall(name="search_documentation", args={"query": "s3 versioning"})
        client.aio.models.generate_content.return_value = model_response(
            text=None, function_calls=[call], tokens=None
        )

        response = await service.generate_content("S3 versioning?")

        assert response.text == ""
        assert response.has_function_calls
        assert response.function_calls[0]["name"] == "search_documentation"
        assert response.function_calls[0]["args"] == {"query": "s3 versioning"}
        assert response.metadata.tokens_used is None

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, service, client) -> None:
        client.aio.models.generate_content.side_effect = [
            api_error(429, "RESOURCE_EXHAUSTED"),
            api_error(503, "UNAVAILABLE"),
            model_response(text="done"),
        ]

        response = await service.generate_content("retry me")

        assert response.text == "done"
        assert client.aio.models.generate_content.await_count == 3

    @pytest.mark.asyncio
    async def test_permanent_error_is_not_retried(self, service, client) -> None:
        client.aio.models.generate_content.side_effect = api_error(400, "INVALID_ARGUMENT")

        with pytest.raises(GenAIError, match="Failed to generate content: request failed"):
            await service.generate_content("bad request")

        assert client.aio.models.generate_content.await_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self, service, client) -> None:
        client.aio.models.generate_content.side_effect = api_error(503, "UNAVAILABLE")

        with pytest.raises(GenAIError, match="service unavailable"):
            await service.generate_content("still down")

        assert client.aio.models.generate_content.await_count == 3

    @pytest.mark.asyncio
    async def test_each_attempt_has_a_deadline(self, client) -> None:
        async def hang(**kwargs):
            await asyncio.sleep(5)

        client.aio.models.generate_content = AsyncMock(side_effect=hang)
        service = GenAIService(
            api_key="test-key",
            executor=RetryExecutor(sleep=no_sleep),
            retry_config={"max_attempts": 2},
            request_timeout_ms=20,
            client=client,
        )

        with pytest.raises(OperationTimeoutError, match="timed out after 20ms in generate_content"):
            await service.generate_content("slow")

        assert client.aio.models.generate_content.await_count == 2


class TestGenerateContentStream:
    """Test cases for GenAIService.generate_content_stream."""

    @pytest.mark.asyncio
    async def test_yields_non_empty_chunks(self, service, client) -> None:
        client.aio.models.generate_content_stream.return_value = chunks("Hel", "", "lo", None)

        stream = await service.generate_content_stream("Say hello")

        assert [chunk async for chunk in stream] == ["Hel", "lo"]
        client.aio.models.generate_content_stream.assert_awaited_once_with(
            model="gemini-2.5-flash", contents="Say hello", config=None
        )

    @pytest.mark.asyncio
    async def test_opening_the_stream_is_retried(self, service, client) -> None:
        client.aio.models.generate_content_stream.side_effect = [
            api_error(503, "UNAVAILABLE"),
            chunks("ok"),
        ]

        stream = await service.generate_content_stream("retry stream")

        assert [chunk async for chunk in stream] == ["ok"]
        assert client.aio.models.generate_content_stream.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_mid_stream_is_not_retried(self, service, client) -> None:
        client.aio.models.generate_content_stream.return_value = chunks(
            "partial", error=api_error(500, "INTERNAL")
        )

        stream = await service.generate_content_stream("break")
        received = []

        with pytest.raises(GenAIError, match="Streaming interrupted: server error"):
            async for chunk in stream:
                received.append(chunk)

        assert received == ["partial"]
        assert client.aio.models.generate_content_stream.await_count == 1
