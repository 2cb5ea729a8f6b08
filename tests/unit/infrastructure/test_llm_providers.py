"""Unit tests for LLM providers."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from anthropic import AnthropicError
from openai import OpenAIError

from video_rag.domain.exceptions import GenerationException
from video_rag.infrastructure.llm import AnthropicLLMService, OpenAILLMService
from video_rag.infrastructure.llm.base import Message, MessageRole

MESSAGES = [
    Message(role=MessageRole.SYSTEM, content="Answer from the context."),
    Message(role=MessageRole.USER, content="What is said at 1:05?"),
]


@pytest.fixture
def tracer():
    """Create a mock Langfuse tracer."""
    tracer = MagicMock()
    tracer.start_generation.return_value = "generation"
    return tracer


class TestOpenAILLMService:
    """Tests for OpenAILLMService."""

    @pytest.fixture
    def mock_client(self):
        client = MagicMock()
        response = MagicMock()
        response.choices = [
            MagicMock(message=MagicMock(content="An answer."), finish_reason="stop")
        ]
        response.usage = MagicMock(
            prompt_tokens=20, completion_tokens=5, total_tokens=25
        )
        response.model = "gpt-4o-2024"
        client.chat.completions.create = AsyncMock(return_value=response)
        return client

    async def test_generate(self, mock_client, tracer):
        service = OpenAILLMService(api_key="k", client=mock_client, tracer=tracer)

        result = await service.generate(MESSAGES, temperature=0.3, max_tokens=1024)

        assert result.content == "An answer."
        assert result.usage.total_tokens == 25
        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["messages"][0] == {
            "role": "system",
            "content": "Answer from the context.",
        }
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1024
        tracer.end_generation.assert_called_once()

    async def test_defaults_used(self, mock_client):
        service = OpenAILLMService(
            api_key="k", client=mock_client, temperature=0.0, max_tokens=64
        )

        await service.generate(MESSAGES)

        kwargs = mock_client.chat.completions.create.await_args.kwargs
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 64

    async def test_provider_error(self, mock_client, tracer):
        mock_client.chat.completions.create.side_effect = OpenAIError("rate limited")
        service = OpenAILLMService(api_key="k", client=mock_client, tracer=tracer)

        with pytest.raises(GenerationException) as exc_info:
            await service.generate(MESSAGES)

        assert exc_info.value.model == "gpt-4o"
        assert tracer.end_generation.call_args.kwargs["level"] == "ERROR"

    def test_default_model(self, mock_client):
        service = OpenAILLMService(api_key="k", model="gpt-4o-mini", client=mock_client)
        assert service.default_model == "gpt-4o-mini"


class TestAnthropicLLMService:
    """Tests for AnthropicLLMService."""

    @pytest.fixture
    def mock_client(self):
        client = MagicMock()
        response = MagicMock()
        response.content = [MagicMock(type="text", text="Claude answer.")]
        response.stop_reason = "end_turn"
        response.usage = MagicMock(input_tokens=30, output_tokens=7)
        response.model = "claude-sonnet"
        client.messages.create = AsyncMock(return_value=response)
        return client

    async def test_system_prompt_sent_separately(self, mock_client):
        service = AnthropicLLMService(api_key="k", client=mock_client)

        result = await service.generate(MESSAGES)

        kwargs = mock_client.messages.create.await_args.kwargs
        assert kwargs["system"] == "Answer from the context."
        assert kwargs["messages"] == [
            {"role": "user", "content": "What is said at 1:05?"}
        ]
        assert result.content == "Claude answer."
        assert result.usage.total_tokens == 37

    async def test_provider_error(self, mock_client):
        mock_client.messages.create.side_effect = AnthropicError("overloaded")
        service = AnthropicLLMService(api_key="k", client=mock_client)

        with pytest.raises(GenerationException):
            await service.generate(MESSAGES)
