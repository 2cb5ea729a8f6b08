"""Anthropic implementation of LLM service."""

from typing import Any

from anthropic import AnthropicError, AsyncAnthropic

from video_rag.commons.telemetry import LangfuseTracer
from video_rag.domain.exceptions import GenerationException
from video_rag.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)


class AnthropicLLMService(LLMServiceBase):
    """Anthropic implementation of LLM service."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        max_retries: int = 2,
        tracer: LangfuseTracer | None = None,
        client: AsyncAnthropic | None = None,
    ) -> None:
        """Initialize Anthropic LLM client.

        Args:
            api_key: Anthropic API key.
            model: Model to use.
            base_url: Optional custom API endpoint.
            temperature: Default sampling temperature.
            max_tokens: Default completion budget.
            max_retries: Maximum number of retries for failed requests.
            tracer: Langfuse tracer for generation records.
            client: Pre-built client, mainly for tests.
        """
        self._client = client or AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
        )
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._tracer = tracer or LangfuseTracer()

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion."""
        use_temperature = self._temperature if temperature is None else temperature
        use_max_tokens = max_tokens or self._max_tokens
        anthropic_messages, system_prompt = self._convert_messages(messages)

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": anthropic_messages,
            "temperature": use_temperature,
            "max_tokens": use_max_tokens,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        generation = self._tracer.start_generation(
            name="anthropic_messages",
            model=self._model,
            input_messages=[
                {"role": m.role.value, "content": m.content} for m in messages
            ],
            model_parameters={
                "temperature": use_temperature,
                "max_tokens": use_max_tokens,
            },
            metadata={"provider": "anthropic"},
        )

        try:
            response = await self._client.messages.create(**kwargs)
        except AnthropicError as e:
            self._tracer.end_generation(
                generation, output=None, level="ERROR", status_message=str(e)
            )
            raise GenerationException(self._model, str(e)) from e

        content = next(
            (block.text for block in response.content if block.type == "text"), ""
        )
        result = LLMResponse(
            content=content,
            finish_reason=response.stop_reason or "end_turn",
            usage=LLMUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            model=response.model,
        )

        self._tracer.end_generation(
            generation, output=result.content, usage=result.usage.as_dict()
        )
        return result

    def _convert_messages(
        self,
        messages: list[Message],
    ) -> tuple[list[dict[str, Any]], str | None]:
        """Split out system messages, which Anthropic takes separately."""
        system_parts: list[str] = []
        converted: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_parts.append(msg.content)
            else:
                converted.append({"role": msg.role.value, "content": msg.content})

        return converted, "\n\n".join(system_parts) or None

    @property
    def default_model(self) -> str:
        """Model identifier used for generation."""
        return self._model

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.close()
