"""OpenAI implementation of LLM service."""

from openai import AsyncAzureOpenAI, AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessageParam

from video_rag.commons.telemetry import LangfuseTracer
from video_rag.domain.exceptions import GenerationException
from video_rag.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
)


class OpenAILLMService(LLMServiceBase):
    """OpenAI implementation of LLM service.

    Also serves Azure OpenAI and OpenAI-compatible endpoints.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
        tracer: LangfuseTracer | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize OpenAI LLM client.

        Args:
            api_key: OpenAI API key.
            model: Model to use.
            base_url: Optional custom API endpoint.
            temperature: Default sampling temperature.
            max_tokens: Default completion budget.
            timeout_seconds: Request timeout.
            tracer: Langfuse tracer for generation records.
            client: Pre-built client (Azure or tests).
        """
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._tracer = tracer or LangfuseTracer()

    @classmethod
    def for_azure(
        cls,
        api_key: str,
        endpoint: str,
        model: str,
        api_version: str = "2024-06-01",
        **kwargs: object,
    ) -> "OpenAILLMService":
        """Build a service against an Azure OpenAI deployment."""
        client = AsyncAzureOpenAI(
            api_key=api_key,
            azure_endpoint=endpoint,
            api_version=api_version,
        )
        return cls(
            api_key=api_key,
            model=model,
            client=client,  # type: ignore[arg-type]
            **kwargs,
        )

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Generate a completion."""
        use_temperature = self._temperature if temperature is None else temperature
        use_max_tokens = max_tokens or self._max_tokens
        openai_messages: list[ChatCompletionMessageParam] = [
            {"role": m.role.value, "content": m.content}  # type: ignore[misc]
            for m in messages
        ]

        generation = self._tracer.start_generation(
            name="openai_chat_completion",
            model=self._model,
            input_messages=[
                {"role": m.role.value, "content": m.content} for m in messages
            ],
            model_parameters={
                "temperature": use_temperature,
                "max_tokens": use_max_tokens,
            },
            metadata={"provider": "openai"},
        )

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=openai_messages,
                temperature=use_temperature,
                max_tokens=use_max_tokens,
            )
        except OpenAIError as e:
            self._tracer.end_generation(
                generation, output=None, level="ERROR", status_message=str(e)
            )
            raise GenerationException(self._model, str(e)) from e

        choice = response.choices[0]
        usage = response.usage
        result = LLMResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            model=response.model,
        )

        self._tracer.end_generation(
            generation, output=result.content, usage=result.usage.as_dict()
        )
        return result

    @property
    def default_model(self) -> str:
        """Model identifier used for generation."""
        return self._model

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.close()
