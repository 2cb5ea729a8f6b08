"""OpenAI implementation of text embedding service."""

import math

from openai import AsyncOpenAI, OpenAIError

from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import EmbeddingGenerationException
from video_rag.infrastructure.embeddings.base import (
    EmbeddingModality,
    EmbeddingResult,
    TextEmbeddingServiceBase,
)
from video_rag.infrastructure.embeddings.dimensions import (
    infer_text_embedding_dimensions,
)

logger = get_logger(__name__)


class OpenAIEmbeddingService(TextEmbeddingServiceBase):
    """OpenAI implementation of text embedding service.

    Works with OpenAI's text-embedding models and with any endpoint that
    speaks the same API (set base_url), e.g. Gemini's OpenAI-compatible
    endpoint serving text-embedding-004.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        dimensions: int | None = None,
        max_input_chars: int = 8000,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize OpenAI embedding client.

        Args:
            api_key: API key for the endpoint.
            model: Embedding model to use.
            base_url: Optional custom API endpoint.
            dimensions: Pinned vector size; inferred from the model when None.
            max_input_chars: Longer inputs keep only their first characters.
            client: Pre-built client, mainly for tests.
        """
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._dimensions = dimensions or infer_text_embedding_dimensions(model)
        self._max_input_chars = max_input_chars

    async def embed_text(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        if not isinstance(text, str) or not text.strip():
            raise EmbeddingGenerationException(
                "text", "Input text must be a non-empty string"
            )

        if len(text) > self._max_input_chars:
            logger.debug(
                "Truncating embedding input",
                extra={"chars": len(text), "limit": self._max_input_chars},
            )
            text = text[: self._max_input_chars]

        try:
            response = await self._client.embeddings.create(
                model=self._model,
                input=text,
            )
        except OpenAIError as e:
            raise EmbeddingGenerationException("text", str(e)) from e

        if not response.data:
            raise EmbeddingGenerationException("text", "Provider returned no embedding")

        vector = response.data[0].embedding
        if not vector or not all(
            isinstance(v, int | float) and math.isfinite(v) for v in vector
        ):
            raise EmbeddingGenerationException(
                "text", "Provider returned an invalid vector"
            )

        return EmbeddingResult(
            vector=[float(v) for v in vector],
            dimensions=len(vector),
            model=self._model,
            modality=EmbeddingModality.TEXT,
            tokens_used=response.usage.total_tokens if response.usage else None,
        )

    @property
    def dimensions(self) -> int:
        """Dimensions of text embedding vectors."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Embedding model in use."""
        return self._model

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.close()
