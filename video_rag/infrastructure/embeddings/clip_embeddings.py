"""CLIP-based image embedding service using external API."""

import asyncio
import base64
from pathlib import Path

import httpx

from video_rag.domain.exceptions import EmbeddingGenerationException
from video_rag.infrastructure.embeddings.base import (
    EmbeddingModality,
    EmbeddingResult,
    ImageEmbeddingServiceBase,
)


class CLIPEmbeddingService(ImageEmbeddingServiceBase):
    """CLIP-based embedding service for images.

    This implementation connects to an external CLIP embedding API service.

    The expected API format:
    POST /embed/image
    Body: {"images": ["base64_image"]}
    Response: {"embeddings": [[...]]}
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        model: str = "clip-vit-base-patch32",
        dimensions: int = 512,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize CLIP embedding client.

        Args:
            api_url: URL to CLIP embedding API.
            api_key: Optional API key for authentication.
            model: Model identifier for tracking.
            dimensions: Vector dimensions for the model.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client, mainly for tests.
        """
        self._api_url = api_url.rstrip("/")
        self._model = model
        self._dimensions = dimensions

        headers: dict[str, str] = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = client or httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout),
        )

    async def embed_image(self, image_path: str) -> EmbeddingResult:
        """Generate embedding for a single image."""
        try:
            image_bytes = await asyncio.to_thread(Path(image_path).read_bytes)
        except OSError as e:
            raise EmbeddingGenerationException(
                image_path, f"Cannot read image: {e}"
            ) from e

        image_b64 = base64.b64encode(image_bytes).decode("utf-8")

        try:
            response = await self._client.post(
                f"{self._api_url}/embed/image",
                json={"images": [image_b64]},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise EmbeddingGenerationException(image_path, str(e)) from e

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        try:
            vector = [float(v) for v in embeddings[0]]  # type: ignore[index]
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise EmbeddingGenerationException(
                image_path, "Malformed embedding response"
            ) from e
        if not vector:
            raise EmbeddingGenerationException(image_path, "Empty embedding returned")

        return EmbeddingResult(
            vector=vector,
            dimensions=len(vector),
            model=self._model,
            modality=EmbeddingModality.IMAGE,
        )

    @property
    def dimensions(self) -> int:
        """Dimensions of image embedding vectors."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Model identifier for tracking."""
        return self._model

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
