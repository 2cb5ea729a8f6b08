"""Visual embedding with explicit, opt-in synthetic fallback."""

from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import EmbeddingGenerationException
from video_rag.infrastructure.embeddings.base import (
    EmbeddingResult,
    ImageEmbeddingServiceBase,
)
from video_rag.infrastructure.embeddings.synthetic import synthetic_image_embedding

logger = get_logger(__name__)


class VisualEmbeddingService(ImageEmbeddingServiceBase):
    """Embeds frames through an image model, optionally falling back.

    With allow_synthetic_fallback off, model failures propagate to the
    caller. With it on, the frame gets a synthetic vector of the same size
    and a warning is logged; the result says so in its provenance.
    """

    def __init__(
        self,
        model: ImageEmbeddingServiceBase,
        allow_synthetic_fallback: bool = False,
    ) -> None:
        self._model = model
        self._allow_synthetic_fallback = allow_synthetic_fallback

    @property
    def allow_synthetic_fallback(self) -> bool:
        return self._allow_synthetic_fallback

    async def embed_image(self, image_path: str) -> EmbeddingResult:
        """Embed a frame with the model, or synthetically when allowed."""
        try:
            return await self._model.embed_image(image_path)
        except EmbeddingGenerationException as e:
            if not self._allow_synthetic_fallback:
                raise
            logger.warning(
                "Image model failed, using synthetic embedding",
                extra={"frame_path": image_path, "error": e.reason},
            )
            return synthetic_image_embedding(image_path, self.dimensions)

    @property
    def dimensions(self) -> int:
        return self._model.dimensions

    @property
    def model_name(self) -> str:
        return self._model.model_name

    async def close(self) -> None:
        await self._model.close()
