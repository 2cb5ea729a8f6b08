"""Abstract base classes for embedding services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from video_rag.domain.models.embedding import EmbeddingProvenance


class EmbeddingModality(str, Enum):
    """Modality of the embedded content."""

    TEXT = "text"
    IMAGE = "image"


@dataclass
class EmbeddingResult:
    """Result from embedding generation."""

    vector: list[float]
    dimensions: int
    model: str
    modality: EmbeddingModality
    provenance: EmbeddingProvenance = EmbeddingProvenance.MODEL
    tokens_used: int | None = None


class TextEmbeddingServiceBase(ABC):
    """Abstract base class for text embedding services.

    The same provider embeds transcript chunks at indexing time and
    questions at query time, so both live in one vector space.
    """

    @abstractmethod
    async def embed_text(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding result with vector and metadata.

        Raises:
            EmbeddingGenerationException: On blank input or provider failure.
        """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Dimensions of the produced vectors."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier reported in results."""

    async def close(self) -> None:
        """Release client resources."""
        return None


class ImageEmbeddingServiceBase(ABC):
    """Abstract base class for image embedding services."""

    @abstractmethod
    async def embed_image(self, image_path: str) -> EmbeddingResult:
        """Generate embedding for a single image.

        Args:
            image_path: Path to the image file.

        Returns:
            Embedding result with vector, metadata and provenance.

        Raises:
            EmbeddingGenerationException: If the image cannot be embedded.
        """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Dimensions of the produced vectors."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier reported in results."""

    async def close(self) -> None:
        """Release client resources."""
        return None
