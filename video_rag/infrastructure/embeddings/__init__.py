"""Embedding services."""

from video_rag.infrastructure.embeddings.base import (
    EmbeddingModality,
    EmbeddingResult,
    ImageEmbeddingServiceBase,
    TextEmbeddingServiceBase,
)
from video_rag.infrastructure.embeddings.clip_embeddings import CLIPEmbeddingService
from video_rag.infrastructure.embeddings.dimensions import (
    infer_text_embedding_dimensions,
)
from video_rag.infrastructure.embeddings.openai_embeddings import (
    OpenAIEmbeddingService,
)
from video_rag.infrastructure.embeddings.synthetic import (
    synthetic_image_embedding,
)
from video_rag.infrastructure.embeddings.visual import VisualEmbeddingService

__all__ = [
    # Base classes
    "TextEmbeddingServiceBase",
    "ImageEmbeddingServiceBase",
    "EmbeddingResult",
    "EmbeddingModality",
    # Implementations
    "OpenAIEmbeddingService",
    "CLIPEmbeddingService",
    "VisualEmbeddingService",
    # Helpers
    "infer_text_embedding_dimensions",
    "synthetic_image_embedding",
]
