"""Domain layer - business models and logic."""

from video_rag.domain.exceptions import (
    DomainException,
    EmbeddingGenerationException,
    FrameExtractionException,
    GenerationException,
    IndexingException,
    IndexingInProgressException,
    InsertionException,
    InvalidInputException,
    NoRelevantContentException,
    SchemaMismatchException,
    TranscriptionException,
    VideoNotFoundException,
    VideoNotIndexedException,
)
from video_rag.domain.models import (
    ChunkStrategy,
    EmbeddingProvenance,
    KeyFrame,
    TextChunk,
    TextEmbeddingRecord,
    TranscriptSegment,
    VideoRecord,
    VideoStatus,
    VisualEmbeddingRecord,
)
from video_rag.domain.value_objects import ChunkWindow

__all__ = [
    # Exceptions
    "DomainException",
    "InvalidInputException",
    "VideoNotFoundException",
    "VideoNotIndexedException",
    "IndexingInProgressException",
    "FrameExtractionException",
    "TranscriptionException",
    "EmbeddingGenerationException",
    "SchemaMismatchException",
    "InsertionException",
    "NoRelevantContentException",
    "GenerationException",
    "IndexingException",
    # Video
    "VideoRecord",
    "VideoStatus",
    "KeyFrame",
    # Chunks
    "ChunkStrategy",
    "TextChunk",
    "TranscriptSegment",
    # Embedding
    "EmbeddingProvenance",
    "TextEmbeddingRecord",
    "VisualEmbeddingRecord",
    # Value Objects
    "ChunkWindow",
]
