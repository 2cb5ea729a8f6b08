"""Domain models."""

from video_rag.domain.models.chunk import ChunkStrategy, TextChunk, TranscriptSegment
from video_rag.domain.models.embedding import (
    EmbeddingProvenance,
    TextEmbeddingRecord,
    VisualEmbeddingRecord,
    text_record_id,
    visual_record_id,
)
from video_rag.domain.models.video import (
    KeyFrame,
    VideoRecord,
    VideoStatus,
    format_timestamp,
)

__all__ = [
    # Video
    "VideoRecord",
    "VideoStatus",
    "KeyFrame",
    "format_timestamp",
    # Chunks
    "ChunkStrategy",
    "TextChunk",
    "TranscriptSegment",
    # Embedding
    "EmbeddingProvenance",
    "TextEmbeddingRecord",
    "VisualEmbeddingRecord",
    "text_record_id",
    "visual_record_id",
]
