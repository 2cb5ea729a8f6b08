"""Application services for video indexing and retrieval."""

from video_rag.application.services.batch_insert import (
    BatchInserter,
    InsertionReport,
)
from video_rag.application.services.chunking import (
    TimedChunk,
    build_chunk_sets,
    chunk_by_sentence,
    chunk_by_timestamps,
    chunk_fixed_window,
    select_window,
)
from video_rag.application.services.collections import (
    CollectionManager,
    CollectionReport,
    EnsureReport,
)
from video_rag.application.services.indexing import (
    IndexingResult,
    TranscriptArtifacts,
    VideoIndexingService,
)
from video_rag.application.services.retrieval import (
    RetrievedChunk,
    VideoQueryService,
)
from video_rag.application.services.video_repository import VideoRepository

__all__ = [
    "BatchInserter",
    "CollectionManager",
    "CollectionReport",
    "EnsureReport",
    "IndexingResult",
    "InsertionReport",
    "RetrievedChunk",
    "TimedChunk",
    "TranscriptArtifacts",
    "VideoIndexingService",
    "VideoQueryService",
    "VideoRepository",
    "build_chunk_sets",
    "chunk_by_sentence",
    "chunk_by_timestamps",
    "chunk_fixed_window",
    "select_window",
]
