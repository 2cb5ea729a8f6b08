"""Data Transfer Objects for application layer."""

from video_rag.application.dtos.indexing import (
    CollectionsStatusResponse,
    CollectionStatusDTO,
    IndexingStep,
    IndexVideoRequest,
    IndexVideoResponse,
    InsertionSummary,
    KeyFrameDTO,
    ProbeResultDTO,
    VideoDebugResponse,
    VideoResponse,
)
from video_rag.application.dtos.query import (
    ChunkDTO,
    QueryVideoRequest,
    QueryVideoResponse,
    SearchMetadata,
    VideoSummaryDTO,
)

__all__ = [
    # Indexing DTOs
    "IndexVideoRequest",
    "IndexVideoResponse",
    "IndexingStep",
    "InsertionSummary",
    "VideoResponse",
    "KeyFrameDTO",
    "CollectionStatusDTO",
    "CollectionsStatusResponse",
    "ProbeResultDTO",
    "VideoDebugResponse",
    # Query DTOs
    "QueryVideoRequest",
    "QueryVideoResponse",
    "ChunkDTO",
    "SearchMetadata",
    "VideoSummaryDTO",
]
