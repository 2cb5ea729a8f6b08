"""Application layer - use cases and orchestration.

This layer contains:
- Services: chunking, collection management, indexing and retrieval
- DTOs: Data transfer objects for API boundaries
"""

from video_rag.application.dtos import (
    IndexingStep,
    IndexVideoRequest,
    IndexVideoResponse,
    QueryVideoRequest,
    QueryVideoResponse,
)
from video_rag.application.services import (
    BatchInserter,
    CollectionManager,
    IndexingResult,
    InsertionReport,
    VideoIndexingService,
    VideoQueryService,
    VideoRepository,
)

__all__ = [
    # DTOs
    "IndexVideoRequest",
    "IndexVideoResponse",
    "IndexingStep",
    "QueryVideoRequest",
    "QueryVideoResponse",
    # Services
    "BatchInserter",
    "CollectionManager",
    "IndexingResult",
    "InsertionReport",
    "VideoIndexingService",
    "VideoQueryService",
    "VideoRepository",
]
