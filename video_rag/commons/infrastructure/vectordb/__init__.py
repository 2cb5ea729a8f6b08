"""Vector database abstractions and implementations."""

from video_rag.commons.infrastructure.vectordb.base import (
    CollectionSchema,
    CollectionStats,
    PayloadField,
    SearchResult,
    VectorDBBase,
    VectorPoint,
)
from video_rag.commons.infrastructure.vectordb.qdrant_provider import (
    QdrantVectorDB,
    point_id_for,
)

__all__ = [
    # Base classes
    "CollectionSchema",
    "CollectionStats",
    "PayloadField",
    "SearchResult",
    "VectorDBBase",
    "VectorPoint",
    # Implementations
    "QdrantVectorDB",
    "point_id_for",
]
