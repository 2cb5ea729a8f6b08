"""Document database abstractions and implementations."""

from video_rag.commons.infrastructure.documentdb.base import DocumentDBBase
from video_rag.commons.infrastructure.documentdb.mongodb_provider import (
    MongoDBDocumentDB,
)

__all__ = [
    # Base classes
    "DocumentDBBase",
    # Implementations
    "MongoDBDocumentDB",
]
