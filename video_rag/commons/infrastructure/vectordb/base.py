"""Abstract base class for vector database operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from video_rag.commons.infrastructure.health import HealthStatus

PayloadFieldType = Literal["keyword", "integer", "float", "text"]
DistanceMetric = Literal["cosine", "euclidean", "dot"]


@dataclass(frozen=True)
class PayloadField:
    """A payload field that gets a filter index."""

    name: str
    type: PayloadFieldType


@dataclass(frozen=True)
class CollectionSchema:
    """Declared shape of a vector collection."""

    name: str
    vector_size: int
    fields: tuple[PayloadField, ...] = ()
    distance: DistanceMetric = "cosine"
    description: str = ""


@dataclass
class VectorPoint:
    """A vector with its record ID and payload."""

    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """Result from a vector search.

    `id` is the record ID the point was stored under.
    """

    id: str
    score: float
    payload: dict[str, Any]


@dataclass
class CollectionStats:
    """Point-in-time view of a collection."""

    name: str
    exists: bool
    vector_size: int | None = None
    points_count: int = 0
    indexed_vectors_count: int = 0
    status: str = "missing"
    indexed_fields: list[str] = field(default_factory=list)


class VectorDBBase(ABC):
    """Abstract base class for vector database operations."""

    @abstractmethod
    async def create_collection(self, schema: CollectionSchema) -> bool:
        """Create a collection with its payload indexes.

        Args:
            schema: Collection definition.

        Returns:
            True if created, False if already exists.
        """

    @abstractmethod
    async def delete_collection(self, name: str) -> bool:
        """Delete a collection.

        Args:
            name: Collection name.

        Returns:
            True if deleted, False if didn't exist.
        """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""

    @abstractmethod
    async def get_vector_size(self, name: str) -> int | None:
        """Read the stored vector dimension of a collection.

        Returns:
            The dimension, or None if the collection does not exist.
        """

    @abstractmethod
    async def ensure_payload_indexes(self, schema: CollectionSchema) -> list[str]:
        """Create the schema's payload indexes that are not there yet.

        Returns:
            Names of the fields that were indexed by this call.
        """

    @abstractmethod
    async def wait_until_ready(
        self,
        name: str,
        attempts: int,
        interval: float,
    ) -> bool:
        """Wait for the collection to finish pending optimizations.

        Returns:
            True if ready, False if it was still busy after all attempts.
        """

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        points: list[VectorPoint],
    ) -> int:
        """Insert or update vectors.

        Args:
            collection: Collection name.
            points: List of vectors with record IDs and payloads.

        Returns:
            Count of upserted points.
        """

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            collection: Collection name.
            query_vector: Query embedding.
            limit: Maximum results to return.
            filters: Optional payload filters.
            score_threshold: Minimum similarity score.

        Returns:
            List of search results sorted by similarity.
        """

    @abstractmethod
    async def delete_by_filter(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        """Delete vectors matching filter.

        Returns:
            Count of deleted vectors.
        """

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count vectors in collection."""

    @abstractmethod
    async def flush(self, collection: str) -> bool:
        """Wait until the store has applied pending writes.

        Returns:
            True if the collection settled.
        """

    @abstractmethod
    async def get_collection_stats(self, name: str) -> CollectionStats:
        """Describe a collection; missing collections report exists=False."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """

    async def close(self) -> None:
        """Release client resources."""
        return None
