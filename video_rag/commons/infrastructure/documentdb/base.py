"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from video_rag.commons.infrastructure.health import HealthStatus


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents carry their identifier in an `id` field; providers map it to
    whatever primary key their store uses and restore it on reads.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection/table name.
            document: Document to insert.

        Returns:
            The document ID.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID.

        Args:
            collection: Collection/table name.
            document_id: Document ID to find.

        Returns:
            Document if found, None otherwise.
        """

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection/table name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort specification [(field, direction)].
                  Direction: 1 for ascending, -1 for descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document.

        Args:
            collection: Collection/table name.
            document_id: Document ID to update.
            updates: Fields to set.

        Returns:
            True if the document exists, False otherwise.
        """

    @abstractmethod
    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on one document, only if it matches filters.

        The match and the write happen as one atomic operation, so two
        processes racing on the same filters cannot both succeed.

        Args:
            collection: Collection/table name.
            filters: Query filters; may name the document by `id`.
            updates: Fields to set.

        Returns:
            True if a document matched and was updated, False otherwise.
        """

    @abstractmethod
    async def replace(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
    ) -> None:
        """Replace a whole document, inserting it when absent.

        Args:
            collection: Collection/table name.
            document_id: Document ID to replace.
            document: New document body.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document.

        Args:
            collection: Collection/table name.
            document_id: Document ID to delete.

        Returns:
            True if deleted, False if not found.
        """

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters.

        Args:
            collection: Collection/table name.
            filters: Optional query filters.

        Returns:
            Count of matching documents.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection/table name.
            fields: Index fields [(field, direction)].
            unique: Whether index should be unique.
            name: Optional index name.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
