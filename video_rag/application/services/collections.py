"""Vector collection lifecycle: creation, dimension checks and migration."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from video_rag.commons.concurrency import ReadWriteLock
from video_rag.commons.infrastructure.vectordb import (
    CollectionSchema,
    CollectionStats,
    PayloadField,
    VectorDBBase,
)
from video_rag.commons.settings.models import VectorDBSettings
from video_rag.commons.telemetry import get_logger, log_exceptions
from video_rag.domain.exceptions import SchemaMismatchException

logger = get_logger(__name__)

TEXT_PAYLOAD_FIELDS = (
    PayloadField("video_id", "keyword"),
    PayloadField("record_id", "keyword"),
    PayloadField("strategy", "keyword"),
    PayloadField("chunk_index", "integer"),
    PayloadField("timestamp", "float"),
)

VISUAL_PAYLOAD_FIELDS = (
    PayloadField("video_id", "keyword"),
    PayloadField("record_id", "keyword"),
    PayloadField("provenance", "keyword"),
    PayloadField("frame_number", "integer"),
    PayloadField("timestamp", "float"),
)


@dataclass
class CollectionReport:
    """What ensuring one collection did."""

    name: str
    action: str  # created, recreated, unchanged, or would-* in dry runs
    vector_size: int
    previous_vector_size: int | None = None
    indexes_created: list[str] = field(default_factory=list)
    ready: bool = True
    mismatch: SchemaMismatchException | None = None


@dataclass
class EnsureReport:
    """Outcome of ensuring every managed collection."""

    collections: list[CollectionReport] = field(default_factory=list)
    dry_run: bool = False

    @property
    def recreated(self) -> list[str]:
        return [c.name for c in self.collections if c.action == "recreated"]

    @property
    def ready(self) -> bool:
        return all(c.ready for c in self.collections)


class CollectionManager:
    """Keeps the text and visual collections in line with the providers.

    The declared dimension of each collection must equal its provider's.
    When it does not, the collection is dropped and recreated, which
    discards the vectors of every video stored in it.

    Readers and writers of the collections take the shared side of the
    manager's lock; ensuring and migrating take the exclusive side.
    """

    def __init__(
        self,
        vector_db: VectorDBBase,
        text_dimensions: int,
        visual_dimensions: int,
        settings: VectorDBSettings | None = None,
        lock: ReadWriteLock | None = None,
    ) -> None:
        """Initialize collection manager.

        Args:
            vector_db: Vector store adapter.
            text_dimensions: Output size of the text embedding provider.
            visual_dimensions: Output size of the image embedding provider.
            settings: Collection names and readiness polling.
            lock: Shared/exclusive lock; a new one when omitted.
        """
        self._vector_db = vector_db
        self._settings = settings or VectorDBSettings()
        self._lock = lock or ReadWriteLock()
        self._ensured = False

        self._text_schema = CollectionSchema(
            name=self._settings.collections.text,
            vector_size=text_dimensions,
            fields=TEXT_PAYLOAD_FIELDS,
            description="Transcript chunk embeddings",
        )
        self._visual_schema = CollectionSchema(
            name=self._settings.collections.visual,
            vector_size=visual_dimensions,
            fields=VISUAL_PAYLOAD_FIELDS,
            description="Video frame embeddings",
        )

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    @property
    def text_schema(self) -> CollectionSchema:
        return self._text_schema

    @property
    def visual_schema(self) -> CollectionSchema:
        return self._visual_schema

    @property
    def schemas(self) -> tuple[CollectionSchema, CollectionSchema]:
        return (self._text_schema, self._visual_schema)

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[None]:
        """Hold the collections for reading or writing points."""
        async with self._lock.shared():
            yield

    async def ensure_ready(self) -> None:
        """Ensure the collections once per manager."""
        if self._ensured:
            return
        async with self._lock.exclusive():
            if self._ensured:
                return
            await self._ensure_all(recreate=False, dry_run=False)

    async def ensure_collections(self) -> EnsureReport:
        """Create missing collections and repair mismatched ones.

        Returns:
            Per-collection report. Dimension mismatches appear in it as
            SchemaMismatchException instances; they are never raised.
        """
        async with self._lock.exclusive():
            return await self._ensure_all(recreate=False, dry_run=False)

    @log_exceptions(message="Collection migration failed")
    async def migrate(
        self,
        *,
        recreate: bool = False,
        dry_run: bool = False,
    ) -> EnsureReport:
        """Run collection maintenance with exclusive access.

        Args:
            recreate: Drop and recreate every collection even if it matches.
            dry_run: Only report what would change.

        Returns:
            Per-collection report.
        """
        async with self._lock.exclusive():
            return await self._ensure_all(recreate=recreate, dry_run=dry_run)

    async def collection_status(self, name: str) -> CollectionStats:
        """Describe a collection for status and debug endpoints."""
        async with self._lock.shared():
            return await self._vector_db.get_collection_stats(name)

    async def _ensure_all(self, *, recreate: bool, dry_run: bool) -> EnsureReport:
        report = EnsureReport(dry_run=dry_run)
        for schema in self.schemas:
            report.collections.append(
                await self._ensure(schema, recreate=recreate, dry_run=dry_run)
            )
        if not dry_run:
            self._ensured = True
        return report

    async def _ensure(
        self,
        schema: CollectionSchema,
        *,
        recreate: bool,
        dry_run: bool,
    ) -> CollectionReport:
        existing_size = await self._vector_db.get_vector_size(schema.name)

        if existing_size is None:
            if dry_run:
                return CollectionReport(schema.name, "would-create", schema.vector_size)
            await self._vector_db.create_collection(schema)
            report = CollectionReport(schema.name, "created", schema.vector_size)
        else:
            mismatch = None
            if existing_size != schema.vector_size:
                mismatch = SchemaMismatchException(
                    schema.name, schema.vector_size, existing_size
                )

            if mismatch is None and not recreate:
                if dry_run:
                    return CollectionReport(
                        schema.name, "unchanged", schema.vector_size, existing_size
                    )
                report = CollectionReport(
                    schema.name, "unchanged", schema.vector_size, existing_size
                )
            else:
                if dry_run:
                    return CollectionReport(
                        schema.name,
                        "would-recreate",
                        schema.vector_size,
                        existing_size,
                        mismatch=mismatch,
                    )
                logger.warning(
                    "Dropping and recreating collection; all stored vectors are lost",
                    extra={
                        "collection": schema.name,
                        "stored_vector_size": existing_size,
                        "expected_vector_size": schema.vector_size,
                        "forced": mismatch is None,
                    },
                )
                await self._vector_db.delete_collection(schema.name)
                await self._vector_db.create_collection(schema)
                report = CollectionReport(
                    schema.name,
                    "recreated",
                    schema.vector_size,
                    existing_size,
                    mismatch=mismatch,
                )

        report.indexes_created = await self._vector_db.ensure_payload_indexes(schema)
        report.ready = await self._vector_db.wait_until_ready(
            schema.name,
            attempts=self._settings.index_wait_attempts,
            interval=self._settings.index_wait_interval_seconds,
        )
        if not report.ready:
            logger.warning(
                "Collection not ready, continuing",
                extra={"collection": schema.name},
            )

        logger.info(
            "Collection ensured",
            extra={
                "collection": schema.name,
                "action": report.action,
                "vector_size": schema.vector_size,
                "indexes_created": report.indexes_created,
            },
        )
        return report
