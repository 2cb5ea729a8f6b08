"""Batched vector insertion with per-record fallback and read-back checks."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from video_rag.commons.concurrency import RateLimiter, ReadWriteLock
from video_rag.commons.infrastructure.vectordb import VectorDBBase, VectorPoint
from video_rag.commons.telemetry import get_logger, timed
from video_rag.domain.exceptions import InsertionException
from video_rag.domain.models.embedding import (
    TextEmbeddingRecord,
    VisualEmbeddingRecord,
)

logger = get_logger(__name__)

TEXT_BATCH_SIZE = 10
VISUAL_BATCH_SIZE = 50
PROBE_VALUE = 0.1


@dataclass
class InsertionReport:
    """Result of inserting a set of records into one collection."""

    collection: str
    attempted: int = 0
    inserted: int = 0
    failed_ids: list[str] = field(default_factory=list)
    batch_fallbacks: int = 0
    verified: bool = False
    points_count: int | None = None

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


def to_point(record: TextEmbeddingRecord | VisualEmbeddingRecord) -> VectorPoint:
    """Convert an embedding record to a vector store point."""
    return VectorPoint(
        id=record.record_id,
        vector=record.embedding,
        payload=record.payload(),
    )


class BatchInserter:
    """Writes records in batches, falling back to one-by-one on failure.

    A failed batch is retried record by record, so one bad record costs only
    itself. After writing, the inserter waits for the store to apply the
    updates, reads the collection size back and runs a probe search for the
    video. Verification problems are logged, never raised.
    """

    def __init__(
        self,
        vector_db: VectorDBBase,
        rate_limiter: RateLimiter | None = None,
        lock: ReadWriteLock | None = None,
    ) -> None:
        """Initialize batch inserter.

        Args:
            vector_db: Vector store adapter.
            rate_limiter: Paces batch writes; unlimited when omitted.
            lock: Collection lock, held in shared mode while writing.
        """
        self._vector_db = vector_db
        self._rate_limiter = rate_limiter or RateLimiter.unlimited()
        self._lock = lock or ReadWriteLock()

    @timed
    async def insert(
        self,
        collection: str,
        records: Sequence[TextEmbeddingRecord | VisualEmbeddingRecord],
        batch_size: int,
        video_id: str | None = None,
    ) -> InsertionReport:
        """Insert records and verify they landed.

        Args:
            collection: Target collection.
            records: Embedding records to write.
            batch_size: Records per bulk upsert.
            video_id: Video the records belong to, used by the probe search.

        Returns:
            Counts of inserted and failed records plus verification outcome.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        points = [to_point(r) for r in records]
        report = InsertionReport(collection=collection, attempted=len(points))
        if not points:
            return report

        async with self._lock.shared():
            for start in range(0, len(points), batch_size):
                batch = points[start : start + batch_size]
                await self._rate_limiter.acquire()
                await self._insert_batch(collection, batch, report)

            if report.inserted:
                await self._verify(collection, points[0], video_id, report)

        logger.info(
            "Batch insertion finished",
            extra={
                "collection": collection,
                "attempted": report.attempted,
                "inserted": report.inserted,
                "failed": report.failed,
                "batch_fallbacks": report.batch_fallbacks,
                "verified": report.verified,
            },
        )
        return report

    async def _insert_batch(
        self,
        collection: str,
        batch: list[VectorPoint],
        report: InsertionReport,
    ) -> None:
        try:
            await self._vector_db.upsert(collection, batch)
            report.inserted += len(batch)
            return
        except Exception as e:
            report.batch_fallbacks += 1
            logger.warning(
                "Batch insert failed, inserting records individually",
                extra={
                    "collection": collection,
                    "batch_size": len(batch),
                    "error": str(e),
                },
            )

        for point in batch:
            try:
                await self._vector_db.upsert(collection, [point])
                report.inserted += 1
            except Exception as e:
                failure = InsertionException(point.id, str(e))
                report.failed_ids.append(point.id)
                logger.error(
                    str(failure),
                    extra={"collection": collection, "record_id": point.id},
                )

    async def _verify(
        self,
        collection: str,
        sample: VectorPoint,
        video_id: str | None,
        report: InsertionReport,
    ) -> None:
        try:
            settled = await self._vector_db.flush(collection)
            stats = await self._vector_db.get_collection_stats(collection)
            report.points_count = stats.points_count

            probe = [PROBE_VALUE] * len(sample.vector)
            filters = {"video_id": video_id} if video_id else None
            hits = await self._vector_db.search(
                collection, probe, limit=1, filters=filters
            )
            report.verified = settled and bool(hits)
        except Exception as e:
            logger.warning(
                "Insert verification failed",
                extra={"collection": collection, "error": str(e)},
            )
            return

        if not report.verified:
            logger.warning(
                "Inserted records not visible yet",
                extra={
                    "collection": collection,
                    "video_id": video_id,
                    "settled": settled,
                    "points_count": report.points_count,
                },
            )
