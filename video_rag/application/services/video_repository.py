"""Video metadata persistence on top of the document database."""

import time
from typing import Any

from video_rag.commons.infrastructure.documentdb import DocumentDBBase
from video_rag.commons.settings.models import DocumentDBSettings
from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import VideoNotFoundException
from video_rag.domain.models.video import VideoRecord, VideoStatus

_CLAIM_FIELDS = (
    "status",
    "is_indexed",
    "updated_at",
    "lease_owner",
    "lease_expires_at",
)


class VideoRepository:
    """Stores VideoRecord documents.

    Records are immutable models. Saves replace the whole stored document;
    indexing runs claim and finish a video with conditional updates so that
    only one process indexes it at a time.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        settings: DocumentDBSettings | None = None,
    ) -> None:
        """Initialize repository.

        Args:
            document_db: Document database provider.
            settings: Collection names.
        """
        self._doc_db = document_db
        self._collection = (settings or DocumentDBSettings()).collections.videos
        self._logger = get_logger(__name__)

    async def ensure_indexes(self) -> None:
        """Create the indexes list queries rely on."""
        await self._doc_db.create_index(self._collection, [("uploaded_by", 1)])
        await self._doc_db.create_index(self._collection, [("created_at", -1)])

    async def create(self, record: VideoRecord) -> VideoRecord:
        """Persist a new video record.

        Args:
            record: Record to store.

        Returns:
            The stored record.
        """
        await self._doc_db.insert(self._collection, self._to_document(record))
        self._logger.info(
            "Video record created",
            extra={"video_id": record.id, "status": record.status.value},
        )
        return record

    async def get(self, video_id: str) -> VideoRecord | None:
        """Load a video record.

        Args:
            video_id: ID of the video.

        Returns:
            The record, or None when it does not exist.
        """
        document = await self._doc_db.find_by_id(self._collection, video_id)
        if document is None:
            return None
        return VideoRecord.model_validate(document)

    async def require(self, video_id: str) -> VideoRecord:
        """Load a video record that must exist.

        Raises:
            VideoNotFoundException: If there is no such video.
        """
        record = await self.get(video_id)
        if record is None:
            raise VideoNotFoundException(video_id)
        return record

    async def save(self, record: VideoRecord) -> VideoRecord:
        """Replace the stored record with this one."""
        await self._doc_db.replace(
            self._collection, record.id, self._to_document(record)
        )
        self._logger.debug(
            "Video record saved",
            extra={"video_id": record.id, "status": record.status.value},
        )
        return record

    async def claim(
        self,
        record: VideoRecord,
        owner: str,
        lease_seconds: float,
    ) -> VideoRecord | None:
        """Take the video for one indexing run across all processes.

        The claim succeeds when the stored video is not processing, or when
        the run holding it let its lease lapse.

        Args:
            record: Current record of the video.
            owner: Token of the claiming run.
            lease_seconds: How long the claim lasts without renewal.

        Returns:
            The claimed record, or None when another run holds the video.
        """
        now = time.time()
        claimed = record.claim(owner, now + lease_seconds)
        document = self._to_document(claimed)
        matched = await self._doc_db.update_where(
            self._collection,
            {
                "id": record.id,
                "$or": [
                    {"status": {"$ne": VideoStatus.PROCESSING.value}},
                    {"lease_expires_at": None},
                    {"lease_expires_at": {"$lt": now}},
                ],
            },
            {key: document[key] for key in _CLAIM_FIELDS},
        )
        if not matched:
            return None
        self._logger.info(
            "Video claimed for indexing",
            extra={"video_id": record.id, "lease_seconds": lease_seconds},
        )
        return claimed

    async def renew(self, video_id: str, owner: str, lease_seconds: float) -> bool:
        """Extend a claim; False when the run no longer holds the video."""
        return await self._doc_db.update_where(
            self._collection,
            {
                "id": video_id,
                "status": VideoStatus.PROCESSING.value,
                "lease_owner": owner,
            },
            {"lease_expires_at": time.time() + lease_seconds},
        )

    async def finish(self, record: VideoRecord, owner: str) -> bool:
        """Store the outcome of a run, only while that run holds the video.

        Returns:
            False when another run took the video over; nothing is written.
        """
        finished = await self._doc_db.update_where(
            self._collection,
            {"id": record.id, "lease_owner": owner},
            self._to_document(record),
        )
        self._logger.debug(
            "Video record finished",
            extra={
                "video_id": record.id,
                "status": record.status.value,
                "stored": finished,
            },
        )
        return finished

    async def update_status(
        self,
        video_id: str,
        status: VideoStatus,
        error_message: str | None = None,
    ) -> VideoRecord:
        """Move a video to a new status.

        Args:
            video_id: ID of the video.
            status: Target status; FAILED records error_message.
            error_message: Failure description.

        Returns:
            The updated record.

        Raises:
            VideoNotFoundException: If there is no such video.
            ValueError: If the status change is not allowed.
        """
        record = await self.require(video_id)
        if status == VideoStatus.FAILED:
            updated = record.mark_failed(error_message or "Unknown error")
        else:
            updated = record.transition_to(status)
        return await self.save(updated)

    async def list(
        self,
        skip: int = 0,
        limit: int = 20,
        uploaded_by: str | None = None,
    ) -> list[VideoRecord]:
        """List videos, newest first.

        Args:
            skip: Records to skip.
            limit: Maximum records to return.
            uploaded_by: Only videos of this uploader.
        """
        filters: dict[str, Any] = {}
        if uploaded_by:
            filters["uploaded_by"] = uploaded_by
        documents = await self._doc_db.find(
            self._collection,
            filters,
            skip=skip,
            limit=limit,
            sort=[("created_at", -1)],
        )
        return [VideoRecord.model_validate(doc) for doc in documents]

    @staticmethod
    def _to_document(record: VideoRecord) -> dict[str, Any]:
        return record.model_dump(mode="json")
