"""Video record domain model."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field


class VideoStatus(str, Enum):
    """Lifecycle status of a video in the system."""

    PENDING = "pending"  # Registered, indexing not started
    PROCESSING = "processing"  # Indexing pipeline running
    COMPLETED = "completed"  # Indexed and queryable
    FAILED = "failed"  # Indexing failed, see error_message


# Allowed moves of the indexing state machine
_TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    VideoStatus.PENDING: frozenset({VideoStatus.PROCESSING, VideoStatus.FAILED}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.COMPLETED, VideoStatus.FAILED}),
    VideoStatus.COMPLETED: frozenset({VideoStatus.PROCESSING}),
    VideoStatus.FAILED: frozenset({VideoStatus.PROCESSING}),
}


def format_timestamp(seconds: float) -> str:
    """Format seconds as m:ss (or h:mm:ss past the hour)."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:d}:{secs:02d}"


class KeyFrame(BaseModel):
    """A sampled still frame persisted with the video record."""

    timestamp: float = Field(ge=0, description="Seconds from video start")
    frame_path: str = Field(description="Path of the PNG on local disk")


class VideoRecord(BaseModel):
    """Core entity representing an uploaded video and its indexing state.

    This is the aggregate root for indexing operations. Text and visual
    vectors reference it through video_id.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this video record",
    )
    original_name: str = Field(description="File name as uploaded")
    file_path: str = Field(description="Location of the video file on disk")
    size_bytes: int = Field(default=0, ge=0)
    uploaded_by: str | None = None
    duration_seconds: float = Field(default=0.0, ge=0)
    transcript: str = Field(default="", description="Full transcript text")
    language: str | None = Field(
        default=None,
        description="Detected primary language (ISO 639-1)",
    )
    key_frames: list[KeyFrame] = Field(default_factory=list)
    is_indexed: bool = False
    status: VideoStatus = Field(
        default=VideoStatus.PENDING,
        description="Current processing status",
    )
    error_message: str | None = Field(
        default=None,
        description="Error details if status is FAILED",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    indexed_at: datetime | None = None
    text_embedding_count: int = Field(default=0, ge=0)
    visual_embedding_count: int = Field(default=0, ge=0)
    lease_owner: str | None = Field(
        default=None,
        description="Token of the indexing run that holds the video",
    )
    lease_expires_at: float | None = Field(
        default=None,
        description="Epoch seconds after which the processing claim lapses",
    )

    @property
    def is_queryable(self) -> bool:
        """Check if video can be searched."""
        return self.status == VideoStatus.COMPLETED and self.is_indexed

    @property
    def is_processing(self) -> bool:
        """Check if video is currently being processed."""
        return self.status == VideoStatus.PROCESSING

    @property
    def duration_formatted(self) -> str:
        """Get duration as m:ss or h:mm:ss string."""
        return format_timestamp(self.duration_seconds)

    def can_transition_to(self, new_status: VideoStatus) -> bool:
        """Check whether the state machine allows a move."""
        return new_status in _TRANSITIONS[self.status]

    def transition_to(self, new_status: VideoStatus) -> Self:
        """Create a new instance with updated status.

        Args:
            new_status: The new status to transition to.

        Returns:
            A new VideoRecord instance with updated status and timestamp.

        Raises:
            ValueError: If the move is not allowed from the current status.
        """
        if not self.can_transition_to(new_status):
            msg = (
                f"Cannot move video {self.id} from {self.status.value} "
                f"to {new_status.value}"
            )
            raise ValueError(msg)

        update: dict[str, Any] = {
            "status": new_status,
            "updated_at": datetime.now(UTC),
        }
        if new_status == VideoStatus.PROCESSING:
            update["is_indexed"] = False
        return self.model_copy(update=update)

    def claim(self, owner: str, lease_expires_at: float) -> Self:
        """Create a new instance held in PROCESSING by one indexing run.

        Unlike transition_to, a PROCESSING record may be claimed again; the
        store only lets that happen once the previous lease has lapsed.

        Args:
            owner: Token of the claiming run.
            lease_expires_at: Epoch seconds when the claim lapses.
        """
        return self.model_copy(
            update={
                "status": VideoStatus.PROCESSING,
                "is_indexed": False,
                "updated_at": datetime.now(UTC),
                "lease_owner": owner,
                "lease_expires_at": lease_expires_at,
            }
        )

    def mark_failed(self, error_message: str) -> Self:
        """Create a new instance marked as failed with error message.

        Args:
            error_message: Description of what went wrong.

        Returns:
            A new VideoRecord instance with FAILED status.
        """
        return self.model_copy(
            update={
                "status": VideoStatus.FAILED,
                "updated_at": datetime.now(UTC),
                "error_message": error_message,
                "is_indexed": False,
                "lease_owner": None,
                "lease_expires_at": None,
            }
        )

    def mark_completed(
        self,
        *,
        duration_seconds: float,
        transcript: str,
        language: str | None,
        key_frames: list[KeyFrame],
        text_embedding_count: int,
        visual_embedding_count: int,
    ) -> Self:
        """Create a new instance holding the indexing outcome.

        Returns:
            A new VideoRecord instance with COMPLETED status and no error.
        """
        if not self.can_transition_to(VideoStatus.COMPLETED):
            msg = f"Cannot complete video {self.id} from {self.status.value}"
            raise ValueError(msg)

        now = datetime.now(UTC)
        return self.model_copy(
            update={
                "status": VideoStatus.COMPLETED,
                "duration_seconds": duration_seconds,
                "transcript": transcript,
                "language": language,
                "key_frames": key_frames,
                "text_embedding_count": text_embedding_count,
                "visual_embedding_count": visual_embedding_count,
                "is_indexed": True,
                "error_message": None,
                "indexed_at": now,
                "updated_at": now,
                "lease_owner": None,
                "lease_expires_at": None,
            }
        )
