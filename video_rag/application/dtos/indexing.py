"""DTOs for video indexing operations."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from video_rag.domain.models.video import VideoStatus


class IndexingStep(str, Enum):
    """Individual steps in the indexing pipeline."""

    PREPARING = "preparing"
    EXTRACTING_FRAMES = "extracting_frames"
    TRANSCRIBING = "transcribing"
    TEXT_EMBEDDING = "text_embedding"
    VISUAL_EMBEDDING = "visual_embedding"
    COMPLETED = "completed"


class IndexVideoRequest(BaseModel):
    """Request to index a video file already on the server's disk."""

    file_path: str = Field(min_length=1, description="Path of the video file")
    original_name: str | None = Field(
        default=None,
        description="Display name; the file name when omitted",
    )
    uploaded_by: str | None = Field(
        default=None,
        description="Identifier of the uploader",
    )


class InsertionSummary(BaseModel):
    """Outcome of writing one collection."""

    collection: str
    attempted: int
    inserted: int
    failed: int
    batch_fallbacks: int
    verified: bool


class IndexVideoResponse(BaseModel):
    """Response from indexing or re-indexing a video."""

    video_id: str = Field(description="ID of the indexed video")
    status: VideoStatus = Field(description="Status after the run")
    message: str = Field(description="Human-readable outcome")
    frames_extracted: int = Field(default=0, description="Frames sampled")
    duration_seconds: float = Field(default=0.0, description="Audio duration")
    language: str | None = Field(default=None, description="Detected language")
    text_chunks: dict[str, int] = Field(
        default_factory=dict,
        description="Chunks produced per strategy",
    )
    text_embeddings: int = Field(default=0, description="Text vectors stored")
    visual_embeddings: int = Field(default=0, description="Frame vectors stored")
    synthetic_visual_embeddings: int = Field(
        default=0,
        description="Frame vectors produced by the synthetic fallback",
    )
    skipped_text_chunks: int = Field(default=0, description="Chunks not embedded")
    skipped_frames: int = Field(default=0, description="Frames not embedded")
    insertions: list[InsertionSummary] = Field(default_factory=list)
    indexed_at: datetime | None = Field(default=None)


class KeyFrameDTO(BaseModel):
    """A sampled frame of the video."""

    timestamp: float
    timestamp_formatted: str
    frame_path: str


class VideoResponse(BaseModel):
    """Stored state of a video."""

    id: str
    original_name: str
    file_path: str
    size_bytes: int
    uploaded_by: str | None
    status: VideoStatus
    is_indexed: bool
    error_message: str | None
    duration_seconds: float
    duration_formatted: str
    language: str | None
    transcript_preview: str = Field(description="First 500 transcript characters")
    key_frames: list[KeyFrameDTO]
    text_embedding_count: int
    visual_embedding_count: int
    created_at: datetime
    updated_at: datetime
    indexed_at: datetime | None


class CollectionStatusDTO(BaseModel):
    """Status of one vector collection."""

    name: str
    exists: bool
    vector_size: int | None
    expected_vector_size: int
    points_count: int
    indexed_vectors_count: int
    status: str
    indexed_fields: list[str]


class ProbeResultDTO(BaseModel):
    """A hit of a diagnostic probe search."""

    record_id: str
    score: float
    video_id: str | None
    preview: str | None


class CollectionsStatusResponse(BaseModel):
    """Status of both collections with a sample probe."""

    text: CollectionStatusDTO
    visual: CollectionStatusDTO
    sample: list[ProbeResultDTO]


class VideoDebugResponse(BaseModel):
    """Diagnostic view of one video's stored vectors."""

    video: VideoResponse
    text_collection: CollectionStatusDTO
    text_vectors_for_video: int
    visual_vectors_for_video: int
    probe: list[ProbeResultDTO]
