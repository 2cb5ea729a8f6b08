"""DTOs for video query operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class QueryVideoRequest(BaseModel):
    """Request to ask a question about a video."""

    query: str = Field(description="Natural language question about the video")
    limit: int = Field(
        default=10,
        ge=1,
        description="Chunks to retrieve; capped by the server",
    )


class VideoSummaryDTO(BaseModel):
    """The queried video."""

    id: str
    title: str
    duration_seconds: float
    duration_formatted: str
    size_bytes: int
    indexed_at: datetime | None


class ChunkDTO(BaseModel):
    """A retrieved transcript chunk used as context."""

    text: str = Field(description="Chunk text, truncated for display")
    timestamp: float | None = Field(description="Start of the chunk in seconds")
    timestamp_formatted: str | None = Field(description="Start as m:ss")
    score: float = Field(description="Similarity rounded to 2 decimals")
    chunk_index: int | None = None
    strategy: str | None = None


class SearchMetadata(BaseModel):
    """How the answer was produced."""

    processed_at: datetime
    search_type: str = "semantic_similarity"
    collection: str
    embedding_model: str
    generative_model: str
    results_count: int


class QueryVideoResponse(BaseModel):
    """Grounded answer to a question about a video."""

    query: str
    video: VideoSummaryDTO
    answer: str
    insufficient_context: bool = Field(
        description="Whether the model said the transcript lacks the answer",
    )
    chunks: list[ChunkDTO]
    search_metadata: SearchMetadata
