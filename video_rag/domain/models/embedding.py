"""Embedding records stored in the vector collections."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from video_rag.domain.models.chunk import ChunkStrategy

MAX_TEXT_CHUNK_CHARS = 4999


class EmbeddingProvenance(str, Enum):
    """Where a visual vector came from."""

    MODEL = "model"  # Produced by the image embedding model
    SYNTHETIC = "synthetic"  # Deterministic stand-in, not semantically meaningful


def text_record_id(video_id: str, strategy: ChunkStrategy, chunk_index: int) -> str:
    """Build the record ID of a text embedding."""
    return f"{video_id}_{strategy.value}_{chunk_index}"


def visual_record_id(video_id: str, frame_number: int) -> str:
    """Build the record ID of a frame embedding."""
    return f"{video_id}_frame_{frame_number}"


class TextEmbeddingRecord(BaseModel):
    """A transcript chunk and its vector."""

    video_id: str
    text_chunk: str = Field(max_length=5000)
    chunk_index: int = Field(
        ge=0,
        description="Running counter over all embedded chunks of the video",
    )
    strategy: ChunkStrategy
    timestamp: float | None = None
    end_time: float | None = None
    embedding: list[float]

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, value: list[float]) -> list[float]:
        """Reject empty vectors."""
        if not value:
            raise ValueError("embedding must not be empty")
        return value

    @field_validator("text_chunk", mode="before")
    @classmethod
    def truncate_text(cls, value: str) -> str:
        """Clip text to what the store accepts."""
        if isinstance(value, str) and len(value) > MAX_TEXT_CHUNK_CHARS:
            return value[:MAX_TEXT_CHUNK_CHARS]
        return value

    @property
    def record_id(self) -> str:
        return text_record_id(self.video_id, self.strategy, self.chunk_index)

    def payload(self) -> dict[str, Any]:
        """Fields stored next to the vector."""
        return {
            "video_id": self.video_id,
            "text_chunk": self.text_chunk,
            "chunk_index": self.chunk_index,
            "strategy": self.strategy.value,
            "timestamp": self.timestamp,
            "end_time": self.end_time,
        }


class VisualEmbeddingRecord(BaseModel):
    """A sampled frame and its vector."""

    video_id: str
    frame_path: str
    timestamp: float = Field(ge=0)
    frame_number: int = Field(ge=1)
    provenance: EmbeddingProvenance
    embedding: list[float]

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, value: list[float]) -> list[float]:
        """Reject empty vectors."""
        if not value:
            raise ValueError("embedding must not be empty")
        return value

    @property
    def record_id(self) -> str:
        return visual_record_id(self.video_id, self.frame_number)

    def payload(self) -> dict[str, Any]:
        """Fields stored next to the vector."""
        return {
            "video_id": self.video_id,
            "frame_path": self.frame_path,
            "timestamp": self.timestamp,
            "frame_number": self.frame_number,
            "provenance": self.provenance.value,
        }
