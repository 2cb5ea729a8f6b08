"""Transcript segment and text chunk domain models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChunkStrategy(str, Enum):
    """How a chunk was cut from the transcript."""

    STANDARD = "standard"  # Fixed word window with overlap
    SENTENCE = "sentence"  # Whole sentences up to a word budget
    TIMESTAMP = "timestamp"  # Whole segments up to a word budget, timed


class TranscriptSegment(BaseModel):
    """A timed span of recognized speech."""

    model_config = ConfigDict(frozen=True)

    text: str
    start_time: float = Field(ge=0, description="Seconds from video start")
    end_time: float = Field(ge=0, description="Seconds from video start")

    @model_validator(mode="after")
    def validate_times(self) -> "TranscriptSegment":
        """Ensure end_time is not before start_time."""
        if self.end_time < self.start_time:
            msg = (
                f"end_time ({self.end_time}) must be >= "
                f"start_time ({self.start_time})"
            )
            raise ValueError(msg)
        return self


class TextChunk(BaseModel):
    """A piece of transcript text ready for embedding.

    Chunks of every strategy coexist for one video; they are never merged
    or deduplicated across strategies.
    """

    text: str
    strategy: ChunkStrategy
    sequence_index: int = Field(ge=0, description="Position within its strategy")
    start_time: float | None = None
    end_time: float | None = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())
