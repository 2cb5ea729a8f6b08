"""Chunk window value object."""

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Overlap used when the requested one would leave no forward step
FALLBACK_OVERLAP_RATIO = 0.2


class ChunkWindow(BaseModel):
    """Size and overlap, in words, of a sliding chunk window.

    An overlap that is not smaller than the window is replaced by
    20% of the window size, so the window always advances.
    """

    model_config = ConfigDict(frozen=True)

    chunk_size: int = Field(ge=1, description="Words per window")
    overlap: int = Field(ge=0, description="Words shared with the previous window")

    @model_validator(mode="before")
    @classmethod
    def clamp_overlap(cls, data: object) -> object:
        """Replace an overlap that would stall the window."""
        if isinstance(data, dict):
            size = data.get("chunk_size")
            overlap = data.get("overlap")
            if isinstance(size, int) and isinstance(overlap, int) and overlap >= size:
                return {
                    **data,
                    "overlap": math.floor(size * FALLBACK_OVERLAP_RATIO),
                }
        return data

    @property
    def step(self) -> int:
        """Words between consecutive window starts."""
        return self.chunk_size - self.overlap

    def estimate_chunks(self, word_count: int) -> int:
        """Number of windows a text of word_count words produces."""
        if word_count <= 0:
            return 0
        if word_count <= self.chunk_size:
            return 1
        return math.ceil((word_count - self.chunk_size) / self.step) + 1
