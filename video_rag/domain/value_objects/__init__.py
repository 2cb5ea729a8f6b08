"""Domain value objects."""

from video_rag.domain.value_objects.chunking_config import ChunkWindow

__all__ = [
    "ChunkWindow",
]
