"""Deterministic stand-in vectors for frames the image model cannot embed.

These vectors carry no visual meaning. They only keep a frame addressable
in the visual collection, and every one is tagged with synthetic
provenance so search results can tell them apart.
"""

import math
import os

from video_rag.domain.exceptions import EmbeddingGenerationException
from video_rag.domain.models.embedding import EmbeddingProvenance
from video_rag.infrastructure.embeddings.base import EmbeddingModality, EmbeddingResult

SYNTHETIC_MODEL_NAME = "synthetic-frame-hash"


def path_hash(path: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + c) of a path string."""
    h = 0
    for char in path:
        h = ((h << 5) - h + ord(char)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def synthetic_vector(size: int, hash_value: int, dimensions: int = 512) -> list[float]:
    """Build the banded vector from a file size and a path hash."""
    quarter, half, three_quarters = dimensions / 4, dimensions / 2, dimensions * 3 / 4
    vector: list[float] = []
    for i in range(dimensions):
        if i < quarter:
            vector.append(math.sin((size + i) * 0.01) * 0.5)
        elif i < half:
            vector.append(math.cos((hash_value + i) * 0.01) * 0.5)
        elif i < three_quarters:
            vector.append(math.sin(i * 0.1) * 0.3)
        else:
            vector.append(math.cos((size + hash_value + i) * 0.01) * 0.4)
    return vector


def synthetic_image_embedding(path: str, dimensions: int = 512) -> EmbeddingResult:
    """Derive a deterministic vector from an image file's size and path.

    Args:
        path: Image file path; hashed as given.
        dimensions: Vector length.

    Returns:
        Embedding tagged with synthetic provenance.

    Raises:
        EmbeddingGenerationException: If the file cannot be stat'ed.
    """
    try:
        size = os.stat(path).st_size
    except OSError as e:
        raise EmbeddingGenerationException(path, f"Cannot stat image: {e}") from e

    vector = synthetic_vector(size, path_hash(path), dimensions)
    return EmbeddingResult(
        vector=vector,
        dimensions=dimensions,
        model=SYNTHETIC_MODEL_NAME,
        modality=EmbeddingModality.IMAGE,
        provenance=EmbeddingProvenance.SYNTHETIC,
    )
