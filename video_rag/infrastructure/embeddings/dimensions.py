"""Vector size lookup for text embedding models."""

from typing import Final

DEFAULT_DIMENSIONS: Final = 768

# Checked in order against the lower-cased model name
_SUBSTRING_DIMENSIONS: Final[tuple[tuple[str, int], ...]] = (
    ("text-embedding-004", 3072),
    ("embedding-001", 768),
)

_EXACT_DIMENSIONS: Final[dict[str, int]] = {
    "text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
}


def infer_text_embedding_dimensions(model: str | None) -> int:
    """Return the vector size a text embedding model produces.

    Args:
        model: Model name, possibly with a provider prefix such as
            "models/text-embedding-004".

    Returns:
        Dimension count; unknown models fall back to 768.
    """
    if not model:
        return DEFAULT_DIMENSIONS

    name = model.lower()
    for fragment, dims in _SUBSTRING_DIMENSIONS:
        if fragment in name:
            return dims

    return _EXACT_DIMENSIONS.get(name.rsplit("/", 1)[-1], DEFAULT_DIMENSIONS)
