"""Transcript chunking: fixed windows, sentences and timed segments.

All functions here are pure; they never touch the network or disk.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from video_rag.commons.settings.models import ChunkingSettings
from video_rag.domain.models.chunk import ChunkStrategy, TextChunk, TranscriptSegment
from video_rag.domain.value_objects import ChunkWindow

# Texts at or below this many words are never split
MIN_WORDS_TO_SPLIT = 50
# Windows whose joined text is this short or shorter are dropped
MIN_CHUNK_CHARS = 10

DEFAULT_SENTENCE_MAX_WORDS = 300
DEFAULT_TIMESTAMP_MAX_WORDS = 400

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

# (max word count, chunk size, overlap), first match wins
_WINDOW_TIERS: tuple[tuple[int, int, int], ...] = (
    (300, 150, 30),
    (1000, 300, 60),
    (3000, 500, 100),
    (10000, 800, 160),
)
_LARGEST_WINDOW = (1000, 200)


@dataclass
class TimedChunk:
    """Text of consecutive segments with the span they cover."""

    text: str
    start_time: float | None
    end_time: float | None

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def select_window(word_count: int) -> ChunkWindow:
    """Pick window size and overlap for a text of word_count words."""
    for max_words, size, overlap in _WINDOW_TIERS:
        if word_count <= max_words:
            return ChunkWindow(chunk_size=size, overlap=overlap)
    size, overlap = _LARGEST_WINDOW
    return ChunkWindow(chunk_size=size, overlap=overlap)


def chunk_fixed_window(
    text: Any,
    chunk_size: int | None = None,
    overlap: int | None = None,
) -> list[str]:
    """Split text into overlapping windows of words.

    Args:
        text: Text to split. Anything that is not a non-blank string
            yields no chunks.
        chunk_size: Words per window. The size tiers are used unless both
            chunk_size and overlap are given.
        overlap: Words shared by consecutive windows.

    Returns:
        Window texts in order. Short texts come back as one chunk.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    words = text.split()
    normalized = " ".join(words)
    if len(words) <= MIN_WORDS_TO_SPLIT:
        return [normalized]

    if chunk_size is not None and overlap is not None:
        window = ChunkWindow(chunk_size=chunk_size, overlap=overlap)
    else:
        window = select_window(len(words))

    chunks: list[str] = []
    start = 0
    while start < len(words):
        chunk = " ".join(words[start : start + window.chunk_size])
        if len(chunk.strip()) > MIN_CHUNK_CHARS:
            chunks.append(chunk)
        if start + window.chunk_size >= len(words):
            break
        start += window.step

    return chunks or [normalized]


def split_sentences(text: str) -> list[str]:
    """Split on runs of sentence punctuation, dropping empty pieces."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def chunk_by_sentence(
    text: Any,
    max_words: int = DEFAULT_SENTENCE_MAX_WORDS,
) -> list[str]:
    """Group whole sentences into chunks of at most max_words words.

    A single sentence longer than max_words becomes a chunk on its own.

    Args:
        text: Text to split.
        max_words: Word budget per chunk.

    Returns:
        Chunks whose sentences are joined with ". ".
    """
    if not isinstance(text, str) or not text.strip():
        return []

    chunks: list[str] = []
    current: list[str] = []
    current_words = 0

    for sentence in split_sentences(text):
        words = len(sentence.split())
        if current and current_words + words > max_words:
            chunks.append(". ".join(current))
            current = []
            current_words = 0
        current.append(sentence)
        current_words += words

    if current:
        chunks.append(". ".join(current))

    return chunks or [text.strip()]


def _segment_field(segment: Any, *names: str) -> Any:
    for name in names:
        if isinstance(segment, Mapping):
            if segment.get(name) is not None:
                return segment[name]
        elif getattr(segment, name, None) is not None:
            return getattr(segment, name)
    return None


def chunk_by_timestamps(
    segments: Iterable[TranscriptSegment | Mapping[str, Any]] | None,
    max_words: int = DEFAULT_TIMESTAMP_MAX_WORDS,
) -> list[TimedChunk]:
    """Group consecutive transcript segments into timed chunks.

    Segments may be TranscriptSegment models or mappings using either
    start_time/end_time or start/end keys. Segments without usable text
    are skipped.

    Args:
        segments: Time-ordered segments.
        max_words: Word budget per chunk.

    Returns:
        Chunks spanning from their first segment's start to their last
        segment's end.
    """
    chunks: list[TimedChunk] = []
    texts: list[str] = []
    current_words = 0
    start_time: float | None = None
    end_time: float | None = None

    for segment in segments or []:
        text = _segment_field(segment, "text")
        if not isinstance(text, str) or not text.strip():
            continue

        text = text.strip()
        words = len(text.split())
        if texts and current_words + words > max_words:
            chunks.append(TimedChunk(" ".join(texts), start_time, end_time))
            texts = []
            current_words = 0

        seg_start = _segment_field(segment, "start_time", "start")
        seg_end = _segment_field(segment, "end_time", "end")
        if not texts:
            start_time = float(seg_start) if seg_start is not None else None
        end_time = float(seg_end) if seg_end is not None else None

        texts.append(text)
        current_words += words

    if texts:
        chunks.append(TimedChunk(" ".join(texts), start_time, end_time))

    return chunks


def build_chunk_sets(
    full_text: str,
    segments: list[TranscriptSegment],
    config: ChunkingSettings | None = None,
) -> list[TextChunk]:
    """Cut a transcript with every strategy.

    Args:
        full_text: Whole transcript.
        segments: Timed segments; the timestamp strategy is skipped when empty.
        config: Window and word budget settings.

    Returns:
        Standard, then sentence, then timestamp chunks. sequence_index
        restarts at 0 for each strategy.
    """
    config = config or ChunkingSettings()
    chunks: list[TextChunk] = []

    standard = chunk_fixed_window(
        full_text, config.fixed_chunk_size, config.fixed_overlap
    )
    chunks.extend(
        TextChunk(text=text, strategy=ChunkStrategy.STANDARD, sequence_index=i)
        for i, text in enumerate(standard)
    )

    sentences = chunk_by_sentence(full_text, config.sentence_max_words)
    chunks.extend(
        TextChunk(text=text, strategy=ChunkStrategy.SENTENCE, sequence_index=i)
        for i, text in enumerate(sentences)
    )

    if segments:
        timed = chunk_by_timestamps(segments, config.timestamp_max_words)
        chunks.extend(
            TextChunk(
                text=chunk.text,
                strategy=ChunkStrategy.TIMESTAMP,
                sequence_index=i,
                start_time=chunk.start_time,
                end_time=chunk.end_time,
            )
            for i, chunk in enumerate(timed)
        )

    return chunks
