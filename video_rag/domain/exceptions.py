"""Domain exceptions for the video indexing and retrieval system."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from video_rag.domain.models.video import VideoStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class InvalidInputException(DomainException):
    """Raised when caller input fails validation."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class VideoNotIndexedException(DomainException):
    """Raised when querying a video that has not finished indexing."""

    def __init__(self, video_id: str, status: VideoStatus) -> None:
        self.video_id = video_id
        self.status = status
        super().__init__(
            f"Video {video_id} is not indexed yet. Current status: {status.value}"
        )


class IndexingInProgressException(DomainException):
    """Raised when a video is already being indexed by another request."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video {video_id} is already being indexed")


class FrameExtractionException(DomainException):
    """Raised when no frames can be sampled from a video."""

    def __init__(self, video_path: str, reason: str) -> None:
        self.video_path = video_path
        self.reason = reason
        super().__init__(reason)


class TranscriptionException(DomainException):
    """Raised when audio extraction or speech-to-text fails."""

    def __init__(self, reason: str, job_id: str | None = None) -> None:
        self.reason = reason
        self.job_id = job_id
        super().__init__(reason)


class EmbeddingGenerationException(DomainException):
    """Raised when an embedding provider cannot produce a vector."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Embedding failed for {source}: {reason}")


class SchemaMismatchException(DomainException):
    """Stored collection dimension differs from the active provider's."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection {collection} stores {actual}-d vectors, "
            f"provider produces {expected}-d"
        )


class InsertionException(DomainException):
    """Raised when a single record cannot be written to the vector store."""

    def __init__(self, record_id: str, reason: str) -> None:
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Insert failed for {record_id}: {reason}")


class NoRelevantContentException(DomainException):
    """Raised when a search yields nothing usable for an answer."""

    DEFAULT_SUGGESTIONS = (
        "Try using different keywords",
        "Make your query more general",
        "Check if the video content matches your query topic",
    )

    def __init__(
        self,
        video_id: str,
        query: str,
        suggestions: list[str] | None = None,
    ) -> None:
        self.video_id = video_id
        self.query = query
        self.suggestions = (
            list(suggestions) if suggestions else list(self.DEFAULT_SUGGESTIONS)
        )
        super().__init__(f"No relevant content found for '{query}' in this video")


class GenerationException(DomainException):
    """Raised when the language model fails to produce an answer."""

    def __init__(self, model: str, reason: str) -> None:
        self.model = model
        self.reason = reason
        super().__init__(f"Answer generation failed ({model}): {reason}")


class IndexingException(DomainException):
    """Raised when the indexing pipeline fails for a video.

    reason is the full failure text kept on the record and in logs; it may
    quote provider errors. public_reason, when set, is a fixed message safe
    to show to API clients.
    """

    def __init__(
        self,
        video_id: str,
        stage: str,
        reason: str,
        public_reason: str | None = None,
    ) -> None:
        self.video_id = video_id
        self.stage = stage
        self.reason = reason
        self.public_reason = public_reason
        super().__init__(f"Indexing failed for {video_id} at {stage}: {reason}")
