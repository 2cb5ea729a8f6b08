"""Transcription services."""

from video_rag.infrastructure.transcription.assemblyai import (
    AssemblyAITranscriptionService,
)
from video_rag.infrastructure.transcription.base import (
    TranscriptionJob,
    TranscriptionJobStatus,
    TranscriptionResult,
    TranscriptionServiceBase,
)

__all__ = [
    # Base classes
    "TranscriptionServiceBase",
    "TranscriptionResult",
    "TranscriptionJob",
    "TranscriptionJobStatus",
    # Implementations
    "AssemblyAITranscriptionService",
]
