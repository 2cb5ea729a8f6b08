"""Abstract base class for transcription services."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from video_rag.commons.concurrency import PollTimeoutError, poll_until
from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import TranscriptionException
from video_rag.domain.models.chunk import TranscriptSegment

logger = get_logger(__name__)


class TranscriptionJobStatus(str, Enum):
    """Provider-side state of an asynchronous transcription job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_final(self) -> bool:
        return self in (TranscriptionJobStatus.COMPLETED, TranscriptionJobStatus.ERROR)


@dataclass
class TranscriptionResult:
    """Complete transcription result."""

    segments: list[TranscriptSegment]
    full_text: str
    language: str
    duration_seconds: float


@dataclass
class TranscriptionJob:
    """Latest known state of a submitted job."""

    job_id: str
    status: TranscriptionJobStatus
    result: TranscriptionResult | None = None
    error: str | None = None


class TranscriptionServiceBase(ABC):
    """Abstract base class for job-based transcription services.

    Providers implement submit and poll; transcribe drives a job to
    completion with a bounded, cancellable wait.
    """

    def __init__(
        self,
        poll_interval_seconds: float = 3.0,
        max_poll_attempts: int = 100,
    ) -> None:
        self._poll_interval = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts

    @property
    def timeout_seconds(self) -> float:
        """Longest time transcribe waits for a job."""
        return self._poll_interval * self._max_poll_attempts

    @abstractmethod
    async def submit(self, audio_path: str) -> str:
        """Start transcribing an audio file.

        Args:
            audio_path: Path to the audio file.

        Returns:
            Provider job ID.

        Raises:
            TranscriptionException: If the upload or job creation fails.
        """

    @abstractmethod
    async def poll(self, job_id: str) -> TranscriptionJob:
        """Fetch the current state of a job.

        Args:
            job_id: ID returned by submit.

        Returns:
            Job state, with the result once completed.
        """

    async def transcribe(
        self,
        audio_path: str,
        cancel_event: asyncio.Event | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file and wait for the result.

        Args:
            audio_path: Path to the audio file.
            cancel_event: Optional event that abandons the wait when set.

        Returns:
            Complete transcription with timed segments.

        Raises:
            TranscriptionException: On provider error or timeout.
            asyncio.CancelledError: If cancelled while waiting.
        """
        job_id = await self.submit(audio_path)
        logger.info("Transcription job submitted", extra={"job_id": job_id})

        async def fetch() -> TranscriptionJob:
            job = await self.poll(job_id)
            logger.debug(
                "Transcription status",
                extra={"job_id": job_id, "status": job.status.value},
            )
            return job

        try:
            job = await poll_until(
                fetch,
                lambda j: j.status.is_final,
                interval=self._poll_interval,
                timeout=self.timeout_seconds,
                cancel_event=cancel_event,
            )
        except PollTimeoutError as e:
            raise TranscriptionException(
                f"Transcription timed out after {e.timeout:.0f}s", job_id=job_id
            ) from e

        if job.status == TranscriptionJobStatus.ERROR or job.result is None:
            raise TranscriptionException(
                job.error or "Provider reported an error", job_id=job_id
            )

        return job.result

    async def close(self) -> None:
        """Release client resources."""
        return None
