"""AssemblyAI implementation of transcription service."""

import asyncio
from pathlib import Path
from typing import Any

import httpx

from video_rag.domain.exceptions import TranscriptionException
from video_rag.domain.models.chunk import TranscriptSegment
from video_rag.infrastructure.transcription.base import (
    TranscriptionJob,
    TranscriptionJobStatus,
    TranscriptionResult,
    TranscriptionServiceBase,
)

WORDS_PER_SEGMENT = 10


def build_segments(words: list[dict[str, Any]]) -> list[TranscriptSegment]:
    """Group word timings into segments of consecutive words.

    Args:
        words: AssemblyAI word objects with text and start/end in ms.

    Returns:
        Segments of up to WORDS_PER_SEGMENT words, times in seconds.
    """
    segments: list[TranscriptSegment] = []
    for i in range(0, len(words), WORDS_PER_SEGMENT):
        group = words[i : i + WORDS_PER_SEGMENT]
        start = float(group[0].get("start", 0)) / 1000
        end = float(group[-1].get("end", 0)) / 1000
        segments.append(
            TranscriptSegment(
                text=" ".join(str(w.get("text", "")) for w in group),
                start_time=start,
                end_time=max(start, end),
            )
        )
    return segments


class AssemblyAITranscriptionService(TranscriptionServiceBase):
    """AssemblyAI v2 REST implementation of transcription service.

    Uploads the audio, creates a transcript job and polls it until it
    completes or errors.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.assemblyai.com",
        speech_model: str = "universal",
        language: str | None = None,
        poll_interval_seconds: float = 3.0,
        max_poll_attempts: int = 100,
        request_timeout_seconds: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize AssemblyAI client.

        Args:
            api_key: AssemblyAI API key.
            base_url: API root.
            speech_model: Speech model requested for each job.
            language: Optional language code; auto-detected when None.
            poll_interval_seconds: Seconds between status polls.
            max_poll_attempts: Polls before giving up.
            request_timeout_seconds: Timeout of each HTTP request.
            client: Pre-built HTTP client, mainly for tests.
        """
        super().__init__(poll_interval_seconds, max_poll_attempts)
        self._speech_model = speech_model
        self._language = language
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"authorization": api_key},
            timeout=httpx.Timeout(request_timeout_seconds),
        )

    async def submit(self, audio_path: str) -> str:
        """Upload the audio and create a transcript job."""
        try:
            audio = await asyncio.to_thread(Path(audio_path).read_bytes)
        except OSError as e:
            raise TranscriptionException(f"Cannot read audio file: {e}") from e

        try:
            upload = await self._client.post("/v2/upload", content=audio)
            upload.raise_for_status()
            audio_url = upload.json()["upload_url"]

            body: dict[str, Any] = {
                "audio_url": audio_url,
                "speech_model": self._speech_model,
                "punctuate": True,
                "format_text": True,
            }
            if self._language:
                body["language_code"] = self._language

            created = await self._client.post("/v2/transcript", json=body)
            created.raise_for_status()
            return str(created.json()["id"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise TranscriptionException(f"Could not start transcription: {e}") from e

    async def poll(self, job_id: str) -> TranscriptionJob:
        """Fetch the transcript job state."""
        try:
            response = await self._client.get(f"/v2/transcript/{job_id}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TranscriptionException(
                f"Could not poll transcription: {e}", job_id=job_id
            ) from e

        try:
            status = TranscriptionJobStatus(data.get("status"))
        except ValueError as e:
            raise TranscriptionException(
                f"Unknown transcription status: {data.get('status')}", job_id=job_id
            ) from e

        if status == TranscriptionJobStatus.ERROR:
            return TranscriptionJob(job_id, status, error=data.get("error"))
        if status != TranscriptionJobStatus.COMPLETED:
            return TranscriptionJob(job_id, status)

        return TranscriptionJob(job_id, status, result=self._to_result(data))

    def _to_result(self, data: dict[str, Any]) -> TranscriptionResult:
        return TranscriptionResult(
            segments=build_segments(data.get("words") or []),
            full_text=data.get("text") or "",
            language=data.get("language_code") or "en",
            duration_seconds=float(data.get("audio_duration") or 0),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
