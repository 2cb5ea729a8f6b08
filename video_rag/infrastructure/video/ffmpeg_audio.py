"""FFmpeg implementation of audio extraction."""

import asyncio
import subprocess
from pathlib import Path

from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import TranscriptionException
from video_rag.infrastructure.video.base import AudioExtractorBase

logger = get_logger(__name__)


class FFmpegAudioExtractor(AudioExtractorBase):
    """Extracts mono 16-bit PCM WAV audio for speech recognition.

    Requires ffmpeg to be installed and available in PATH.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        sample_rate: int = 16000,
        channels: int = 1,
    ) -> None:
        """Initialize FFmpeg audio extractor.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            sample_rate: Output sample rate in Hz.
            channels: Output channel count.
        """
        self._ffmpeg = ffmpeg_path
        self._sample_rate = sample_rate
        self._channels = channels

    async def extract_audio(self, video_path: Path, output_path: Path) -> Path:
        """Write the audio track as WAV and verify it is non-empty."""
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = [
            self._ffmpeg,
            "-i",
            str(video_path),
            "-vn",
            "-acodec",
            "pcm_s16le",
            "-ac",
            str(self._channels),
            "-ar",
            str(self._sample_rate),
            "-f",
            "wav",
            "-y",
            str(output_path),
        ]

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, check=True),
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace")[-500:] if e.stderr else ""
            raise TranscriptionException(f"Audio extraction failed: {stderr}") from e
        except FileNotFoundError as e:
            raise TranscriptionException(f"ffmpeg not found: {self._ffmpeg}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise TranscriptionException("Audio file was not created or is empty")

        logger.info(
            "Audio extracted",
            extra={
                "audio_path": str(output_path),
                "size_bytes": output_path.stat().st_size,
            },
        )
        return output_path
