"""FFmpeg implementation of frame extraction."""

import asyncio
import json
import shutil
import subprocess
from pathlib import Path

from PIL import Image

from video_rag.commons.telemetry import get_logger
from video_rag.domain.exceptions import FrameExtractionException
from video_rag.infrastructure.video.base import (
    ExtractedFrame,
    FrameExtractorBase,
    VideoInfo,
)

logger = get_logger(__name__)

FRAME_PATTERN = "frame_{:05d}.png"


def sample_timestamps(duration_seconds: float, interval_seconds: float) -> list[float]:
    """Timestamps 0, interval, 2*interval, ... strictly before the end.

    Always returns at least [0.0].
    """
    timestamps: list[float] = []
    t = 0.0
    index = 0
    while t < duration_seconds:
        timestamps.append(t)
        index += 1
        t = index * interval_seconds
    return timestamps or [0.0]


class FFmpegFrameExtractor(FrameExtractorBase):
    """FFmpeg-based frame extraction from video files.

    Requires ffmpeg and ffprobe to be installed and available in PATH.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        width: int = 640,
        height: int = 480,
    ) -> None:
        """Initialize FFmpeg frame extractor.

        Args:
            ffmpeg_path: Path to ffmpeg executable.
            ffprobe_path: Path to ffprobe executable.
            width: Output frame width.
            height: Output frame height.
        """
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._width = width
        self._height = height

    async def extract_frames(
        self,
        video_path: Path,
        output_dir: Path,
        interval_seconds: float = 5.0,
    ) -> list[ExtractedFrame]:
        """Sample frames at regular intervals as PNG files."""
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        try:
            info = await self.get_video_info(video_path)
        except (subprocess.CalledProcessError, FileNotFoundError, ValueError) as e:
            raise FrameExtractionException(
                str(video_path), f"Could not probe video: {e}"
            ) from e

        timestamps = sample_timestamps(info.duration_seconds, interval_seconds)
        logger.info(
            "Extracting frames",
            extra={
                "video_path": str(video_path),
                "duration_seconds": info.duration_seconds,
                "frame_count": len(timestamps),
            },
        )

        captured: list[tuple[int, float, Path]] = []
        for idx, timestamp in enumerate(timestamps):
            frame_path = output_dir / FRAME_PATTERN.format(idx + 1)
            if await self._capture(video_path, timestamp, frame_path):
                captured.append((idx + 1, timestamp, frame_path))

        if not captured:
            logger.warning(
                "No frames produced, retrying at t=0",
                extra={"video_path": str(video_path)},
            )
            frame_path = output_dir / FRAME_PATTERN.format(1)
            if await self._capture(video_path, 0.0, frame_path):
                captured.append((1, 0.0, frame_path))

        if not captured:
            raise FrameExtractionException(
                str(video_path), "Failed to extract any frames from video"
            )

        if len(captured) < len(timestamps):
            logger.warning(
                "Some frames could not be captured",
                extra={"requested": len(timestamps), "captured": len(captured)},
            )

        frames: list[ExtractedFrame] = []
        for frame_number, timestamp, frame_path in captured:
            with Image.open(frame_path) as img:
                width, height = img.size
            frames.append(
                ExtractedFrame(
                    path=frame_path,
                    frame_number=frame_number,
                    timestamp=timestamp,
                    width=width,
                    height=height,
                )
            )

        return frames

    async def get_video_info(self, video_path: Path) -> VideoInfo:
        """Get video information from ffprobe."""
        cmd = [
            self._ffprobe,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(video_path),
        ]

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            lambda: subprocess.run(cmd, capture_output=True, check=True),
        )

        data = json.loads(result.stdout)

        video_stream = None
        audio_stream = None
        for stream in data.get("streams", []):
            if stream.get("codec_type") == "video" and video_stream is None:
                video_stream = stream
            elif stream.get("codec_type") == "audio" and audio_stream is None:
                audio_stream = stream

        if not video_stream:
            raise ValueError(f"No video stream found in {video_path}")

        format_info = data.get("format", {})

        return VideoInfo(
            path=video_path,
            duration_seconds=float(format_info.get("duration", 0) or 0),
            width=int(video_stream.get("width", 0)),
            height=int(video_stream.get("height", 0)),
            has_audio=audio_stream is not None,
            file_size_bytes=int(format_info.get("size", 0) or 0),
        )

    async def _capture(
        self,
        video_path: Path,
        timestamp: float,
        output_path: Path,
    ) -> bool:
        """Grab one scaled frame; a failed grab leaves no file behind.

        Returns:
            True when a non-empty frame file was written.
        """
        cmd = [
            self._ffmpeg,
            "-ss",
            str(timestamp),
            "-i",
            str(video_path),
            "-frames:v",
            "1",
            "-vf",
            f"scale={self._width}:{self._height}",
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
            stderr = e.stderr.decode(errors="replace")[-300:] if e.stderr else ""
            logger.warning(
                "Frame capture failed",
                extra={"timestamp": timestamp, "stderr": stderr},
            )
            output_path.unlink(missing_ok=True)
            return False
        except FileNotFoundError as e:
            raise FrameExtractionException(
                str(video_path), f"ffmpeg not found: {self._ffmpeg}"
            ) from e

        return output_path.exists() and output_path.stat().st_size > 0
