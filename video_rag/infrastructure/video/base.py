"""Abstract base classes for video processing services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class VideoInfo:
    """Information about a video file."""

    path: Path
    duration_seconds: float
    width: int
    height: int
    has_audio: bool
    file_size_bytes: int


@dataclass
class ExtractedFrame:
    """A frame extracted from video."""

    path: Path
    frame_number: int
    timestamp: float
    width: int
    height: int


class FrameExtractorBase(ABC):
    """Abstract base class for video frame extraction."""

    @abstractmethod
    async def extract_frames(
        self,
        video_path: Path,
        output_dir: Path,
        interval_seconds: float = 5.0,
    ) -> list[ExtractedFrame]:
        """Sample one frame every interval_seconds.

        Args:
            video_path: Path to input video.
            output_dir: Directory to save frames; emptied first.
            interval_seconds: Time between frames.

        Returns:
            Frames in time order, each with the timestamp it was sampled at.
            frame_number is the 1-based sample position, so a sample that
            could not be captured leaves a gap.

        Raises:
            FrameExtractionException: If no frame could be produced.
        """

    @abstractmethod
    async def get_video_info(self, video_path: Path) -> VideoInfo:
        """Get video information.

        Args:
            video_path: Path to video file.

        Returns:
            Video metadata.
        """


class AudioExtractorBase(ABC):
    """Abstract base class for audio track extraction."""

    @abstractmethod
    async def extract_audio(self, video_path: Path, output_path: Path) -> Path:
        """Write the video's audio track as speech-ready WAV.

        Args:
            video_path: Path to input video.
            output_path: Where to save audio.

        Returns:
            Path to the extracted audio.

        Raises:
            TranscriptionException: If no usable audio was written.
        """
