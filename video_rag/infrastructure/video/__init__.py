"""Video processing services."""

from video_rag.infrastructure.video.base import (
    AudioExtractorBase,
    ExtractedFrame,
    FrameExtractorBase,
    VideoInfo,
)
from video_rag.infrastructure.video.ffmpeg_audio import FFmpegAudioExtractor
from video_rag.infrastructure.video.ffmpeg_extractor import FFmpegFrameExtractor

__all__ = [
    # Base classes
    "FrameExtractorBase",
    "AudioExtractorBase",
    "VideoInfo",
    "ExtractedFrame",
    # Implementations
    "FFmpegFrameExtractor",
    "FFmpegAudioExtractor",
]
