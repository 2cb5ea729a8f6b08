"""Unit tests for the FFmpeg frame and audio extractors."""

import json
import subprocess
from unittest.mock import patch

import pytest
from PIL import Image

from video_rag.domain.exceptions import (
    FrameExtractionException,
    TranscriptionException,
)
from video_rag.infrastructure.video.ffmpeg_audio import FFmpegAudioExtractor
from video_rag.infrastructure.video.ffmpeg_extractor import (
    FFmpegFrameExtractor,
    sample_timestamps,
)


class FakeFFmpeg:
    """Stands in for subprocess.run, answering ffprobe and ffmpeg commands.

    Frame grabs listed in failing_timestamps exit non-zero; the first
    failing_calls grabs fail regardless of timestamp.
    """

    def __init__(self, duration=12.0, failing_timestamps=(), failing_calls=0):
        self.duration = duration
        self.failing_timestamps = set(failing_timestamps)
        self.failing_calls = failing_calls
        self.grabs: list[float] = []

    def __call__(self, cmd, capture_output=True, check=True):
        if cmd[0] == "ffprobe":
            payload = {
                "streams": [
                    {"codec_type": "video", "width": 1280, "height": 720},
                    {"codec_type": "audio"},
                ],
                "format": {"duration": str(self.duration), "size": "4096"},
            }
            return subprocess.CompletedProcess(cmd, 0, json.dumps(payload), b"")

        timestamp = float(cmd[cmd.index("-ss") + 1])
        self.grabs.append(timestamp)
        if (
            len(self.grabs) <= self.failing_calls
            or timestamp in self.failing_timestamps
        ):
            raise subprocess.CalledProcessError(
                1, cmd, stderr=b"Invalid data found when processing input"
            )
        Image.new("RGB", (640, 480)).save(cmd[-1])
        return subprocess.CompletedProcess(cmd, 0, b"", b"")


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "lecture.mp4"
    path.write_bytes(b"\x00" * 64)
    return path


@pytest.fixture
def extractor():
    return FFmpegFrameExtractor()


def _patch_run(fake):
    return patch(
        "video_rag.infrastructure.video.ffmpeg_extractor.subprocess.run", fake
    )


class TestSampleTimestamps:
    """Tests for frame sampling times."""

    @pytest.mark.parametrize(
        ("duration", "interval", "expected"),
        [
            (12.0, 5.0, [0.0, 5.0, 10.0]),
            (10.0, 5.0, [0.0, 5.0]),
            (0.0, 5.0, [0.0]),
            (1.5, 0.5, [0.0, 0.5, 1.0]),
        ],
    )
    def test_sample_timestamps(self, duration, interval, expected):
        assert sample_timestamps(duration, interval) == expected


class TestFFmpegFrameExtractor:
    """Tests for FFmpegFrameExtractor."""

    async def test_frames_sampled_at_interval(self, extractor, video_file, tmp_path):
        fake = FakeFFmpeg(duration=12.0)

        with _patch_run(fake):
            frames = await extractor.extract_frames(
                video_file, tmp_path / "frames", interval_seconds=5.0
            )

        assert [f.timestamp for f in frames] == [0.0, 5.0, 10.0]
        assert [f.frame_number for f in frames] == [1, 2, 3]
        assert frames[0].path.name == "frame_00001.png"
        assert (frames[0].width, frames[0].height) == (640, 480)

    async def test_failed_capture_keeps_later_timestamps(
        self, extractor, video_file, tmp_path
    ):
        """Test frames after a failed grab keep the time they were taken at."""
        fake = FakeFFmpeg(duration=12.0, failing_timestamps={5.0})

        with _patch_run(fake):
            frames = await extractor.extract_frames(
                video_file, tmp_path / "frames", interval_seconds=5.0
            )

        assert [f.timestamp for f in frames] == [0.0, 10.0]
        assert [f.frame_number for f in frames] == [1, 3]
        assert frames[1].path.name == "frame_00003.png"
        assert not (tmp_path / "frames" / "frame_00002.png").exists()

    async def test_retry_at_start_when_no_frame_captured(
        self, extractor, video_file, tmp_path
    ):
        fake = FakeFFmpeg(duration=12.0, failing_calls=3)

        with _patch_run(fake):
            frames = await extractor.extract_frames(
                video_file, tmp_path / "frames", interval_seconds=5.0
            )

        assert fake.grabs == [0.0, 5.0, 10.0, 0.0]
        assert len(frames) == 1
        assert frames[0].timestamp == 0.0
        assert frames[0].frame_number == 1

    async def test_no_frames_at_all_fails(self, extractor, video_file, tmp_path):
        fake = FakeFFmpeg(duration=12.0, failing_calls=10)

        with _patch_run(fake), pytest.raises(FrameExtractionException) as exc_info:
            await extractor.extract_frames(
                video_file, tmp_path / "frames", interval_seconds=5.0
            )

        assert exc_info.value.reason == "Failed to extract any frames from video"
        assert fake.grabs == [0.0, 5.0, 10.0, 0.0]

    async def test_output_dir_emptied_first(self, extractor, video_file, tmp_path):
        output_dir = tmp_path / "frames"
        output_dir.mkdir()
        (output_dir / "frame_00009.png").write_bytes(b"stale")

        with _patch_run(FakeFFmpeg(duration=4.0)):
            frames = await extractor.extract_frames(video_file, output_dir)

        assert len(frames) == 1
        assert not (output_dir / "frame_00009.png").exists()

    async def test_probe_failure(self, extractor, video_file, tmp_path):
        def failing_probe(cmd, capture_output=True, check=True):
            raise subprocess.CalledProcessError(1, cmd, stderr=b"moov atom not found")

        with (
            _patch_run(failing_probe),
            pytest.raises(FrameExtractionException, match="Could not probe video"),
        ):
            await extractor.extract_frames(video_file, tmp_path / "frames")

    async def test_missing_ffmpeg_binary(self, video_file, tmp_path):
        extractor = FFmpegFrameExtractor(ffmpeg_path="/opt/missing/ffmpeg")
        fake = FakeFFmpeg(duration=4.0)

        def run(cmd, capture_output=True, check=True):
            if cmd[0] == "ffprobe":
                return fake(cmd)
            raise FileNotFoundError(cmd[0])

        with (
            _patch_run(run),
            pytest.raises(FrameExtractionException, match="ffmpeg not found"),
        ):
            await extractor.extract_frames(video_file, tmp_path / "frames")

    async def test_video_info(self, extractor, video_file):
        with _patch_run(FakeFFmpeg(duration=75.5)):
            info = await extractor.get_video_info(video_file)

        assert info.duration_seconds == 75.5
        assert (info.width, info.height) == (1280, 720)
        assert info.has_audio is True
        assert info.file_size_bytes == 4096


class TestFFmpegAudioExtractor:
    """Tests for FFmpegAudioExtractor."""

    @staticmethod
    def _patch_audio_run(run):
        return patch("video_rag.infrastructure.video.ffmpeg_audio.subprocess.run", run)

    async def test_wav_written(self, video_file, tmp_path):
        calls = []

        def run(cmd, capture_output=True, check=True):
            calls.append(cmd)
            with open(cmd[-1], "wb") as f:
                f.write(b"RIFF" + b"\x00" * 40)
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        output = tmp_path / "audio" / "lecture_audio.wav"
        with self._patch_audio_run(run):
            path = await FFmpegAudioExtractor().extract_audio(video_file, output)

        assert path == output
        cmd = calls[0]
        assert cmd[cmd.index("-ar") + 1] == "16000"
        assert cmd[cmd.index("-ac") + 1] == "1"
        assert "-vn" in cmd

    async def test_no_output_file_fails(self, video_file, tmp_path):
        """Test an ffmpeg run that writes nothing is not treated as audio."""

        def run(cmd, capture_output=True, check=True):
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        with (
            self._patch_audio_run(run),
            pytest.raises(TranscriptionException) as exc_info,
        ):
            await FFmpegAudioExtractor().extract_audio(
                video_file, tmp_path / "audio" / "silent.wav"
            )

        assert exc_info.value.reason == "Audio file was not created or is empty"

    async def test_empty_output_file_fails(self, video_file, tmp_path):
        def run(cmd, capture_output=True, check=True):
            open(cmd[-1], "wb").close()
            return subprocess.CompletedProcess(cmd, 0, b"", b"")

        with (
            self._patch_audio_run(run),
            pytest.raises(TranscriptionException, match="not created or is empty"),
        ):
            await FFmpegAudioExtractor().extract_audio(
                video_file, tmp_path / "audio" / "empty.wav"
            )

    async def test_ffmpeg_error_carries_stderr(self, video_file, tmp_path):
        def run(cmd, capture_output=True, check=True):
            raise subprocess.CalledProcessError(
                1, cmd, stderr=b"Output file #0 does not contain any stream"
            )

        with (
            self._patch_audio_run(run),
            pytest.raises(TranscriptionException) as exc_info,
        ):
            await FFmpegAudioExtractor().extract_audio(
                video_file, tmp_path / "audio" / "none.wav"
            )

        assert "does not contain any stream" in exc_info.value.reason
