"""Video indexing orchestration service."""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from video_rag.application.dtos.indexing import IndexingStep
from video_rag.application.services.batch_insert import (
    BatchInserter,
    InsertionReport,
)
from video_rag.application.services.chunking import build_chunk_sets
from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.video_repository import VideoRepository
from video_rag.commons.concurrency import KeyedLock, LockBusyError, RateLimiter
from video_rag.commons.infrastructure.vectordb import VectorDBBase
from video_rag.commons.settings.models import Settings
from video_rag.commons.telemetry import LogContext, get_logger
from video_rag.domain.exceptions import (
    EmbeddingGenerationException,
    FrameExtractionException,
    IndexingException,
    IndexingInProgressException,
    InvalidInputException,
    TranscriptionException,
)
from video_rag.domain.models.chunk import ChunkStrategy
from video_rag.domain.models.embedding import (
    EmbeddingProvenance,
    TextEmbeddingRecord,
    VisualEmbeddingRecord,
)
from video_rag.domain.models.video import KeyFrame, VideoRecord, VideoStatus
from video_rag.infrastructure.embeddings.base import (
    ImageEmbeddingServiceBase,
    TextEmbeddingServiceBase,
)
from video_rag.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionServiceBase,
)
from video_rag.infrastructure.video.base import (
    AudioExtractorBase,
    ExtractedFrame,
    FrameExtractorBase,
)

FILE_MISSING_MESSAGE = "Video file not found on disk"
NO_TEXT_MESSAGE = "No text content available for embedding generation"


@dataclass
class TranscriptArtifacts:
    """Files written next to the extracted audio."""

    audio_path: Path
    transcription_json: Path | None = None
    transcript_txt: Path | None = None
    segments_json: Path | None = None


@dataclass
class IndexingResult:
    """Outcome of a completed indexing run."""

    video: VideoRecord
    frames_extracted: int
    duration_seconds: float
    language: str | None
    text_chunks: dict[str, int] = field(default_factory=dict)
    text_embeddings: int = 0
    visual_embeddings: int = 0
    synthetic_visual_embeddings: int = 0
    skipped_text_chunks: int = 0
    skipped_frames: int = 0
    text_insertion: InsertionReport | None = None
    visual_insertion: InsertionReport | None = None
    artifacts: TranscriptArtifacts | None = None


class VideoIndexingService:
    """Runs the indexing pipeline for one video at a time.

    Pipeline steps, strictly in order:
    1. Claim the stored record as processing
    2. Sample frames
    3. Extract audio and transcribe it
    4. Chunk, embed and store the transcript
    5. Embed and store the frames
    6. Persist the outcome as completed

    A failure in steps 2-4 marks the video failed with a step-specific
    message. Only one run per video may be active: a keyed lock guards this
    process and a renewable lease on the stored record guards the others.
    """

    def __init__(
        self,
        videos: VideoRepository,
        collections: CollectionManager,
        vector_db: VectorDBBase,
        frame_extractor: FrameExtractorBase,
        audio_extractor: AudioExtractorBase,
        transcription_service: TranscriptionServiceBase,
        text_embedding_service: TextEmbeddingServiceBase,
        image_embedding_service: ImageEmbeddingServiceBase,
        settings: Settings,
        video_locks: KeyedLock | None = None,
        text_rate_limiter: RateLimiter | None = None,
        image_rate_limiter: RateLimiter | None = None,
        insert_rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize indexing service with dependencies.

        Args:
            videos: Video metadata repository.
            collections: Vector collection manager.
            vector_db: Vector store, used to clear vectors before re-indexing.
            frame_extractor: Video frame sampler.
            audio_extractor: Audio track extractor.
            transcription_service: Speech-to-text provider.
            text_embedding_service: Text embedding provider.
            image_embedding_service: Frame embedding provider.
            settings: Application settings.
            video_locks: Per-video lock shared by every service instance.
            text_rate_limiter: Paces text embedding calls.
            image_rate_limiter: Paces frame embedding calls.
            insert_rate_limiter: Paces vector insert batches.
        """
        self._videos = videos
        self._collections = collections
        self._vector_db = vector_db
        self._frame_extractor = frame_extractor
        self._audio_extractor = audio_extractor
        self._transcriber = transcription_service
        self._text_embedder = text_embedding_service
        self._image_embedder = image_embedding_service
        self._settings = settings
        self._locks = video_locks or KeyedLock()
        self._text_limiter = text_rate_limiter or RateLimiter.unlimited()
        self._image_limiter = image_rate_limiter or RateLimiter.unlimited()
        self._inserter = BatchInserter(
            vector_db,
            rate_limiter=insert_rate_limiter,
            lock=collections.lock,
        )
        self._work_dir = Path(settings.processing.work_dir)
        self._lease_seconds = settings.processing.indexing_lease_seconds
        self._logger = get_logger(__name__)

    async def index_video(
        self,
        file_path: str,
        original_name: str | None = None,
        uploaded_by: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> IndexingResult:
        """Register a video file and index it.

        Args:
            file_path: Path of the video on local disk.
            original_name: Display name; the file name when omitted.
            uploaded_by: Identifier of the uploader.
            cancel_event: Optional event that abandons the transcription wait.

        Returns:
            Indexing outcome with counts and insertion reports.

        Raises:
            InvalidInputException: If the file does not exist.
            IndexingInProgressException: If another run took the video over.
            IndexingException: If a pipeline step fails.
        """
        path = Path(file_path)
        if not path.is_file():
            raise InvalidInputException("file_path", f"No such file: {file_path}")

        record = VideoRecord(
            original_name=original_name or path.name,
            file_path=str(path),
            size_bytes=path.stat().st_size,
            uploaded_by=uploaded_by,
        )

        async with self._hold(record.id):
            await self._videos.create(record)
            with LogContext(video_id=record.id):
                record = await self._claim(record)
            return await self._run(record, cancel_event)

    async def reindex(
        self,
        video_id: str,
        cancel_event: asyncio.Event | None = None,
    ) -> IndexingResult:
        """Run the whole pipeline again for a stored video.

        Prior vectors of the video are deleted from both collections first.

        Args:
            video_id: ID of the video.
            cancel_event: Optional event that abandons the transcription wait.

        Returns:
            Indexing outcome with counts and insertion reports.

        Raises:
            VideoNotFoundException: If there is no such video.
            IndexingInProgressException: If the video is being indexed.
            IndexingException: If the file is gone or a step fails.
        """
        async with self._hold(video_id):
            record = await self._videos.require(video_id)

            with LogContext(video_id=video_id):
                record = await self._claim(record)

                if not Path(record.file_path).is_file():
                    await self._fail(record, FILE_MISSING_MESSAGE)
                    raise IndexingException(
                        video_id,
                        IndexingStep.PREPARING.value,
                        FILE_MISSING_MESSAGE,
                        public_reason=FILE_MISSING_MESSAGE,
                    )

                await self._collections.ensure_ready()
                await self._delete_vectors(video_id)

            return await self._run(record, cancel_event)

    @asynccontextmanager
    async def _hold(self, video_id: str) -> AsyncIterator[None]:
        try:
            async with self._locks.hold(video_id):
                yield
        except LockBusyError as e:
            raise IndexingInProgressException(video_id) from e

    async def _claim(self, record: VideoRecord) -> VideoRecord:
        """Take the stored video for this run or refuse like a held lock."""
        claimed = await self._videos.claim(record, uuid4().hex, self._lease_seconds)
        if claimed is None:
            raise IndexingInProgressException(record.id)
        if record.status == VideoStatus.PROCESSING:
            self._logger.warning("Taking over indexing run whose claim lapsed")
        return claimed

    async def _keep_claim(self, record: VideoRecord) -> None:
        renewed = await self._videos.renew(
            record.id, record.lease_owner or "", self._lease_seconds
        )
        if not renewed:
            self._logger.warning("Indexing claim lost to another run")
            raise IndexingInProgressException(record.id)

    async def _run(
        self,
        record: VideoRecord,
        cancel_event: asyncio.Event | None,
    ) -> IndexingResult:
        step = IndexingStep.PREPARING
        with LogContext(video_id=record.id):
            self._logger.info(
                "Starting video indexing",
                extra={"file_path": record.file_path, "size_bytes": record.size_bytes},
            )
            try:
                await self._collections.ensure_ready()

                step = IndexingStep.EXTRACTING_FRAMES
                frames = await self._extract_frames(record)

                step = IndexingStep.TRANSCRIBING
                await self._keep_claim(record)
                transcription, artifacts = await self._transcribe(record, cancel_event)

                step = IndexingStep.TEXT_EMBEDDING
                await self._keep_claim(record)
                result = IndexingResult(
                    video=record,
                    frames_extracted=len(frames),
                    duration_seconds=transcription.duration_seconds,
                    language=transcription.language,
                    artifacts=artifacts,
                )
                await self._index_text(record, transcription, result)

                step = IndexingStep.VISUAL_EMBEDDING
                await self._keep_claim(record)
                await self._index_frames(record, frames, result)

                step = IndexingStep.COMPLETED
                completed = record.mark_completed(
                    duration_seconds=transcription.duration_seconds,
                    transcript=transcription.full_text,
                    language=transcription.language,
                    key_frames=[
                        KeyFrame(timestamp=f.timestamp, frame_path=str(f.path))
                        for f in frames
                    ],
                    text_embedding_count=result.text_embeddings,
                    visual_embedding_count=result.visual_embeddings,
                )
                if not await self._videos.finish(completed, record.lease_owner or ""):
                    self._logger.warning("Indexing claim lost to another run")
                    raise IndexingInProgressException(record.id)
                result.video = completed
            except (IndexingException, IndexingInProgressException):
                raise
            except asyncio.CancelledError:
                await self._fail(record, "Indexing cancelled")
                raise
            except Exception as e:
                await self._fail(record, str(e))
                raise IndexingException(record.id, step.value, str(e)) from e

            self._logger.info(
                "Video indexing completed",
                extra={
                    "frames": result.frames_extracted,
                    "text_embeddings": result.text_embeddings,
                    "visual_embeddings": result.visual_embeddings,
                    "synthetic_visual_embeddings": result.synthetic_visual_embeddings,
                    "skipped_text_chunks": result.skipped_text_chunks,
                    "skipped_frames": result.skipped_frames,
                },
            )
            return result

    async def _extract_frames(self, record: VideoRecord) -> list[ExtractedFrame]:
        output_dir = self._work_dir / "frames" / record.id
        try:
            frames = await self._frame_extractor.extract_frames(
                Path(record.file_path),
                output_dir,
                interval_seconds=self._settings.processing.frame_interval_seconds,
            )
        except FrameExtractionException as e:
            message = f"Frame extraction failed: {e.reason}"
            await self._fail(record, message)
            raise IndexingException(
                record.id,
                IndexingStep.EXTRACTING_FRAMES.value,
                message,
                public_reason="Frame extraction failed",
            ) from e

        self._logger.info("Frames extracted", extra={"frame_count": len(frames)})
        return frames

    async def _transcribe(
        self,
        record: VideoRecord,
        cancel_event: asyncio.Event | None,
    ) -> tuple[TranscriptionResult, TranscriptArtifacts]:
        audio_dir = self._work_dir / "audio" / record.id
        audio_path = audio_dir / f"{record.id}_audio.wav"
        try:
            await self._audio_extractor.extract_audio(
                Path(record.file_path), audio_path
            )
            transcription = await self._transcriber.transcribe(
                str(audio_path), cancel_event=cancel_event
            )
        except TranscriptionException as e:
            message = f"Transcription failed: {e.reason}"
            await self._fail(record, message)
            raise IndexingException(
                record.id,
                IndexingStep.TRANSCRIBING.value,
                message,
                public_reason="Transcription failed",
            ) from e

        artifacts = TranscriptArtifacts(audio_path=audio_path)
        if self._settings.processing.save_transcript_artifacts:
            artifacts = await asyncio.to_thread(
                self._write_artifacts, record.id, audio_dir, audio_path, transcription
            )

        self._logger.info(
            "Transcription completed",
            extra={
                "language": transcription.language,
                "duration_seconds": transcription.duration_seconds,
                "segment_count": len(transcription.segments),
                "text_length": len(transcription.full_text),
            },
        )
        return transcription, artifacts

    @staticmethod
    def _write_artifacts(
        video_id: str,
        audio_dir: Path,
        audio_path: Path,
        transcription: TranscriptionResult,
    ) -> TranscriptArtifacts:
        segments = [s.model_dump() for s in transcription.segments]
        transcription_json = audio_dir / f"{video_id}_transcription.json"
        audio_dir.mkdir(parents=True, exist_ok=True)
        transcript_txt = audio_dir / f"{video_id}_transcript.txt"
        artifacts = TranscriptArtifacts(
            audio_path=audio_path,
            transcription_json=transcription_json,
            transcript_txt=transcript_txt,
        )
        transcription_json.write_text(
            json.dumps(
                {
                    "video_id": video_id,
                    "full_text": transcription.full_text,
                    "language": transcription.language,
                    "duration_seconds": transcription.duration_seconds,
                    "segments": segments,
                },
                indent=2,
            ),
            encoding="utf-8",
        )
        transcript_txt.write_text(transcription.full_text, encoding="utf-8")
        if segments:
            segments_json = audio_dir / f"{video_id}_segments.json"
            segments_json.write_text(json.dumps(segments, indent=2), encoding="utf-8")
            artifacts.segments_json = segments_json
        return artifacts

    async def _index_text(
        self,
        record: VideoRecord,
        transcription: TranscriptionResult,
        result: IndexingResult,
    ) -> None:
        step = IndexingStep.TEXT_EMBEDDING.value
        if not transcription.full_text.strip():
            message = f"Text embedding failed: {NO_TEXT_MESSAGE}"
            await self._fail(record, message)
            raise IndexingException(record.id, step, message, public_reason=message)

        chunks = build_chunk_sets(
            transcription.full_text,
            transcription.segments,
            self._settings.chunking,
        )
        result.text_chunks = {
            strategy.value: sum(1 for c in chunks if c.strategy == strategy)
            for strategy in ChunkStrategy
        }

        records: list[TextEmbeddingRecord] = []
        last_error = ""
        for chunk in chunks:
            await self._text_limiter.acquire()
            try:
                embedding = await self._text_embedder.embed_text(chunk.text)
            except EmbeddingGenerationException as e:
                result.skipped_text_chunks += 1
                last_error = e.reason
                self._logger.warning(
                    "Skipping chunk that failed to embed",
                    extra={
                        "strategy": chunk.strategy.value,
                        "sequence_index": chunk.sequence_index,
                        "error": e.reason,
                    },
                )
                continue

            records.append(
                TextEmbeddingRecord(
                    video_id=record.id,
                    text_chunk=chunk.text,
                    chunk_index=len(records),
                    strategy=chunk.strategy,
                    timestamp=chunk.start_time,
                    end_time=chunk.end_time,
                    embedding=embedding.vector,
                )
            )

        if not records:
            public = (
                f"Text embedding failed: none of {len(chunks)} chunks could be "
                "embedded"
            )
            message = f"{public} ({last_error or 'no chunks'})"
            await self._fail(record, message)
            raise IndexingException(record.id, step, message, public_reason=public)

        report = await self._inserter.insert(
            self._collections.text_schema.name,
            records,
            batch_size=self._settings.processing.text_batch_size,
            video_id=record.id,
        )
        if report.inserted == 0:
            message = "Text embedding failed: no text vectors could be stored"
            await self._fail(record, message)
            raise IndexingException(record.id, step, message, public_reason=message)

        result.text_insertion = report
        result.text_embeddings = report.inserted

    async def _index_frames(
        self,
        record: VideoRecord,
        frames: list[ExtractedFrame],
        result: IndexingResult,
    ) -> None:
        records: list[VisualEmbeddingRecord] = []
        for frame in frames:
            await self._image_limiter.acquire()
            try:
                embedding = await self._image_embedder.embed_image(str(frame.path))
            except EmbeddingGenerationException as e:
                result.skipped_frames += 1
                self._logger.warning(
                    "Skipping frame that failed to embed",
                    extra={"frame_number": frame.frame_number, "error": e.reason},
                )
                continue

            if embedding.provenance == EmbeddingProvenance.SYNTHETIC:
                result.synthetic_visual_embeddings += 1
            records.append(
                VisualEmbeddingRecord(
                    video_id=record.id,
                    frame_path=str(frame.path),
                    timestamp=frame.timestamp,
                    frame_number=frame.frame_number,
                    provenance=embedding.provenance,
                    embedding=embedding.vector,
                )
            )

        if not records:
            self._logger.warning(
                "No frame embeddings to store",
                extra={"frames": len(frames), "skipped": result.skipped_frames},
            )
            return

        report = await self._inserter.insert(
            self._collections.visual_schema.name,
            records,
            batch_size=self._settings.processing.visual_batch_size,
            video_id=record.id,
        )
        result.visual_insertion = report
        result.visual_embeddings = report.inserted

    async def _delete_vectors(self, video_id: str) -> None:
        async with self._collections.shared():
            for schema in self._collections.schemas:
                deleted = await self._vector_db.delete_by_filter(
                    schema.name, {"video_id": video_id}
                )
                self._logger.info(
                    "Deleted previous vectors",
                    extra={"collection": schema.name, "deleted": deleted},
                )

    async def _fail(self, record: VideoRecord, message: str) -> None:
        self._logger.error("Video indexing failed", extra={"error": message})
        failed = record.mark_failed(message)
        if not await self._videos.finish(failed, record.lease_owner or ""):
            self._logger.warning(
                "Failure not recorded, another run holds the video",
                extra={"error": message},
            )
