"""Video indexing and inspection endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from video_rag.api.dependencies import (
    CollectionsDep,
    FactoryDep,
    IndexingServiceDep,
    QueryServiceDep,
    VideoRepositoryDep,
)
from video_rag.application.dtos.indexing import (
    CollectionsStatusResponse,
    CollectionStatusDTO,
    IndexVideoRequest,
    IndexVideoResponse,
    InsertionSummary,
    KeyFrameDTO,
    ProbeResultDTO,
    VideoDebugResponse,
    VideoResponse,
)
from video_rag.application.services.batch_insert import InsertionReport
from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.indexing import IndexingResult
from video_rag.application.services.retrieval import truncate_preview
from video_rag.commons.infrastructure.vectordb import (
    CollectionSchema,
    CollectionStats,
    SearchResult,
)
from video_rag.domain.exceptions import VideoNotFoundException
from video_rag.domain.models.video import VideoRecord, format_timestamp

router = APIRouter()

TRANSCRIPT_PREVIEW_CHARS = 500
PROBE_PREVIEW_CHARS = 100


def _insertion_summary(report: InsertionReport) -> InsertionSummary:
    return InsertionSummary(
        collection=report.collection,
        attempted=report.attempted,
        inserted=report.inserted,
        failed=report.failed,
        batch_fallbacks=report.batch_fallbacks,
        verified=report.verified,
    )


def _indexing_response(result: IndexingResult, message: str) -> IndexVideoResponse:
    insertions = [
        _insertion_summary(report)
        for report in (result.text_insertion, result.visual_insertion)
        if report is not None
    ]
    return IndexVideoResponse(
        video_id=result.video.id,
        status=result.video.status,
        message=message,
        frames_extracted=result.frames_extracted,
        duration_seconds=result.duration_seconds,
        language=result.language,
        text_chunks=result.text_chunks,
        text_embeddings=result.text_embeddings,
        visual_embeddings=result.visual_embeddings,
        synthetic_visual_embeddings=result.synthetic_visual_embeddings,
        skipped_text_chunks=result.skipped_text_chunks,
        skipped_frames=result.skipped_frames,
        insertions=insertions,
        indexed_at=result.video.indexed_at,
    )


def _video_response(video: VideoRecord) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        original_name=video.original_name,
        file_path=video.file_path,
        size_bytes=video.size_bytes,
        uploaded_by=video.uploaded_by,
        status=video.status,
        is_indexed=video.is_indexed,
        error_message=video.error_message,
        duration_seconds=video.duration_seconds,
        duration_formatted=video.duration_formatted,
        language=video.language,
        transcript_preview=video.transcript[:TRANSCRIPT_PREVIEW_CHARS],
        key_frames=[
            KeyFrameDTO(
                timestamp=frame.timestamp,
                timestamp_formatted=format_timestamp(frame.timestamp),
                frame_path=frame.frame_path,
            )
            for frame in video.key_frames
        ],
        text_embedding_count=video.text_embedding_count,
        visual_embedding_count=video.visual_embedding_count,
        created_at=video.created_at,
        updated_at=video.updated_at,
        indexed_at=video.indexed_at,
    )


def _collection_status(
    stats: CollectionStats,
    schema: CollectionSchema,
) -> CollectionStatusDTO:
    return CollectionStatusDTO(
        name=stats.name,
        exists=stats.exists,
        vector_size=stats.vector_size,
        expected_vector_size=schema.vector_size,
        points_count=stats.points_count,
        indexed_vectors_count=stats.indexed_vectors_count,
        status=stats.status,
        indexed_fields=stats.indexed_fields,
    )


def _probe_result(result: SearchResult) -> ProbeResultDTO:
    text = result.payload.get("text_chunk")
    return ProbeResultDTO(
        record_id=result.id,
        score=round(result.score, 4),
        video_id=result.payload.get("video_id"),
        preview=truncate_preview(str(text), PROBE_PREVIEW_CHARS) if text else None,
    )


async def _status_of(
    collections: CollectionManager,
    schema: CollectionSchema,
) -> CollectionStatusDTO:
    stats = await collections.collection_status(schema.name)
    return _collection_status(stats, schema)


@router.post(
    "/videos",
    response_model=IndexVideoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Index a video",
    description=(
        "Register a video file stored on the server and run the full indexing "
        "pipeline: frames, transcription, text and frame embeddings."
    ),
)
async def index_video(
    request: IndexVideoRequest,
    service: IndexingServiceDep,
) -> IndexVideoResponse:
    """Index a new video and return the indexing summary."""
    result = await service.index_video(
        file_path=request.file_path,
        original_name=request.original_name,
        uploaded_by=request.uploaded_by,
    )
    return _indexing_response(result, "Video indexed successfully")


@router.post(
    "/videos/{video_id}/reindex",
    response_model=IndexVideoResponse,
    summary="Re-index a video",
    description="Delete the video's vectors and run the whole pipeline again.",
)
async def reindex_video(
    video_id: str,
    service: IndexingServiceDep,
) -> IndexVideoResponse:
    """Re-run indexing for a stored video."""
    result = await service.reindex(video_id)
    return _indexing_response(result, "Video re-indexed successfully")


@router.get(
    "/videos",
    response_model=list[VideoResponse],
    summary="List videos",
    description="List stored videos, newest first.",
)
async def list_videos(
    videos: VideoRepositoryDep,
    skip: Annotated[int, Query(ge=0, description="Videos to skip")] = 0,
    limit: Annotated[int, Query(ge=1, le=100, description="Page size")] = 20,
    uploaded_by: Annotated[
        str | None,
        Query(description="Only videos of this uploader"),
    ] = None,
) -> list[VideoResponse]:
    """List stored videos."""
    records = await videos.list(skip=skip, limit=limit, uploaded_by=uploaded_by)
    return [_video_response(record) for record in records]


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video",
    description="Get the stored state of a video.",
)
async def get_video(
    video_id: str,
    videos: VideoRepositoryDep,
) -> VideoResponse:
    """Get a video record."""
    return _video_response(await videos.require(video_id))


@router.get(
    "/videos/{video_id}/debug",
    response_model=VideoDebugResponse,
    summary="Debug video vectors",
    description=(
        "Show how many vectors of the video are stored and run a probe search "
        "restricted to the video."
    ),
)
async def debug_video(
    video_id: str,
    videos: VideoRepositoryDep,
    collections: CollectionsDep,
    factory: FactoryDep,
    query_service: QueryServiceDep,
) -> VideoDebugResponse:
    """Inspect the stored vectors of one video."""
    video = await videos.get(video_id)
    if video is None:
        raise VideoNotFoundException(video_id)

    vector_db = factory.get_vector_db()
    text_schema, visual_schema = collections.schemas
    text_status = await _status_of(collections, text_schema)

    async with collections.shared():
        text_count = await vector_db.count(text_schema.name, {"video_id": video_id})
        visual_count = await vector_db.count(
            visual_schema.name, {"video_id": video_id}
        )

    probe = await query_service.probe(video_id=video_id)

    return VideoDebugResponse(
        video=_video_response(video),
        text_collection=text_status,
        text_vectors_for_video=text_count,
        visual_vectors_for_video=visual_count,
        probe=[_probe_result(hit) for hit in probe],
    )


@router.get(
    "/collections/status",
    response_model=CollectionsStatusResponse,
    summary="Collection status",
    description="Status of the text and visual collections with a sample probe.",
)
async def collections_status(
    collections: CollectionsDep,
    query_service: QueryServiceDep,
) -> CollectionsStatusResponse:
    """Describe both vector collections."""
    text_schema, visual_schema = collections.schemas
    text_status = await _status_of(collections, text_schema)
    visual_status = await _status_of(collections, visual_schema)

    sample: list[SearchResult] = []
    if text_status.exists and text_status.points_count:
        sample = await query_service.probe()

    return CollectionsStatusResponse(
        text=text_status,
        visual=visual_status,
        sample=[_probe_result(hit) for hit in sample],
    )
