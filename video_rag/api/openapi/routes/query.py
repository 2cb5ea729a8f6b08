"""Video query endpoints."""

from fastapi import APIRouter

from video_rag.api.dependencies import QueryServiceDep
from video_rag.application.dtos.query import QueryVideoRequest, QueryVideoResponse

router = APIRouter()


@router.post(
    "/videos/{video_id}/query",
    response_model=QueryVideoResponse,
    summary="Query video content",
    description=(
        "Ask a natural language question about an indexed video. The answer is "
        "generated from the most similar transcript chunks, which are returned "
        "with their timestamps."
    ),
)
async def query_video(
    video_id: str,
    request: QueryVideoRequest,
    service: QueryServiceDep,
) -> QueryVideoResponse:
    """Query video content with natural language.

    Empty or overlong questions are rejected with 400; videos that are not
    fully indexed are rejected before any search runs.
    """
    return await service.query(video_id, request.query, limit=request.limit)
