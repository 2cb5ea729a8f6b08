"""Unit tests for VideoQueryService and its helpers."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.retrieval import (
    ANSWER_TEMPERATURE,
    MAX_QUERY_CHARS,
    RetrievedChunk,
    VideoQueryService,
    build_context,
    is_refusal,
    refusal_phrase,
    truncate_preview,
)
from video_rag.commons.infrastructure.vectordb import SearchResult
from video_rag.commons.settings.models import Settings
from video_rag.domain.exceptions import (
    InvalidInputException,
    NoRelevantContentException,
    VideoNotFoundException,
    VideoNotIndexedException,
)
from video_rag.domain.models.video import VideoRecord, VideoStatus
from video_rag.infrastructure.llm.base import LLMResponse, LLMUsage, MessageRole


def _hit(text: str, timestamp: float | None, score: float = 0.91234) -> SearchResult:
    return SearchResult(
        id="video-1_standard_0",
        score=score,
        payload={
            "video_id": "video-1",
            "text_chunk": text,
            "chunk_index": 0,
            "strategy": "standard",
            "timestamp": timestamp,
        },
    )


@pytest.fixture
def indexed_video():
    """Create a completed, indexed video record."""
    return VideoRecord(
        id="video-1",
        original_name="lecture.mp4",
        file_path="/videos/lecture.mp4",
        size_bytes=2048,
        duration_seconds=125.0,
        status=VideoStatus.COMPLETED,
        is_indexed=True,
        indexed_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def mock_videos(indexed_video):
    videos = AsyncMock()
    videos.get.return_value = indexed_video
    return videos


@pytest.fixture
def mock_vector_db():
    """Create mock vector database with one relevant chunk."""
    vector_db = AsyncMock()
    vector_db.search.return_value = [_hit("Photosynthesis converts light.", 65.0)]
    return vector_db


@pytest.fixture
def mock_embedder():
    """Create mock embedding service."""
    embedder = AsyncMock()
    embedder.model_name = "text-embedding-3-small"
    embedding = MagicMock()
    embedding.vector = [0.1] * 3
    embedder.embed_text.return_value = embedding
    return embedder


@pytest.fixture
def mock_llm():
    """Create mock LLM service."""
    llm = AsyncMock()
    llm.default_model = "gpt-4o"
    llm.generate.return_value = LLMResponse(
        content="  At 1:05 the speaker explains photosynthesis.  ",
        finish_reason="stop",
        usage=LLMUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        model="gpt-4o",
    )
    return llm


@pytest.fixture
def query_service(mock_videos, mock_vector_db, mock_embedder, mock_llm):
    """Create query service with mocked dependencies."""
    settings = Settings()
    return VideoQueryService(
        videos=mock_videos,
        collections=CollectionManager(mock_vector_db, 3, 3, settings.vector_db),
        vector_db=mock_vector_db,
        text_embedding_service=mock_embedder,
        llm_service=mock_llm,
        settings=settings,
    )


class TestHelpers:
    """Tests for context and answer helpers."""

    def test_build_context_labels_timestamps(self):
        chunks = [
            RetrievedChunk("first", 65.0, 0, "standard", 0.9),
            RetrievedChunk("second", None, 1, "sentence", 0.8),
        ]
        assert build_context(chunks) == (
            "Context 1 [1:05]: first\n\nContext 2 [No timestamp]: second"
        )

    def test_refusal_detected_case_insensitively(self):
        assert is_refusal(refusal_phrase("quantum physics"))
        assert is_refusal("Sorry. i CANNOT find enough information about that.")
        assert not is_refusal("The speaker covers quantum physics at 2:10.")

    def test_truncate_preview(self):
        assert truncate_preview("short") == "short"
        assert truncate_preview("x" * 200) == "x" * 200
        assert truncate_preview("x" * 201) == "x" * 200 + "..."

    def test_chunk_from_search_result(self):
        chunk = RetrievedChunk.from_search_result(_hit("text", 3725.0))
        assert chunk.timestamp_formatted == "1:02:05"
        assert chunk.chunk_index == 0

    def test_chunk_without_timestamp(self):
        chunk = RetrievedChunk.from_search_result(_hit("text", None))
        assert chunk.timestamp is None
        assert chunk.timestamp_formatted is None


class TestVideoQueryService:
    """Tests for VideoQueryService."""

    async def test_query_success(self, query_service, mock_llm):
        response = await query_service.query("video-1", "  What is photosynthesis?  ")

        assert response.query == "What is photosynthesis?"
        assert response.answer == "At 1:05 the speaker explains photosynthesis."
        assert response.insufficient_context is False
        assert response.video.title == "lecture.mp4"
        assert response.video.duration_formatted == "2:05"
        assert response.chunks[0].timestamp_formatted == "1:05"
        assert response.chunks[0].score == 0.91
        assert response.search_metadata.results_count == 1
        assert response.search_metadata.collection == "video_text_embeddings"
        assert response.search_metadata.generative_model == "gpt-4o"

    async def test_prompt_grounds_on_context(self, query_service, mock_llm):
        await query_service.query("video-1", "What is photosynthesis?")

        kwargs = mock_llm.generate.await_args.kwargs
        messages = kwargs["messages"]
        assert kwargs["temperature"] == ANSWER_TEMPERATURE
        assert messages[0].role == MessageRole.SYSTEM
        assert "Context 1 [1:05]: Photosynthesis converts light." in (
            messages[1].content
        )
        assert refusal_phrase("What is photosynthesis?") in messages[1].content

    async def test_search_filtered_by_video(self, query_service, mock_vector_db):
        await query_service.query("video-1", "question", limit=5)

        args, kwargs = mock_vector_db.search.await_args
        assert args[0] == "video_text_embeddings"
        assert kwargs["filters"] == {"video_id": "video-1"}
        assert kwargs["limit"] == 5

    async def test_limit_capped(self, query_service, mock_vector_db):
        await query_service.query("video-1", "question", limit=500)

        assert mock_vector_db.search.await_args.kwargs["limit"] == 20

    async def test_default_limit(self, query_service, mock_vector_db):
        await query_service.query("video-1", "question")

        assert mock_vector_db.search.await_args.kwargs["limit"] == 10

    async def test_refusal_flagged(self, query_service, mock_llm):
        mock_llm.generate.return_value.content = refusal_phrase("question")

        response = await query_service.query("video-1", "question")

        assert response.insufficient_context is True

    async def test_long_chunk_preview_truncated(self, query_service, mock_vector_db):
        mock_vector_db.search.return_value = [_hit("y" * 300, 0.0)]

        response = await query_service.query("video-1", "question")

        assert response.chunks[0].text == "y" * 200 + "..."

    @pytest.mark.parametrize("query", ["", "   ", "q" * (MAX_QUERY_CHARS + 1)])
    async def test_invalid_query(self, query_service, mock_embedder, query):
        with pytest.raises(InvalidInputException) as exc_info:
            await query_service.query("video-1", query)

        assert exc_info.value.field == "query"
        mock_embedder.embed_text.assert_not_awaited()

    async def test_empty_video_id(self, query_service):
        with pytest.raises(InvalidInputException) as exc_info:
            await query_service.query(" ", "question")
        assert exc_info.value.field == "video_id"

    async def test_video_not_found(self, query_service, mock_videos):
        mock_videos.get.return_value = None

        with pytest.raises(VideoNotFoundException):
            await query_service.query("missing", "question")

    @pytest.mark.parametrize(
        "status", [VideoStatus.PENDING, VideoStatus.PROCESSING, VideoStatus.FAILED]
    )
    async def test_not_indexed_never_searches(
        self, query_service, mock_videos, mock_vector_db, indexed_video, status
    ):
        mock_videos.get.return_value = indexed_video.model_copy(
            update={"status": status, "is_indexed": False}
        )

        with pytest.raises(VideoNotIndexedException) as exc_info:
            await query_service.query("video-1", "question")

        assert exc_info.value.status == status
        mock_vector_db.search.assert_not_awaited()

    async def test_no_results_gives_suggestions(
        self, query_service, mock_vector_db, mock_llm
    ):
        mock_vector_db.search.return_value = []

        with pytest.raises(NoRelevantContentException) as exc_info:
            await query_service.query("video-1", "question")

        assert exc_info.value.suggestions
        assert exc_info.value.video_id == "video-1"
        mock_llm.generate.assert_not_awaited()

    async def test_blank_chunks_ignored(self, query_service, mock_vector_db):
        mock_vector_db.search.return_value = [_hit("   ", 1.0)]

        with pytest.raises(NoRelevantContentException):
            await query_service.query("video-1", "question")

    async def test_probe_uses_constant_vector(self, query_service, mock_vector_db):
        await query_service.probe(video_id="video-1", limit=2)

        args, kwargs = mock_vector_db.search.await_args
        assert args[1] == [0.1, 0.1, 0.1]
        assert kwargs == {"limit": 2, "filters": {"video_id": "video-1"}}

    async def test_probe_without_video(self, query_service, mock_vector_db):
        await query_service.probe()

        assert mock_vector_db.search.await_args.kwargs["filters"] is None
