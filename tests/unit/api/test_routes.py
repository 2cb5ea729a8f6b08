"""Unit tests for API routes."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from video_rag.api.dependencies import (
    get_collection_manager,
    get_indexing_service,
    get_infrastructure_factory,
    get_query_service,
    get_video_repository,
)
from video_rag.api.main import create_app
from video_rag.application.dtos.query import (
    ChunkDTO,
    QueryVideoResponse,
    SearchMetadata,
    VideoSummaryDTO,
)
from video_rag.application.services.batch_insert import InsertionReport
from video_rag.application.services.collections import CollectionManager
from video_rag.application.services.indexing import IndexingResult
from video_rag.commons.infrastructure.health import HealthStatus as ProviderHealth
from video_rag.commons.infrastructure.vectordb import CollectionStats, SearchResult
from video_rag.commons.settings.models import Settings
from video_rag.domain.exceptions import (
    GenerationException,
    IndexingException,
    IndexingInProgressException,
    InvalidInputException,
    NoRelevantContentException,
    VideoNotFoundException,
    VideoNotIndexedException,
)
from video_rag.domain.models.video import KeyFrame, VideoRecord, VideoStatus


def _completed_video() -> VideoRecord:
    now = datetime(2024, 1, 1, tzinfo=UTC)
    return VideoRecord(
        id="video-1",
        original_name="lecture.mp4",
        file_path="/videos/lecture.mp4",
        size_bytes=2048,
        duration_seconds=3725.0,
        transcript="t" * 600,
        language="en",
        key_frames=[KeyFrame(timestamp=65.0, frame_path="/frames/frame_0001.png")],
        status=VideoStatus.COMPLETED,
        is_indexed=True,
        indexed_at=now,
        text_embedding_count=3,
        visual_embedding_count=1,
    )


@pytest.fixture
def settings():
    """Create settings for a credentialed development app."""
    return Settings(
        transcription={"api_key": "aai"},
        embeddings={"text": {"api_key": "sk"}},
        llm={"api_key": "sk"},
    )


@pytest.fixture
def mock_vector_db():
    vector_db = AsyncMock()
    vector_db.health_check.return_value = ProviderHealth(healthy=True, latency_ms=1.5)
    vector_db.get_collection_stats.side_effect = lambda name: CollectionStats(
        name=name, exists=True, vector_size=3, points_count=5, status="green"
    )
    vector_db.count.return_value = 4
    return vector_db


@pytest.fixture
def mock_document_db():
    document_db = AsyncMock()
    document_db.health_check.return_value = ProviderHealth(
        healthy=True, latency_ms=2.0
    )
    return document_db


@pytest.fixture
def mock_factory(mock_vector_db, mock_document_db):
    """Create mock infrastructure factory."""
    factory = MagicMock()
    factory.get_vector_db.return_value = mock_vector_db
    factory.get_document_db.return_value = mock_document_db
    return factory


@pytest.fixture
def collections(mock_vector_db):
    return CollectionManager(mock_vector_db, 3, 3)


@pytest.fixture
def mock_videos():
    videos = AsyncMock()
    videos.require.return_value = _completed_video()
    videos.get.return_value = _completed_video()
    videos.list.return_value = [_completed_video()]
    return videos


@pytest.fixture
def mock_indexing_service():
    """Create mock indexing service."""
    return AsyncMock()


@pytest.fixture
def mock_query_service():
    """Create mock query service."""
    service = AsyncMock()
    service.probe.return_value = [
        SearchResult(
            id="video-1_standard_0",
            score=0.123456,
            payload={"video_id": "video-1", "text_chunk": "x" * 150},
        )
    ]
    return service


def _build_client(
    settings,
    mock_factory,
    collections,
    mock_videos,
    mock_indexing_service,
    mock_query_service,
) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_infrastructure_factory] = lambda: mock_factory
    app.dependency_overrides[get_collection_manager] = lambda: collections
    app.dependency_overrides[get_video_repository] = lambda: mock_videos
    app.dependency_overrides[get_indexing_service] = lambda: mock_indexing_service
    app.dependency_overrides[get_query_service] = lambda: mock_query_service
    # Not entered as a context manager, so the lifespan does not run
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def client(
    settings,
    mock_factory,
    collections,
    mock_videos,
    mock_indexing_service,
    mock_query_service,
):
    """Create test client with mocked dependencies."""
    return _build_client(
        settings,
        mock_factory,
        collections,
        mock_videos,
        mock_indexing_service,
        mock_query_service,
    )


class TestHealthRoutes:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert {c["name"] for c in data["components"]} == {"vector_db", "document_db"}
        assert data["missing_credentials"] == []

    def test_health_degraded_when_one_store_down(self, client, mock_document_db):
        mock_document_db.health_check.return_value = ProviderHealth(
            healthy=False, latency_ms=5.0, message="refused"
        )

        data = client.get("/health").json()

        assert data["status"] == "degraded"

    def test_health_unhealthy_when_all_stores_down(
        self, client, mock_vector_db, mock_document_db
    ):
        down = ProviderHealth(healthy=False, latency_ms=5.0)
        mock_vector_db.health_check.return_value = down
        mock_document_db.health_check.return_value = down

        assert client.get("/health").json()["status"] == "unhealthy"

    def test_app_created_without_embedding_clients(self):
        """Test a credential-less app sizes collections from settings alone."""
        with (
            patch(
                "video_rag.infrastructure.factory.OpenAIEmbeddingService",
                side_effect=ValueError("Missing credentials"),
            ) as openai_class,
            patch(
                "video_rag.infrastructure.factory.CLIPEmbeddingService"
            ) as clip_class,
        ):
            app = create_app(Settings())

        openai_class.assert_not_called()
        clip_class.assert_not_called()
        assert app.state.collections.text_schema.vector_size == 1536
        assert app.state.collections.visual_schema.vector_size == 512

    def test_health_degraded_without_credentials(
        self,
        mock_factory,
        collections,
        mock_videos,
        mock_indexing_service,
        mock_query_service,
    ):
        client = _build_client(
            Settings(),
            mock_factory,
            collections,
            mock_videos,
            mock_indexing_service,
            mock_query_service,
        )

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert "llm.api_key" in data["missing_credentials"]

    def test_liveness_check(self, client):
        """Test liveness probe."""
        response = client.get("/health/live")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok"}

    def test_readiness_check(self, client, mock_vector_db):
        """Test readiness probe."""
        mock_vector_db.health_check.return_value = ProviderHealth(
            healthy=False, latency_ms=1.0
        )

        data = client.get("/health/ready").json()

        assert data["ready"] is False
        assert data["checks"] == {"vector_db": False, "document_db": True}


class TestVideoRoutes:
    """Tests for video endpoints."""

    def test_index_video(self, client, mock_indexing_service):
        """Test indexing returns 201 with the run summary."""
        video = _completed_video()
        mock_indexing_service.index_video.return_value = IndexingResult(
            video=video,
            frames_extracted=3,
            duration_seconds=12.0,
            language="en",
            text_chunks={"standard": 1, "sentence": 1, "timestamp": 1},
            text_embeddings=3,
            visual_embeddings=3,
            text_insertion=InsertionReport(
                collection="video_text_embeddings",
                attempted=3,
                inserted=3,
                verified=True,
            ),
        )

        response = client.post(
            "/v1/videos",
            json={"file_path": "/videos/lecture.mp4", "uploaded_by": "u1"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["video_id"] == "video-1"
        assert data["status"] == "completed"
        assert data["message"] == "Video indexed successfully"
        assert data["insertions"][0]["inserted"] == 3
        mock_indexing_service.index_video.assert_awaited_once_with(
            file_path="/videos/lecture.mp4", original_name=None, uploaded_by="u1"
        )

    def test_index_video_missing_path(self, client):
        response = client.post("/v1/videos", json={})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_index_video_bad_file(self, client, mock_indexing_service):
        mock_indexing_service.index_video.side_effect = InvalidInputException(
            "file_path", "No such file: /nope.mp4"
        )

        response = client.post("/v1/videos", json={"file_path": "/nope.mp4"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "INVALID_INPUT"
        assert error["details"]["field"] == "file_path"

    def test_index_video_failure(self, client, mock_indexing_service):
        """Test pipeline failures carry the step message."""
        mock_indexing_service.index_video.side_effect = IndexingException(
            "video-1", "transcribing", "Transcription failed: timed out"
        )

        response = client.post("/v1/videos", json={"file_path": "/v.mp4"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        error = response.json()["error"]
        assert error["code"] == "INDEXING_FAILED"
        assert error["message"] == "Transcription failed: timed out"
        assert error["details"] == {"video_id": "video-1", "stage": "transcribing"}

    def test_reindex_conflict(self, client, mock_indexing_service):
        mock_indexing_service.reindex.side_effect = IndexingInProgressException(
            "video-1"
        )

        response = client.post("/v1/videos/video-1/reindex")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["code"] == "INDEXING_IN_PROGRESS"

    def test_list_videos(self, client, mock_videos):
        response = client.get("/v1/videos?skip=5&limit=10&uploaded_by=u1")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()[0]["id"] == "video-1"
        mock_videos.list.assert_awaited_once_with(skip=5, limit=10, uploaded_by="u1")

    def test_list_videos_limit_bounded(self, client):
        response = client.get("/v1/videos?limit=500")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_get_video(self, client):
        response = client.get("/v1/videos/video-1")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["duration_formatted"] == "1:02:05"
        assert len(data["transcript_preview"]) == 500
        assert data["key_frames"][0]["timestamp_formatted"] == "1:05"

    def test_get_video_not_found(self, client, mock_videos):
        mock_videos.require.side_effect = VideoNotFoundException("missing")

        response = client.get("/v1/videos/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == "VIDEO_NOT_FOUND"
        assert response.headers["X-Request-ID"] == error["request_id"]

    def test_debug_video(self, client, mock_query_service):
        response = client.get("/v1/videos/video-1/debug")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["text_vectors_for_video"] == 4
        assert data["visual_vectors_for_video"] == 4
        assert data["probe"][0]["preview"] == "x" * 100 + "..."
        assert data["probe"][0]["score"] == 0.1235
        mock_query_service.probe.assert_awaited_once_with(video_id="video-1")

    def test_debug_video_not_found(self, client, mock_videos):
        mock_videos.get.return_value = None

        response = client.get("/v1/videos/missing/debug")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_collections_status(self, client, mock_query_service):
        response = client.get("/v1/collections/status")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["text"]["name"] == "video_text_embeddings"
        assert data["visual"]["expected_vector_size"] == 3
        assert len(data["sample"]) == 1

    def test_collections_status_skips_probe_when_empty(
        self, client, mock_vector_db, mock_query_service
    ):
        mock_vector_db.get_collection_stats.side_effect = lambda name: (
            CollectionStats(name=name, exists=False)
        )

        data = client.get("/v1/collections/status").json()

        assert data["sample"] == []
        mock_query_service.probe.assert_not_awaited()


class TestQueryRoutes:
    """Tests for query endpoints."""

    def test_query_video(self, client, mock_query_service):
        """Test querying a video returns the grounded answer."""
        mock_query_service.query.return_value = QueryVideoResponse(
            query="What is photosynthesis?",
            video=VideoSummaryDTO(
                id="video-1",
                title="lecture.mp4",
                duration_seconds=125.0,
                duration_formatted="2:05",
                size_bytes=2048,
                indexed_at=None,
            ),
            answer="At 1:05 the speaker explains it.",
            insufficient_context=False,
            chunks=[
                ChunkDTO(
                    text="Photosynthesis converts light.",
                    timestamp=65.0,
                    timestamp_formatted="1:05",
                    score=0.91,
                )
            ],
            search_metadata=SearchMetadata(
                processed_at=datetime.now(UTC),
                collection="video_text_embeddings",
                embedding_model="text-embedding-3-small",
                generative_model="gpt-4o",
                results_count=1,
            ),
        )

        response = client.post(
            "/v1/videos/video-1/query",
            json={"query": "What is photosynthesis?", "limit": 5},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["answer"] == "At 1:05 the speaker explains it."
        assert data["chunks"][0]["timestamp_formatted"] == "1:05"
        mock_query_service.query.assert_awaited_once_with(
            "video-1", "What is photosynthesis?", limit=5
        )

    def test_query_not_indexed(self, client, mock_query_service):
        mock_query_service.query.side_effect = VideoNotIndexedException(
            "video-1", VideoStatus.PROCESSING
        )

        response = client.post("/v1/videos/video-1/query", json={"query": "q"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VIDEO_NOT_INDEXED"
        assert error["details"]["status"] == "processing"

    def test_query_no_relevant_content(self, client, mock_query_service):
        mock_query_service.query.side_effect = NoRelevantContentException(
            "video-1", "q"
        )

        response = client.post("/v1/videos/video-1/query", json={"query": "q"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        details = response.json()["error"]["details"]
        assert details["query"] == "q"
        assert len(details["suggestions"]) == 3

    def test_generation_failure_exposed_in_dev(self, client, mock_query_service):
        mock_query_service.query.side_effect = GenerationException(
            "gpt-4o", "rate limited"
        )

        response = client.post("/v1/videos/video-1/query", json={"query": "q"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        error = response.json()["error"]
        assert error["code"] == "GENERATION_FAILED"
        assert "rate limited" in error["message"]
        assert error["details"] == {"model": "gpt-4o"}

    def test_unexpected_error_hidden_in_prod(
        self,
        mock_factory,
        collections,
        mock_videos,
        mock_indexing_service,
        mock_query_service,
    ):
        """Test raw messages of server errors stay private in production."""
        client = _build_client(
            Settings(app={"environment": "prod"}),
            mock_factory,
            collections,
            mock_videos,
            mock_indexing_service,
            mock_query_service,
        )
        mock_query_service.query.side_effect = RuntimeError("db password is hunter2")

        response = client.post("/v1/videos/video-1/query", json={"query": "q"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["message"] == "An unexpected error occurred"

    @pytest.mark.parametrize(
        ("public_reason", "expected"),
        [
            ("Transcription failed", "Transcription failed"),
            (None, "An unexpected error occurred"),
        ],
    )
    def test_indexing_failure_reason_hidden_in_prod(
        self,
        public_reason,
        expected,
        mock_factory,
        collections,
        mock_videos,
        mock_indexing_service,
        mock_query_service,
    ):
        """Test provider text inside an indexing failure stays private."""
        client = _build_client(
            Settings(app={"environment": "prod"}),
            mock_factory,
            collections,
            mock_videos,
            mock_indexing_service,
            mock_query_service,
        )
        mock_indexing_service.reindex.side_effect = IndexingException(
            "video-1",
            "transcribing",
            "Transcription failed: 401 key aai-secret-123 rejected",
            public_reason=public_reason,
        )

        response = client.post("/v1/videos/video-1/reindex")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        error = response.json()["error"]
        assert error["code"] == "INDEXING_FAILED"
        assert error["message"] == expected
        assert "aai-secret-123" not in response.text
        assert error["details"] == {"video_id": "video-1", "stage": "transcribing"}
