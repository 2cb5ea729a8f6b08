"""Unit tests for Qdrant vector database provider."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from qdrant_client import models

from video_rag.commons.infrastructure.vectordb import (
    CollectionSchema,
    PayloadField,
    QdrantVectorDB,
    VectorPoint,
)
from video_rag.commons.infrastructure.vectordb.qdrant_provider import point_id_for

SCHEMA = CollectionSchema(
    name="texts",
    vector_size=3,
    fields=(PayloadField("video_id", "keyword"), PayloadField("timestamp", "float")),
)


def _collection_info(size: int = 3, status=models.CollectionStatus.GREEN):
    info = MagicMock()
    info.config.params.vectors = models.VectorParams(
        size=size, distance=models.Distance.COSINE
    )
    info.payload_schema = {"video_id": MagicMock()}
    info.status = status
    info.points_count = 12
    info.indexed_vectors_count = 10
    return info


@pytest.fixture
def mock_client():
    """Create a mock AsyncQdrantClient."""
    client = MagicMock()
    client.collection_exists = AsyncMock(return_value=True)
    client.get_collection = AsyncMock(return_value=_collection_info())
    client.create_collection = AsyncMock()
    client.delete_collection = AsyncMock()
    client.create_payload_index = AsyncMock()
    client.upsert = AsyncMock()
    client.query_points = AsyncMock()
    client.count = AsyncMock(return_value=MagicMock(count=0))
    client.delete = AsyncMock()
    client.get_collections = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def vector_db(mock_client):
    return QdrantVectorDB(client=mock_client, flush_attempts=3, flush_interval=0.001)


class TestPointIds:
    """Tests for record ID mapping."""

    def test_uuid5_is_stable(self):
        first = point_id_for("video-1_standard_0")
        assert first == point_id_for("video-1_standard_0")
        assert first != point_id_for("video-1_standard_1")
        assert uuid.UUID(first).version == 5


class TestQdrantVectorDB:
    """Tests for QdrantVectorDB."""

    async def test_create_collection(self, vector_db, mock_client):
        mock_client.collection_exists.return_value = False

        created = await vector_db.create_collection(SCHEMA)

        assert created is True
        kwargs = mock_client.create_collection.await_args.kwargs
        assert kwargs["collection_name"] == "texts"
        assert kwargs["vectors_config"].size == 3
        assert kwargs["vectors_config"].distance == models.Distance.COSINE

    async def test_create_existing_collection(self, vector_db, mock_client):
        assert await vector_db.create_collection(SCHEMA) is False
        mock_client.create_collection.assert_not_awaited()

    async def test_get_vector_size(self, vector_db, mock_client):
        mock_client.get_collection.return_value = _collection_info(size=768)
        assert await vector_db.get_vector_size("texts") == 768

    async def test_get_vector_size_missing(self, vector_db, mock_client):
        mock_client.collection_exists.return_value = False
        assert await vector_db.get_vector_size("texts") is None

    async def test_only_missing_indexes_created(self, vector_db, mock_client):
        created = await vector_db.ensure_payload_indexes(SCHEMA)

        assert created == ["timestamp"]
        kwargs = mock_client.create_payload_index.await_args.kwargs
        assert kwargs["field_name"] == "timestamp"
        assert kwargs["field_schema"] == models.PayloadSchemaType.FLOAT

    async def test_upsert_maps_ids(self, vector_db, mock_client):
        """Test record IDs become uuid5 point IDs and stay in the payload."""
        points = [
            VectorPoint(id="video-1_frame_1", vector=[0.1, 0.2], payload={"a": 1})
        ]

        count = await vector_db.upsert("frames", points)

        assert count == 1
        stored = mock_client.upsert.await_args.kwargs["points"][0]
        assert stored.id == point_id_for("video-1_frame_1")
        assert stored.payload == {"a": 1, "record_id": "video-1_frame_1"}
        assert mock_client.upsert.await_args.kwargs["wait"] is True

    async def test_upsert_empty(self, vector_db, mock_client):
        assert await vector_db.upsert("frames", []) == 0
        mock_client.upsert.assert_not_awaited()

    async def test_search_returns_record_ids(self, vector_db, mock_client):
        hit = MagicMock(
            id=point_id_for("video-1_standard_0"),
            score=0.8,
            payload={"record_id": "video-1_standard_0", "text_chunk": "hi"},
        )
        mock_client.query_points.return_value = MagicMock(points=[hit])

        results = await vector_db.search(
            "texts", [0.1, 0.2, 0.3], limit=5, filters={"video_id": "video-1"}
        )

        assert results[0].id == "video-1_standard_0"
        assert results[0].score == 0.8
        query_filter = mock_client.query_points.await_args.kwargs["query_filter"]
        assert query_filter.must[0].key == "video_id"
        assert query_filter.must[0].match.value == "video-1"

    async def test_delete_by_filter_reports_difference(self, vector_db, mock_client):
        mock_client.count.side_effect = [MagicMock(count=7), MagicMock(count=0)]

        deleted = await vector_db.delete_by_filter("texts", {"video_id": "v"})

        assert deleted == 7
        mock_client.delete.assert_awaited_once()

    async def test_delete_by_filter_nothing_to_delete(self, vector_db, mock_client):
        deleted = await vector_db.delete_by_filter("texts", {"video_id": "v"})

        assert deleted == 0
        mock_client.delete.assert_not_awaited()

    async def test_wait_until_ready_times_out(self, vector_db, mock_client):
        mock_client.get_collection.return_value = _collection_info(
            status=models.CollectionStatus.YELLOW
        )

        ready = await vector_db.wait_until_ready("texts", attempts=2, interval=0.001)

        assert ready is False

    async def test_flush_when_green(self, vector_db):
        assert await vector_db.flush("texts") is True

    async def test_collection_stats(self, vector_db):
        stats = await vector_db.get_collection_stats("texts")

        assert stats.exists is True
        assert stats.vector_size == 3
        assert stats.points_count == 12
        assert stats.status == "green"
        assert stats.indexed_fields == ["video_id"]

    async def test_collection_stats_missing(self, vector_db, mock_client):
        mock_client.collection_exists.return_value = False

        stats = await vector_db.get_collection_stats("texts")

        assert stats.exists is False
        assert stats.points_count == 0

    async def test_health_check_failure(self, vector_db, mock_client):
        mock_client.get_collections.side_effect = ConnectionError("refused")

        status = await vector_db.health_check()

        assert status.healthy is False
        assert "refused" in status.message


class TestBuildFilter:
    """Tests for payload filter translation."""

    def test_range_and_in(self, vector_db):
        qdrant_filter = vector_db._build_filter(
            {"timestamp": {"$gte": 10, "$lt": 20}, "strategy": {"$in": ["a", "b"]}}
        )

        conditions = {c.key: c for c in qdrant_filter.must}
        assert conditions["timestamp"].range.gte == 10
        assert conditions["timestamp"].range.lt == 20
        assert conditions["strategy"].match.any == ["a", "b"]

    def test_unsupported_operator(self, vector_db):
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            vector_db._build_filter({"timestamp": {"$near": 3}})
