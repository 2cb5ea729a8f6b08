"""Unit tests for MongoDB document database provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from video_rag.commons.infrastructure.documentdb.mongodb_provider import (
    MongoDBDocumentDB,
)


class TestMongoDBDocumentDB:
    """Tests for MongoDBDocumentDB provider.

    These tests verify the ID mapping between the domain 'id' field and
    MongoDB's '_id' field.
    """

    @pytest.fixture
    def mock_motor_client(self):
        """Create a mock Motor client."""
        with patch(
            "video_rag.commons.infrastructure.documentdb.mongodb_provider."
            "AsyncIOMotorClient"
        ) as mock_client_class:
            mock_client = MagicMock()
            mock_db = MagicMock()
            mock_collection = MagicMock()

            mock_client.__getitem__ = MagicMock(return_value=mock_db)
            mock_db.__getitem__ = MagicMock(return_value=mock_collection)

            mock_client_class.return_value = mock_client

            yield {
                "client_class": mock_client_class,
                "client": mock_client,
                "db": mock_db,
                "collection": mock_collection,
            }

    @pytest.fixture
    def mongodb_provider(self, mock_motor_client):
        """Create MongoDB provider with mocked client."""
        return MongoDBDocumentDB(
            connection_string="mongodb://localhost:27017",
            database_name="test_db",
        )

    # =========================================================================
    # Insert Tests
    # =========================================================================

    async def test_insert_uses_id_as_mongodb_id(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert uses document 'id' as MongoDB '_id'."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="video-uuid-123")
        )

        document = {"id": "video-uuid-123", "original_name": "clip.mp4"}

        result = await mongodb_provider.insert("videos", document)

        call_args = collection.insert_one.call_args[0][0]
        assert call_args["_id"] == "video-uuid-123"
        assert "id" not in call_args
        assert result == "video-uuid-123"

    async def test_insert_does_not_modify_original_document(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that insert doesn't modify the original document."""
        collection = mock_motor_client["collection"]
        collection.insert_one = AsyncMock(
            return_value=MagicMock(inserted_id="video-uuid")
        )

        original_document = {"id": "video-uuid", "original_name": "clip.mp4"}

        await mongodb_provider.insert("videos", original_document)

        assert "id" in original_document
        assert "_id" not in original_document

    # =========================================================================
    # Find Tests
    # =========================================================================

    async def test_find_by_id_maps_id(self, mongodb_provider, mock_motor_client):
        """Test find_by_id returns the document with 'id' restored."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(
            return_value={"_id": "video-uuid", "status": "completed"}
        )

        result = await mongodb_provider.find_by_id("videos", "video-uuid")

        collection.find_one.assert_called_with({"_id": "video-uuid"})
        assert result == {"id": "video-uuid", "status": "completed"}

    async def test_find_by_id_not_found(self, mongodb_provider, mock_motor_client):
        """Test find_by_id when document not found."""
        collection = mock_motor_client["collection"]
        collection.find_one = AsyncMock(return_value=None)

        result = await mongodb_provider.find_by_id("videos", "nonexistent")

        assert result is None

    async def test_find_applies_sort_skip_limit(
        self, mongodb_provider, mock_motor_client
    ):
        """Test that find pages the cursor and restores 'id' fields."""
        collection = mock_motor_client["collection"]

        async def mock_cursor():
            yield {"_id": "uuid-1", "original_name": "a.mp4"}
            yield {"_id": "uuid-2", "original_name": "b.mp4"}

        cursor_mock = MagicMock()
        cursor_mock.sort = MagicMock(return_value=cursor_mock)
        cursor_mock.skip = MagicMock(return_value=cursor_mock)
        cursor_mock.limit = MagicMock(return_value=cursor_mock)
        cursor_mock.__aiter__ = lambda self: mock_cursor()

        collection.find = MagicMock(return_value=cursor_mock)

        results = await mongodb_provider.find(
            "videos",
            {"uploaded_by": "u1"},
            skip=5,
            limit=2,
            sort=[("created_at", -1)],
        )

        collection.find.assert_called_once_with({"uploaded_by": "u1"})
        cursor_mock.sort.assert_called_once_with([("created_at", -1)])
        cursor_mock.skip.assert_called_once_with(5)
        cursor_mock.limit.assert_called_once_with(2)
        assert [doc["id"] for doc in results] == ["uuid-1", "uuid-2"]
        assert all("_id" not in doc for doc in results)

    # =========================================================================
    # Update and Replace Tests
    # =========================================================================

    async def test_update_strips_id(self, mongodb_provider, mock_motor_client):
        """Test update never rewrites the document ID."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=0)
        )

        result = await mongodb_provider.update(
            "videos", "video-uuid", {"status": "failed", "id": "other"}
        )

        call_args = collection.update_one.call_args[0]
        assert call_args[0] == {"_id": "video-uuid"}
        assert call_args[1] == {"$set": {"status": "failed"}}
        assert result is True

    async def test_update_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=0, modified_count=0)
        )

        result = await mongodb_provider.update(
            "videos", "nonexistent", {"status": "failed"}
        )

        assert result is False

    async def test_update_where_is_one_conditional_write(
        self, mongodb_provider, mock_motor_client
    ):
        """Test the match and the write go to MongoDB as one update_one."""
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=1, modified_count=1)
        )
        filters = {
            "id": "video-uuid",
            "$or": [{"status": {"$ne": "processing"}}, {"lease_owner": None}],
        }

        result = await mongodb_provider.update_where(
            "videos", filters, {"id": "video-uuid", "status": "processing"}
        )

        collection.update_one.assert_awaited_once_with(
            {
                "_id": "video-uuid",
                "$or": [{"status": {"$ne": "processing"}}, {"lease_owner": None}],
            },
            {"$set": {"status": "processing"}},
        )
        assert result is True
        assert "id" in filters

    async def test_update_where_no_match(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.update_one = AsyncMock(
            return_value=MagicMock(matched_count=0, modified_count=0)
        )

        result = await mongodb_provider.update_where(
            "videos", {"id": "video-uuid", "lease_owner": "run-a"}, {"status": "x"}
        )

        assert result is False

    async def test_replace_upserts_whole_document(
        self, mongodb_provider, mock_motor_client
    ):
        """Test replace stores the full document under the given ID."""
        collection = mock_motor_client["collection"]
        collection.replace_one = AsyncMock()

        await mongodb_provider.replace(
            "videos", "video-uuid", {"id": "video-uuid", "status": "processing"}
        )

        args, kwargs = collection.replace_one.call_args
        assert args[0] == {"_id": "video-uuid"}
        assert args[1] == {"_id": "video-uuid", "status": "processing"}
        assert kwargs == {"upsert": True}

    # =========================================================================
    # Delete and Count Tests
    # =========================================================================

    async def test_delete(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))

        result = await mongodb_provider.delete("videos", "video-uuid")

        collection.delete_one.assert_called_with({"_id": "video-uuid"})
        assert result is True

    async def test_delete_not_found(self, mongodb_provider, mock_motor_client):
        collection = mock_motor_client["collection"]
        collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=0))

        assert await mongodb_provider.delete("videos", "nonexistent") is False

    async def test_count_with_and_without_filters(
        self, mongodb_provider, mock_motor_client
    ):
        collection = mock_motor_client["collection"]
        collection.count_documents = AsyncMock(return_value=3)
        collection.estimated_document_count = AsyncMock(return_value=10)

        assert await mongodb_provider.count("videos", {"status": "failed"}) == 3
        assert await mongodb_provider.count("videos") == 10

    # =========================================================================
    # Health Tests
    # =========================================================================

    async def test_health_check_healthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(return_value={"ok": 1})

        status = await mongodb_provider.health_check()

        assert status.healthy is True
        assert status.details == {"database": "test_db"}

    async def test_health_check_unhealthy(self, mongodb_provider, mock_motor_client):
        mock_motor_client["client"].admin.command = AsyncMock(
            side_effect=ConnectionError("refused")
        )

        status = await mongodb_provider.health_check()

        assert status.healthy is False
        assert "refused" in status.message
