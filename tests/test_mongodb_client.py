"""
Tests for the MongoDB client.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import patch, MagicMock
from pymongo.errors import ConfigurationError, ServerSelectionTimeoutError

from ideaforge.errors import StorageUnavailable
from ideaforge.utils.mongodb_client import MongoDBClient


@pytest.fixture
def mock_mongo_client():
    """Fixture providing a mocked pymongo MongoClient with one mock per collection."""
    with patch('ideaforge.utils.mongodb_client.MongoClient') as mock_client:
        collections = {}
        database = mock_client.return_value.__getitem__.return_value
        database.__getitem__.side_effect = lambda name: collections.setdefault(name, MagicMock())
        mock_client.collections = collections
        yield mock_client


@pytest.fixture
def mongodb_client(mock_mongo_client):
    return MongoDBClient()


class TestMongoDBClient:
    """Tests for the MongoDBClient class."""

    def test_creates_indexes(self, mongodb_client):
        mongodb_client.usage_records.create_index.assert_called_once()
        assert mongodb_client.app_ideas.create_index.call_count == 2
        mongodb_client.validations.create_index.assert_called_once_with("idea_id", unique=True)

    def test_unreachable_server(self, mock_mongo_client):
        database = mock_mongo_client.return_value.__getitem__.return_value
        database.__getitem__.side_effect = None
        database.__getitem__.return_value.create_index.side_effect = ServerSelectionTimeoutError("refused")

        with pytest.raises(StorageUnavailable):
            MongoDBClient()

        mock_mongo_client.return_value.close.assert_called_once()

    def test_invalid_uri(self, mock_mongo_client):
        mock_mongo_client.side_effect = ConfigurationError("bad uri")

        with pytest.raises(StorageUnavailable):
            MongoDBClient()

    def test_count_usage_queries_window(self, mongodb_client):
        start = datetime(2025, 3, 14, tzinfo=timezone.utc)
        end = datetime(2025, 3, 15, tzinfo=timezone.utc)
        mongodb_client.usage_records.count_documents.return_value = 2

        assert mongodb_client.count_usage("user-1", "enhancement", start, end) == 2
        mongodb_client.usage_records.count_documents.assert_called_once_with({
            "subject": "user-1",
            "kind": "enhancement",
            "created_at": {"$gte": start, "$lt": end},
        })

    def test_save_new_idea(self, mongodb_client):
        idea_id = mongodb_client.save_idea({"name": "PlantPal", "id": None}, "user-1")

        document = mongodb_client.app_ideas.insert_one.call_args[0][0]
        assert document["idea_id"] == idea_id
        assert document["user_id"] == "user-1"
        assert document["name"] == "PlantPal"
        assert "id" not in document

    def test_update_existing_idea(self, mongodb_client):
        mongodb_client.app_ideas.update_one.return_value.matched_count = 1

        assert mongodb_client.save_idea({"name": "PlantPal", "id": "idea-1"}, "user-1") == "idea-1"
        mongodb_client.app_ideas.insert_one.assert_not_called()

    def test_delete_idea_removes_cached_validation(self, mongodb_client):
        mongodb_client.app_ideas.delete_one.return_value.deleted_count = 1

        assert mongodb_client.delete_idea("idea-1", "user-1") is True
        mongodb_client.validations.delete_one.assert_called_once_with({"idea_id": "idea-1"})


if __name__ == "__main__":
    # This allows running the tests directly with python
    import sys
    sys.exit(pytest.main(["-v", __file__]))
