from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

from ideaforge.constants import IDEAS_COLLECTION, USAGE_COLLECTION, VALIDATIONS_COLLECTION
from ideaforge.errors import StorageUnavailable
from ideaforge.utils.config import config
from ideaforge.utils.logger import logger

class MongoDBClient:
    def __init__(self):
        self.mongo_uri = config.mongo_uri
        self.client = None
        try:
            self.client = MongoClient(self.mongo_uri)

            self.db = self.client[config.mongo_db_name]
            self.usage_records = self.db[USAGE_COLLECTION]
            self.app_ideas = self.db[IDEAS_COLLECTION]
            self.validations = self.db[VALIDATIONS_COLLECTION]
            self.create_indexes()
        except PyMongoError as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            self.close()
            raise StorageUnavailable() from e

    def create_indexes(self):
        """Create necessary indexes for collections."""
        # Compound index backing the daily usage count
        self.usage_records.create_index(
            [("subject", ASCENDING), ("kind", ASCENDING), ("created_at", ASCENDING)]
        )

        # Saved ideas are listed per user, newest first
        self.app_ideas.create_index("idea_id", unique=True)
        self.app_ideas.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

        # One cached scorecard per idea
        self.validations.create_index("idea_id", unique=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def count_usage(self, subject: str, kind: str, start: datetime, end: datetime) -> int:
        """Count usage records for a subject and kind within [start, end)."""
        return self.usage_records.count_documents({
            "subject": subject,
            "kind": kind,
            "created_at": {"$gte": start, "$lt": end},
        })

    def insert_usage(self, subject: str, kind: str, created_at: datetime):
        """Insert a single usage record."""
        self.usage_records.insert_one({
            "subject": subject,
            "kind": kind,
            "created_at": created_at,
        })

    def save_idea(self, idea: dict, user_id: str) -> str:
        """Insert a new idea, or update it in place when it already has an id."""
        idea_id = idea.get("id")
        fields = {key: value for key, value in idea.items() if key not in ("id", "user_id", "created_at")}

        if idea_id:
            result = self.app_ideas.update_one(
                {"idea_id": idea_id, "user_id": user_id},
                {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}},
            )
            if result.matched_count:
                logger.info(f"Updated idea {idea_id}")
                return idea_id
            logger.warning(f"Idea {idea_id} not found for update, saving as new")

        idea_id = str(uuid4())
        self.app_ideas.insert_one({
            **fields,
            "idea_id": idea_id,
            "user_id": user_id,
            "created_at": datetime.now(timezone.utc),
        })
        logger.info(f"Saved new idea {idea_id}")
        return idea_id

    def list_ideas(self, user_id: str) -> List[dict]:
        """Fetch a user's saved ideas, newest first."""
        cursor = self.app_ideas.find({"user_id": user_id}, {"_id": 0}).sort("created_at", DESCENDING)
        return list(cursor)

    def delete_idea(self, idea_id: str, user_id: str) -> bool:
        """Delete an idea and its cached scorecard."""
        result = self.app_ideas.delete_one({"idea_id": idea_id, "user_id": user_id})
        if result.deleted_count:
            self.validations.delete_one({"idea_id": idea_id})
            logger.info(f"Deleted idea {idea_id}")
            return True
        return False

    def save_validation(self, idea_id: str, scorecard: dict):
        """Store the latest scorecard for an idea, replacing any previous one."""
        self.validations.replace_one(
            {"idea_id": idea_id},
            {"idea_id": idea_id, "scorecard": scorecard, "created_at": datetime.now(timezone.utc)},
            upsert=True,
        )
        logger.info(f"Cached validation for idea {idea_id}")

    def fetch_validation(self, idea_id: str) -> Optional[dict]:
        """Fetch the cached scorecard for an idea."""
        document = self.validations.find_one({"idea_id": idea_id})
        if document:
            return document["scorecard"]
        return None

    def close(self):
        """Close the MongoDB connection."""
        if self.client:
            self.client.close()
