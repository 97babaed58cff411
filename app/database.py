from pymongo import MongoClient
from app.config import MONGO_URI, MONGO_DB_NAME
import logging

logger = logging.getLogger(__name__)

_client = None


def get_client() -> MongoClient:
    """Create the Mongo client on first use so importing never connects."""
    global _client
    if _client is None:
        _client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=5000)
        try:
            _client.admin.command("ping")
            logger.info("✅ MongoDB connected")
        except Exception as e:
            logger.error(f"❌ MongoDB connection error: {e}")
    return _client


def get_database():
    return get_client()[MONGO_DB_NAME]


def get_key_value_collection():
    return get_database()["key_value_store"]
