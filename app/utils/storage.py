"""
Key-value persistence for JSON-shaped values.

Each key holds a serialized JSON string. Readers decide how to recover
from a missing or corrupt value; the stores only move strings around.
"""
from typing import Dict, Optional
import json
import logging

logger = logging.getLogger(__name__)


class MemoryKeyValueStore:
    """Process-local store, used for single-instance runs and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class MongoKeyValueStore:
    """One document per key: {"_id": key, "value": "<json>"}."""

    def __init__(self, collection):
        self.collection = collection

    def get(self, key: str) -> Optional[str]:
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return None
        return doc.get("value")

    def set(self, key: str, value: str) -> None:
        self.collection.update_one(
            {"_id": key},
            {"$set": {"value": value}},
            upsert=True
        )

    def delete(self, key: str) -> None:
        self.collection.delete_one({"_id": key})


def load_json_list(storage, key: str) -> list:
    """Read a persisted list; missing, corrupt or non-list values give []."""
    try:
        raw = storage.get(key)
    except Exception as e:
        logger.warning(f"Could not read '{key}' from storage: {e}")
        return []
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding corrupt value stored under '{key}': {e}")
        return []
    if not isinstance(value, list):
        logger.warning(f"Discarding non-list value stored under '{key}'")
        return []
    return value


def save_json_list(storage, key: str, items: list) -> bool:
    try:
        storage.set(key, json.dumps(items, ensure_ascii=False, default=str))
        return True
    except Exception as e:
        logger.error(f"❌ Failed to persist '{key}': {e}")
        return False
