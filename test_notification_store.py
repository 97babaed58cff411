"""
Tests for the persisted notification store and its targeting/dedup rules.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock
import json

import pytest

from app.schemas.notification import NotificationCreate, RolesAudience, UsersAudience
from app.utils.notification_store import NotificationStore
from app.utils.read_state import unread_count
from app.utils.storage import MemoryKeyValueStore, MongoKeyValueStore, load_json_list

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def storage():
    return MemoryKeyValueStore()


@pytest.fixture
def store(storage):
    return NotificationStore(storage, clock=lambda: NOW)


def test_add_fills_defaults(store):
    created = store.add({"title": "Hello"})

    assert len(created) == 1
    record = store.list()[0]
    assert record["id"] == str(int(NOW.timestamp() * 1000))
    assert record["type"] == "info"
    assert record["path"] == "/"
    assert record["icon"] == "Bell"
    assert record["color"] == "blue"
    assert record["message"] == ""
    assert record["read"] is False
    assert record["createdAt"] == NOW.isoformat()
    assert "forUser" not in record and "forRoles" not in record


def test_add_persists_full_list(store, storage):
    store.add({"title": "one"})
    store.add({"title": "two"})

    persisted = json.loads(storage.get("notifications"))
    assert [n["title"] for n in persisted] == ["two", "one"]


def test_new_records_are_prepended_with_unique_ids(store):
    store.add({"title": "first"})
    store.add({"title": "second"})

    titles = [n["title"] for n in store.list()]
    ids = [n["id"] for n in store.list()]
    assert titles == ["second", "first"]
    assert len(set(ids)) == 2


def test_caller_cannot_override_generated_fields(store):
    store.add({"title": "t", "read": True, "id": "mine", "createdAt": "yesterday"})

    record = store.list()[0]
    assert record["read"] is False
    assert record["id"] != "mine"
    assert record["createdAt"] == NOW.isoformat()


def test_extra_payload_is_kept(store):
    store.add({"type": "invoice-created", "invoiceNumber": "INV-7"})

    assert store.list()[0]["invoiceNumber"] == "INV-7"


def test_add_none_is_a_noop(store, storage):
    assert store.add(None) == []
    assert store.list() == []
    assert storage.get("notifications") is None


def test_add_with_two_targeting_fields_is_rejected(store):
    created = store.add({"title": "t", "forUser": "alice", "forRoles": ["admin"]})

    assert created == []
    assert store.list() == []


def test_for_users_expands_one_record_per_user(store):
    store.add({"title": "t", "message": "m", "forUsers": ["alice", "bob"]})

    records = store.list()
    assert len(records) == 2
    base_id = str(int(NOW.timestamp() * 1000))
    assert {n["id"] for n in records} == {f"{base_id}-user-alice", f"{base_id}-user-bob"}
    assert {n["forUser"] for n in records} == {"alice", "bob"}
    assert all("forUsers" not in n for n in records)


def test_for_users_skips_empty_usernames(store):
    store.add(NotificationCreate(audience=UsersAudience(usernames=["alice", ""])))

    assert [n["forUser"] for n in store.list()] == ["alice"]


def test_for_users_ignores_null_entries(store):
    created = store.add({"title": "t", "forUsers": ["alice", None]})

    assert [n["forUser"] for n in created] == ["alice"]
    assert [n["forUser"] for n in store.list()] == ["alice"]


def test_for_roles_is_one_record_with_roles_suffix(store):
    store.add(NotificationCreate(title="t", audience=RolesAudience(roles=["مدير", "محاسب"])))

    records = store.list()
    assert len(records) == 1
    assert records[0]["id"].endswith("-roles")
    assert records[0]["forRoles"] == ["مدير", "محاسب"]


def test_mark_read_and_unread_count(store):
    store.add({"forUser": "mgr1", "type": "invoice-created", "title": "t", "message": "m"})
    record = store.list()[0]
    viewer = {"username": "mgr1", "role": "مدير"}

    assert record["forUser"] == "mgr1"
    assert record["read"] is False
    assert unread_count(store.list(), viewer) == 1

    assert store.mark_read(record["id"]) is True
    assert store.get(record["id"])["read"] is True
    assert unread_count(store.list(), viewer) == 0


def test_mark_read_unknown_id_is_noop(store):
    listener = MagicMock()
    store.add({"title": "t"})
    store.subscribe(listener)

    assert store.mark_read("missing") is False
    listener.assert_not_called()


def test_mark_all_read(store):
    store.add({"title": "a", "forUser": "alice"})
    store.add({"title": "b", "forRoles": ["admin"]})
    store.add({"title": "c"})

    store.mark_all_read()

    assert all(n["read"] for n in store.list())
    assert unread_count(store.list(), {"username": "alice", "role": "admin"}) == 0


def test_mark_all_read_with_predicate(store):
    store.add({"title": "a", "forUser": "alice"})
    store.add({"title": "b", "forUser": "bob"})

    count = store.mark_all_read(lambda n: n.get("forUser") == "alice")

    assert count == 1
    assert {n["forUser"]: n["read"] for n in store.list()} == {"alice": True, "bob": False}


def test_remove_and_clear(store, storage):
    store.add({"title": "a"})
    store.add({"title": "b"})
    first_id = store.list()[0]["id"]

    assert store.remove(first_id) is True
    assert store.remove(first_id) is False
    assert [n["title"] for n in store.list()] == ["a"]

    store.clear()
    assert store.list() == []
    assert load_json_list(storage, "notifications") == []


def test_navigate_marks_read_and_returns_path(store):
    store.add({"title": "trip", "path": "/trips"})
    record_id = store.list()[0]["id"]

    assert store.navigate(record_id) == "/trips"
    assert store.get(record_id)["read"] is True
    assert store.navigate("missing") is None


def test_list_returns_copies(store):
    store.add({"title": "t"})
    store.list()[0]["read"] = True

    assert store.list()[0]["read"] is False


def test_reload_from_storage(storage):
    NotificationStore(storage, clock=lambda: NOW).add({"title": "kept"})

    reloaded = NotificationStore(storage, clock=lambda: NOW)
    reloaded.add({"title": "newer"})

    assert [n["title"] for n in reloaded.list()] == ["newer", "kept"]
    assert len({n["id"] for n in reloaded.list()}) == 2


@pytest.mark.parametrize("raw", ["{not json", json.dumps({"a": 1}), "", json.dumps(None)])
def test_corrupt_storage_loads_empty(raw):
    store = NotificationStore(MemoryKeyValueStore({"notifications": raw}))

    assert store.list() == []


def test_failing_subscriber_does_not_break_mutation(store):
    calls = []

    def broken(_):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(calls.append)
    store.add({"title": "t"})

    assert len(store.list()) == 1
    assert len(calls) == 1


def test_same_customer_and_type_without_expiry_supersedes(store):
    store.add({"type": "renewal", "customerId": "c1", "title": "old"})
    store.add({"type": "renewal", "customerId": "c1", "title": "new"})
    store.add({"type": "other", "customerId": "c1", "title": "different type"})

    titles = [n["title"] for n in store.list()]
    assert titles == ["different type", "new"]


def test_different_expiry_date_supersedes_but_same_date_is_kept(store):
    base = {"type": "certificate_expiry", "customerId": "c1"}
    store.add({**base, "expiryDate": "2026-11-01"})
    store.add({**base, "expiryDate": "2026-11-01"})

    assert len(store.list()) == 2

    store.add({**base, "expiryDate": "2026-12-01"})

    assert [n["expiryDate"] for n in store.list()] == ["2026-12-01"]


def test_mongo_key_value_store_uses_one_document_per_key():
    collection = MagicMock()
    collection.find_one.return_value = {"_id": "notifications", "value": "[]"}
    mongo = MongoKeyValueStore(collection)

    assert mongo.get("notifications") == "[]"
    collection.find_one.assert_called_once_with({"_id": "notifications"})

    mongo.set("notifications", "[1]")
    collection.update_one.assert_called_once_with(
        {"_id": "notifications"}, {"$set": {"value": "[1]"}}, upsert=True
    )


def test_storage_write_failure_keeps_memory_state():
    storage = MagicMock()
    storage.get.return_value = None
    storage.set.side_effect = RuntimeError("disk full")
    store = NotificationStore(storage, clock=lambda: NOW)

    store.add({"title": "t"})

    assert len(store.list()) == 1
