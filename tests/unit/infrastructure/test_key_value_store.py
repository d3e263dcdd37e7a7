from __future__ import annotations

from src.infrastructure.storage.key_value import InMemoryKeyValueStore, JsonFileKeyValueStore


def test_in_memory_store_roundtrip():
    store = InMemoryKeyValueStore()
    assert store.get("unreadCount") is None
    store.set("unreadCount", "3")
    assert store.get("unreadCount") == "3"
    store.delete("unreadCount")
    store.delete("unreadCount")
    assert store.get("unreadCount") is None


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "state.json"
    JsonFileKeyValueStore(path).set("unreadCount", "7")

    reopened = JsonFileKeyValueStore(path)
    assert reopened.get("unreadCount") == "7"
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_tolerates_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileKeyValueStore(path)
    assert store.get("unreadCount") is None
    store.set("unreadCount", "1")
    assert store.get("unreadCount") == "1"


def test_json_file_store_delete(tmp_path):
    store = JsonFileKeyValueStore(tmp_path / "state.json")
    store.set("a", "1")
    store.set("b", "2")
    store.delete("a")
    assert store.get("a") is None
    assert store.get("b") == "2"
