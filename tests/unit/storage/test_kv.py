"""Tests for key-value persistence collaborators."""

import json
from pathlib import Path

from tradelog.core.interfaces import IKeyValueStore
from tradelog.storage.kv import JsonFileKeyValueStore, MemoryKeyValueStore


class TestMemoryKeyValueStore:
    def test_get_set(self):
        store = MemoryKeyValueStore({"a": "1"})
        assert store.get("a") == "1"
        assert store.get("missing") is None
        store.set("b", "2")
        assert store.data == {"a": "1", "b": "2"}

    def test_satisfies_protocol(self):
        assert isinstance(MemoryKeyValueStore(), IKeyValueStore)


class TestJsonFileKeyValueStore:
    def test_missing_file_starts_empty(self, tmp_path: Path):
        store = JsonFileKeyValueStore(tmp_path / "state.json")
        assert store.get("trades") is None
        assert not store.path.exists()

    def test_set_persists(self, tmp_path: Path):
        path = tmp_path / "nested" / "state.json"
        JsonFileKeyValueStore(path).set("trades", "[]")
        assert json.loads(path.read_text(encoding="utf-8")) == {"trades": "[]"}
        assert JsonFileKeyValueStore(path).get("trades") == "[]"

    def test_corrupt_file_treated_as_empty(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileKeyValueStore(path)
        assert store.get("trades") is None
        store.set("trades", "[]")
        assert JsonFileKeyValueStore(path).get("trades") == "[]"

    def test_non_object_file_treated_as_empty(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert JsonFileKeyValueStore(path).get("0") is None

    def test_non_string_values_ignored(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text('{"trades": 5, "regOptions": "{}"}', encoding="utf-8")
        store = JsonFileKeyValueStore(path)
        assert store.get("trades") is None
        assert store.get("regOptions") == "{}"
