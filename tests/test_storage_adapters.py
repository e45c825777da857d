"""Tests for the storage adapters.

Covers:
- Contract shared by every backend (round-trip, empty store, health)
- Disconnected copies from get_all()
- Empty collections persist and read back as empty
- Full replace (json, memory) vs upsert (sqlite)
- JSON document layout and malformed files
- SQLite site/menu retention and read-only health checks
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from content_cache.errors import PersistFailureError, StoreEmptyError
from content_cache.storage.base import (
    COLLECTION_NAMES,
    CachedCollections,
    StorageAdapter,
)
from content_cache.storage.json_adapter import JsonFileAdapter
from content_cache.storage.memory_adapter import MemoryAdapter
from content_cache.storage.sqlite_adapter import SqliteAdapter

# ---------------------------------------------------------------------------
# Snapshot model
# ---------------------------------------------------------------------------


class TestCachedCollections:
    def test_list_input_is_indexed_by_id(self):
        data = CachedCollections(posts=[{"id": 3, "title": "x"}])
        assert data.posts == {3: {"id": 3, "title": "x"}}

    def test_later_duplicate_wins(self):
        data = CachedCollections(
            tags=[{"id": 1, "name": "old"}, {"id": 1, "name": "new"}]
        )
        assert data.tags[1]["name"] == "new"

    def test_string_ids_are_coerced(self):
        data = CachedCollections(pages=[{"id": "7"}])
        assert 7 in data.pages

    def test_record_without_numeric_id_is_rejected(self):
        with pytest.raises(ValueError):
            CachedCollections(posts=[{"id": "abc"}])
        with pytest.raises(ValueError):
            CachedCollections(posts=[{"title": "no id"}])

    def test_counts_cover_every_collection(self, sample_collections):
        assert sample_collections.counts() == {
            "posts": 2,
            "categories": 1,
            "tags": 1,
            "authors": 1,
            "pages": 1,
        }

    def test_collection_unknown_name(self):
        with pytest.raises(KeyError):
            CachedCollections().collection("comments")


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class TestAdapterContract:
    """Behaviour every backend must share."""

    def test_satisfies_protocol(self, any_adapter):
        assert isinstance(any_adapter, StorageAdapter)
        assert any_adapter.name in ("json", "sqlite", "memory")

    def test_get_all_before_save_raises_empty(self, any_adapter):
        with pytest.raises(StoreEmptyError):
            any_adapter.get_all()

    def test_health_false_before_save_true_after(
        self, any_adapter, sample_collections
    ):
        assert any_adapter.health() is False
        any_adapter.save_all(sample_collections)
        assert any_adapter.health() is True

    def test_round_trip(self, any_adapter, sample_collections):
        any_adapter.save_all(sample_collections)
        assert any_adapter.get_all() == sample_collections

    def test_get_all_returns_disconnected_copy(
        self, any_adapter, sample_collections
    ):
        any_adapter.save_all(sample_collections)
        first = any_adapter.get_all()
        first.posts[1]["title"] = "mutated"
        first.posts[99] = {"id": 99}
        second = any_adapter.get_all()
        assert second.posts[1]["title"] == "Hello"
        assert 99 not in second.posts

    def test_empty_collections_round_trip(self, any_adapter):
        any_adapter.save_all(CachedCollections())
        result = any_adapter.get_all()
        for name in COLLECTION_NAMES:
            assert result.collection(name) == {}
        assert any_adapter.health() is True


# ---------------------------------------------------------------------------
# Overwrite semantics
# ---------------------------------------------------------------------------


class TestOverwriteSemantics:
    def test_full_replace_drops_missing_ids(self, tmp_path: Path):
        for adapter in (
            MemoryAdapter(),
            JsonFileAdapter(tmp_path / "full.json"),
        ):
            assert adapter.full_replace is True
            adapter.save_all(CachedCollections(posts=[{"id": 1}, {"id": 2}]))
            adapter.save_all(CachedCollections(posts=[{"id": 2}]))
            assert set(adapter.get_all().posts) == {2}

    def test_upsert_keeps_missing_ids(self, sqlite_adapter):
        assert sqlite_adapter.full_replace is False
        sqlite_adapter.save_all(
            CachedCollections(posts=[{"id": 1, "v": 1}, {"id": 2, "v": 1}])
        )
        sqlite_adapter.save_all(CachedCollections(posts=[{"id": 2, "v": 2}]))
        posts = sqlite_adapter.get_all().posts
        assert set(posts) == {1, 2}
        assert posts[2]["v"] == 2


# ---------------------------------------------------------------------------
# JSON specifics
# ---------------------------------------------------------------------------


class TestJsonFileAdapter:
    def test_creates_parent_directories(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "full.json"
        JsonFileAdapter(path).save_all(CachedCollections())
        assert path.is_file()

    def test_document_layout(self, json_adapter, sample_collections):
        json_adapter.save_all(sample_collections)
        document = json.loads(json_adapter.path.read_text(encoding="utf-8"))
        assert document["format"] == "content-cache/snapshot"
        assert document["version"] == 1
        assert "saved_at" in document
        assert document["posts"]["1"]["title"] == "Hello"
        assert document["site"]["title"] == "Example"

    def test_no_temp_files_left_behind(self, json_adapter, sample_collections):
        json_adapter.save_all(sample_collections)
        leftovers = list(json_adapter.path.parent.glob("*.tmp"))
        assert leftovers == []

    def test_corrupt_file_is_persist_failure(self, json_adapter):
        json_adapter.path.parent.mkdir(parents=True)
        json_adapter.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistFailureError):
            json_adapter.get_all()

    def test_non_object_root_is_persist_failure(self, json_adapter):
        json_adapter.path.parent.mkdir(parents=True)
        json_adapter.path.write_text("[]", encoding="utf-8")
        with pytest.raises(PersistFailureError):
            json_adapter.get_all()

    def test_unwritable_location_is_persist_failure(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        adapter = JsonFileAdapter(blocker / "full.json")
        with pytest.raises(PersistFailureError):
            adapter.save_all(CachedCollections())


# ---------------------------------------------------------------------------
# SQLite specifics
# ---------------------------------------------------------------------------


class TestSqliteAdapter:
    def test_health_does_not_create_database(self, sqlite_adapter):
        assert sqlite_adapter.health() is False
        assert not sqlite_adapter.path.exists()

    def test_site_and_menu_kept_when_not_supplied(
        self, sqlite_adapter, sample_collections
    ):
        sqlite_adapter.save_all(sample_collections)
        sqlite_adapter.save_all(CachedCollections(posts=[{"id": 3}]))
        result = sqlite_adapter.get_all()
        assert result.site == sample_collections.site
        assert result.menu == sample_collections.menu
        assert set(result.posts) == {1, 2, 3}

    def test_one_table_per_collection(self, sqlite_adapter, sample_collections):
        sqlite_adapter.save_all(sample_collections)
        conn = sqlite3.connect(sqlite_adapter.path)
        try:
            tables = {
                row[0]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                )
            }
        finally:
            conn.close()
        assert set(COLLECTION_NAMES) | {"meta"} <= tables

    def test_database_without_marker_is_empty(self, sqlite_adapter):
        sqlite_adapter.path.parent.mkdir(parents=True)
        sqlite3.connect(sqlite_adapter.path).close()
        assert sqlite_adapter.health() is False
        with pytest.raises(StoreEmptyError):
            sqlite_adapter.get_all()


# ---------------------------------------------------------------------------
# Memory specifics
# ---------------------------------------------------------------------------


class TestMemoryAdapter:
    def test_save_stores_a_copy(self, memory_adapter, sample_collections):
        memory_adapter.save_all(sample_collections)
        sample_collections.posts[1]["title"] = "changed after save"
        assert memory_adapter.get_all().posts[1]["title"] == "Hello"

    def test_clear(self, memory_adapter, sample_collections):
        memory_adapter.save_all(sample_collections)
        memory_adapter.clear()
        assert memory_adapter.health() is False
        with pytest.raises(StoreEmptyError):
            memory_adapter.get_all()
