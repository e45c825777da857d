"""Tests for the adapter selector and the mode gate."""

import logging

import pytest

from content_cache.mode import Mode, ModeGate, can_write, parse_mode
from content_cache.storage.json_adapter import JsonFileAdapter
from content_cache.storage.memory_adapter import MemoryAdapter
from content_cache.storage.selector import (
    AdapterName,
    create_adapter,
    normalize_adapter_name,
)
from content_cache.storage.sqlite_adapter import SqliteAdapter


class TestNormalizeAdapterName:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("JSONDB", AdapterName.JSON),
            ("jsondb", AdapterName.JSON),
            ("Json", AdapterName.JSON),
            ("SQLITEDB", AdapterName.SQLITE),
            ("sqlite", AdapterName.SQLITE),
            ("MemoryDB", AdapterName.MEMORY),
            (" memory ", AdapterName.MEMORY),
        ],
    )
    def test_known_names(self, value, expected):
        assert normalize_adapter_name(value) is expected

    @pytest.mark.parametrize("value", [None, "", "FALSE", "false", "lmdb", "postgres"])
    def test_everything_else_is_disabled(self, value):
        assert normalize_adapter_name(value) is AdapterName.DISABLED


class TestCreateAdapter:
    def test_builds_each_backend(self, tmp_path):
        json_path = tmp_path / "full.json"
        sqlite_path = tmp_path / "content.sqlite3"

        json_adapter = create_adapter(
            AdapterName.JSON, json_path=json_path, sqlite_path=sqlite_path
        )
        sqlite_adapter = create_adapter(
            AdapterName.SQLITE, json_path=json_path, sqlite_path=sqlite_path
        )
        memory_adapter = create_adapter(AdapterName.MEMORY)

        assert isinstance(json_adapter, JsonFileAdapter)
        assert json_adapter.path == json_path
        assert isinstance(sqlite_adapter, SqliteAdapter)
        assert sqlite_adapter.path == sqlite_path
        assert isinstance(memory_adapter, MemoryAdapter)

    def test_disabled_returns_none(self):
        assert create_adapter(AdapterName.DISABLED) is None

    def test_construction_does_not_touch_disk(self, tmp_path):
        create_adapter(
            AdapterName.SQLITE, sqlite_path=tmp_path / "db" / "x.sqlite3"
        )
        assert not (tmp_path / "db").exists()


class TestParseMode:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("GETMODE", Mode.GETMODE),
            ("setmode", Mode.SETMODE),
            (" CrudMode ", Mode.CRUDMODE),
        ],
    )
    def test_known_modes(self, value, expected):
        assert parse_mode(value) is expected

    def test_unknown_falls_back_to_getmode_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="content_cache.mode"):
            assert parse_mode("WRITEALL") is Mode.GETMODE
        assert "WRITEALL" in caplog.text

    def test_empty_falls_back_silently(self, caplog):
        with caplog.at_level(logging.WARNING, logger="content_cache.mode"):
            assert parse_mode(None) is Mode.GETMODE
            assert parse_mode("") is Mode.GETMODE
        assert caplog.text == ""


class TestModeGate:
    def test_can_write(self):
        assert can_write(Mode.GETMODE) is False
        assert can_write(Mode.SETMODE) is True
        assert can_write(Mode.CRUDMODE) is True

    def test_gate_properties(self):
        assert ModeGate(Mode.GETMODE).can_write is False
        assert ModeGate(Mode.SETMODE).pulls_remote_changes is False
        assert ModeGate(Mode.CRUDMODE).pulls_remote_changes is True
        assert ModeGate(Mode.CRUDMODE).mode is Mode.CRUDMODE

    def test_describe_mentions_policy(self):
        assert "forbidden" in ModeGate(Mode.GETMODE).describe()
        assert "queue" in ModeGate(Mode.SETMODE).describe()
