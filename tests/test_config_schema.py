"""Tests for content_cache.config_schema: YAML section models."""

import pytest
from pydantic import ValidationError

from content_cache.config_schema import (
    RemoteConfig,
    UnifiedConfig,
    build_config,
    to_fallbacks,
)


class TestBuildConfig:
    def test_empty_gives_defaults(self):
        unified = build_config({})
        assert unified == UnifiedConfig()
        assert unified.storage.backend == "JSONDB"
        assert unified.cache.mode == "GETMODE"
        assert unified.remote.url is None

    def test_sections_parsed(self):
        unified = build_config(
            {
                "remote": {"url": "https://cms.example.com/graphql", "timeout": 3},
                "storage": {"backend": "SQLITEDB", "sqlite_path": "/tmp/c.db"},
                "cache": {"mode": "SETMODE"},
                "logging": {"level": "DEBUG"},
            }
        )
        assert unified.remote.timeout == 3.0
        assert unified.storage.sqlite_path == "/tmp/c.db"
        assert unified.logging.level == "DEBUG"

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            RemoteConfig(max_parallel_requests=0)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_config({"remote": {"timeout": 1000}})

    def test_frozen(self):
        with pytest.raises(ValidationError):
            UnifiedConfig().cache.mode = "CRUDMODE"


class TestToFallbacks:
    def test_flattens_and_drops_none(self):
        unified = build_config(
            {
                "remote": {"url": "https://cms.example.com/graphql"},
                "storage": {"backend": "MEMORYDB"},
                "cache": {"queue_path": "q.json"},
            }
        )
        fallbacks = to_fallbacks(unified)
        assert fallbacks["url"] == "https://cms.example.com/graphql"
        assert fallbacks["backend"] == "MEMORYDB"
        assert fallbacks["queue_path"] == "q.json"
        assert fallbacks["mode"] == "GETMODE"
        assert "auth_token" not in fallbacks
        assert "json_path" not in fallbacks
        assert "level" not in fallbacks
