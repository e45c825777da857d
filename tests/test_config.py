"""Tests for content_cache.config: precedence and validation."""

import logging

import pytest

from content_cache.config import (
    DEFAULT_JSON_PATH,
    DEFAULT_QUEUE_PATH,
    Config,
    load_config,
    validate_config,
)

_ENV_VARS = [
    "CONTENT_CACHE_GRAPHQL_URL",
    "CONTENT_CACHE_AUTH_TOKEN",
    "CONTENT_CACHE_USERNAME",
    "CONTENT_CACHE_PASSWORD",
    "CONTENT_CACHE_INSECURE",
    "CONTENT_CACHE_DEBUG",
    "CONTENT_CACHE_TIMEOUT",
    "CONTENT_CACHE_MAX_PARALLEL_REQUESTS",
    "GRAPHQL_MODE",
    "CONTENT_CACHE_BACKEND",
    "CONTENT_CACHE_BACKUP_BACKEND",
    "JSON_DATA_PATH",
    "SQLITE_DATA_PATH",
    "CONTENT_CACHE_QUEUE_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


class TestDefaults:
    def test_zero_config_is_offline_getmode(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config()
        assert config.graphql_url is None
        assert config.mode == "GETMODE"
        assert config.backend == "JSONDB"
        assert config.backup_backend == "FALSE"
        assert config.json_path == DEFAULT_JSON_PATH
        assert config.queue_path == DEFAULT_QUEUE_PATH
        assert config.timeout == 10.0
        assert config.max_parallel_requests == 5
        assert "running offline" in caplog.text


class TestPrecedence:
    def test_cli_beats_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("CONTENT_CACHE_GRAPHQL_URL", "https://env.example.com/graphql")
        monkeypatch.setenv("GRAPHQL_MODE", "SETMODE")
        fallbacks = {
            "url": "https://yaml.example.com/graphql",
            "mode": "CRUDMODE",
            "backend": "SQLITEDB",
        }
        config = load_config(
            url="https://cli.example.com/graphql", yaml_fallbacks=fallbacks
        )
        assert config.graphql_url == "https://cli.example.com/graphql"
        assert config.mode == "SETMODE"
        assert config.backend == "SQLITEDB"

    def test_numbers_from_env_and_yaml(self, monkeypatch):
        monkeypatch.setenv("CONTENT_CACHE_TIMEOUT", "2.5")
        config = load_config(yaml_fallbacks={"max_parallel_requests": 8, "timeout": 30})
        assert config.timeout == 2.5
        assert config.max_parallel_requests == 8

    def test_bad_number_in_env(self, monkeypatch):
        monkeypatch.setenv("CONTENT_CACHE_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="CONTENT_CACHE_TIMEOUT"):
            load_config()

    def test_insecure_from_env(self, monkeypatch):
        monkeypatch.setenv("CONTENT_CACHE_INSECURE", "yes")
        assert load_config().insecure is True

    @pytest.mark.parametrize("value", ["none", "FALSE", ":memory:"])
    def test_in_memory_queue(self, monkeypatch, value):
        monkeypatch.setenv("CONTENT_CACHE_QUEUE_PATH", value)
        assert load_config().queue_path is None

    def test_credentials_from_env(self, monkeypatch):
        monkeypatch.setenv("CONTENT_CACHE_USERNAME", "editor")
        monkeypatch.setenv("CONTENT_CACHE_PASSWORD", "app-password")
        config = load_config(token="tok")
        assert (config.username, config.password, config.auth_token) == (
            "editor",
            "app-password",
            "tok",
        )


class TestValidation:
    def test_url_scheme_required(self):
        with pytest.raises(ValueError, match="http"):
            validate_config(Config(graphql_url="cms.example.com/graphql"))

    def test_url_hostname_required(self):
        with pytest.raises(ValueError, match="hostname"):
            validate_config(Config(graphql_url="https://"))

    def test_url_is_stripped(self):
        config = Config(graphql_url="  https://cms.example.com/graphql ")
        validate_config(config)
        assert config.graphql_url == "https://cms.example.com/graphql"

    @pytest.mark.parametrize("timeout", [0.0, 301])
    def test_timeout_range(self, timeout):
        with pytest.raises(ValueError, match="timeout"):
            validate_config(Config(timeout=timeout))

    @pytest.mark.parametrize("value", [0, 101])
    def test_parallel_range(self, value):
        with pytest.raises(ValueError, match="max_parallel_requests"):
            validate_config(Config(max_parallel_requests=value))
