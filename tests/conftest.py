"""Shared pytest fixtures for content-cache-mcp tests."""

from unittest.mock import MagicMock

import pytest

from content_cache.config import Config
from content_cache.core.client import GraphQLClient
from content_cache.mode import Mode, ModeGate
from content_cache.storage.base import CachedCollections
from content_cache.storage.json_adapter import JsonFileAdapter
from content_cache.storage.memory_adapter import MemoryAdapter
from content_cache.storage.sqlite_adapter import SqliteAdapter
from content_cache.sync.coordinator import SyncCoordinator
from content_cache.sync.queue import MutationQueue


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live GraphQL endpoint",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live GraphQL endpoint"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def mock_config():
    """Create a Config pointing at a fake endpoint."""
    return Config(
        graphql_url="https://cms.example.com/graphql",
        auth_token="secret-token",
        insecure=False,
    )


@pytest.fixture
def mock_remote(mock_config):
    """Create a mock GraphQLClient that is reachable by default."""
    client = MagicMock(spec=GraphQLClient)
    client.config = mock_config
    client.ping.return_value = "RootQuery"
    return client


@pytest.fixture
def sample_collections():
    """A small snapshot with every collection and the optional fields."""
    return CachedCollections(
        posts=[
            {"id": 1, "title": "Hello", "status": "publish"},
            {"id": 2, "title": "Draft", "status": "draft"},
        ],
        categories=[{"id": 10, "name": "News", "slug": "news"}],
        tags=[{"id": 20, "name": "python", "slug": "python"}],
        authors=[{"id": 30, "name": "Editor"}],
        pages=[{"id": 40, "title": "About"}],
        site={"title": "Example", "url": "https://cms.example.com"},
        menu=[{"id": 50, "label": "Home", "url": "/"}],
    )


@pytest.fixture
def memory_adapter():
    return MemoryAdapter()


@pytest.fixture
def json_adapter(tmp_path):
    return JsonFileAdapter(tmp_path / "json" / "full.json")


@pytest.fixture
def sqlite_adapter(tmp_path):
    return SqliteAdapter(tmp_path / "db" / "content.sqlite3")


@pytest.fixture(params=["memory", "json", "sqlite"])
def any_adapter(request, tmp_path):
    """Every backend, for contract tests."""
    match request.param:
        case "memory":
            return MemoryAdapter()
        case "json":
            return JsonFileAdapter(tmp_path / "json" / "full.json")
        case "sqlite":
            return SqliteAdapter(tmp_path / "db" / "content.sqlite3")


@pytest.fixture
def queue(tmp_path):
    return MutationQueue(tmp_path / "queue.json")


@pytest.fixture
def make_coordinator(mock_remote, memory_adapter, queue):
    """Factory building a coordinator around the shared mocks."""

    def _make(mode=Mode.SETMODE, **kwargs):
        kwargs.setdefault("remote", mock_remote)
        kwargs.setdefault("adapter", memory_adapter)
        kwargs.setdefault("queue", queue)
        return SyncCoordinator(gate=ModeGate(mode), **kwargs)

    return _make
