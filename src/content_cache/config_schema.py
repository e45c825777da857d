"""Unified configuration schema for content_cache.

Defines Pydantic models for the YAML config structure with dedicated
sections for the remote endpoint, local storage, cache policy and logging.

Usage:
    from content_cache.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class RemoteConfig(BaseModel):
    """GraphQL endpoint settings.

    All fields are optional: with no URL the cache runs offline.
    """

    url: str | None = Field(default=None, description="GraphQL endpoint URL")
    auth_token: str | None = Field(
        default=None, description="Bearer token"
    )
    username: str | None = Field(default=None, description="Basic auth user")
    password: str | None = Field(
        default=None, description="Basic auth password"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    timeout: float = Field(
        default=10.0,
        ge=0.1,
        le=300,
        description="Timeout in seconds for every remote call",
    )
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent requests to the endpoint (1-100)",
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Local snapshot storage.

    Attributes:
        backend: JSONDB, SQLITEDB, MEMORYDB or FALSE.
        backup_backend: Optional second adapter mirrored on every pull.
        json_path: File used by the JSON backend.
        sqlite_path: Database used by the SQLite backend.
    """

    backend: str = Field(default="JSONDB", description="Primary backend")
    backup_backend: str = Field(default="FALSE", description="Backup backend")
    json_path: str | None = Field(default=None, description="JSON file path")
    sqlite_path: str | None = Field(
        default=None, description="SQLite database path"
    )

    model_config = {"frozen": True}


class CacheConfig(BaseModel):
    """Write policy and the mutation queue location."""

    mode: str = Field(
        default="GETMODE", description="GETMODE, SETMODE or CRUDMODE"
    )
    queue_path: str | None = Field(
        default=None, description="Mutation queue file"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()`` (zero-config)
    is always valid.
    """

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the config sections into the ``yaml_fallbacks`` dict accepted
    by ``load_config()``.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    merged: dict[str, Any] = {}
    for section in (unified.remote, unified.storage, unified.cache):
        merged.update(
            {k: v for k, v in section.model_dump().items() if v is not None}
        )
    return merged
