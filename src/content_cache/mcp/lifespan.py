"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, to_fallbacks
from ..core.async_utils import init_semaphore, run_sync_limited
from ..core.client import GraphQLClient
from ..errors import PersistFailureError
from ..mode import ModeGate, parse_mode
from ..storage.base import StorageAdapter
from ..storage.selector import AdapterName, create_adapter, normalize_adapter_name
from ..sync.coordinator import SyncCoordinator
from ..sync.models import Condition
from ..sync.queue import MutationQueue

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def build_coordinator(config: Config) -> SyncCoordinator:
    """Wire the remote client, adapters, queue and mode gate from *config*.

    Raises:
        PersistFailureError: If an existing queue file cannot be read.
    """
    gate = ModeGate(parse_mode(config.mode))
    adapter = create_adapter(
        normalize_adapter_name(config.backend),
        json_path=config.json_path,
        sqlite_path=config.sqlite_path,
    )
    backup = _create_backup(config, adapter)
    queue = MutationQueue(config.queue_path)
    remote = GraphQLClient(config) if config.graphql_url else None
    return SyncCoordinator(remote, adapter, queue, gate, backup=backup)


def _create_backup(
    config: Config, primary: StorageAdapter | None
) -> StorageAdapter | None:
    name = normalize_adapter_name(config.backup_backend)
    if name is AdapterName.DISABLED:
        return None
    if name is normalize_adapter_name(config.backend):
        logger.warning(
            "Backup backend %s is the primary backend; backup disabled",
            name.value,
        )
        return None
    if primary is None:
        logger.warning("Backup backend set but primary storage is disabled")
    return create_adapter(
        name,
        json_path=config.json_path,
        sqlite_path=config.sqlite_path,
    )


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Build the storage adapters, mutation queue and SyncCoordinator
    - Probe the remote once; an unreachable remote is reported, not fatal

    On shutdown:
    - Log shutdown message and remaining queue depth

    Args:
        config_overrides: Optional dict with config values from CLI
            (url, token, mode, backend, insecure, debug)

    Yields:
        Dict with 'coordinator' and 'config' keys

    Raises:
        RuntimeError: If configuration is invalid or the queue file is unreadable.
    """
    logger.info("MCP server starting...")
    _stderr_print("Content Cache MCP Server starting...")

    # Load configuration with unified precedence:
    # CLI args > env vars (.env loaded first) > YAML config > defaults
    try:
        # .env first so ${VAR} interpolation in YAML can use its values
        load_dotenv()

        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            unified = build_config(load_hierarchical_config())
            yaml_fallbacks = to_fallbacks(unified)
            sources.append(f"config file: {config_files[0]}")

        overrides = config_overrides or {}
        config = load_config(
            url=overrides.get("url"),
            token=overrides.get("token"),
            mode=overrides.get("mode"),
            backend=overrides.get("backend"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    try:
        coordinator = build_coordinator(config)
    except PersistFailureError as e:
        logger.error("Cannot open mutation queue: %s", e)
        _stderr_print(f"ERROR: {e}")
        _stderr_print(
            "  Move the queue file aside or set CONTENT_CACHE_QUEUE_PATH."
        )
        raise RuntimeError(f"Cannot open mutation queue: {e}") from e

    status = coordinator.status()
    _stderr_print(f"  Mode: {status.mode}")
    _stderr_print(
        f"  Storage: {status.adapter or 'disabled'}"
        + (f" (backup: {status.backup_adapter})" if status.backup_adapter else "")
    )
    _stderr_print(f"  Queue: {status.pending} pending, {status.failed} failed")

    init_semaphore(config.max_parallel_requests)
    _stderr_print(f"  Parallel requests: {config.max_parallel_requests}")

    # Offline is a normal operating state; the probe only informs
    condition = await run_sync_limited(coordinator.probe)
    if condition is Condition.ONLINE:
        logger.info("Remote reachable at %s", config.graphql_url)
        _stderr_print(f"  Remote: {config.graphql_url} (online)")
    else:
        logger.warning("Remote unreachable; starting offline")
        _stderr_print(
            f"  Remote: {config.graphql_url or 'not configured'} (offline)"
        )
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"coordinator": coordinator, "config": config}

    pending = coordinator.queue.pending_count()
    logger.info("MCP server shutting down (%d writes pending)", pending)
    _stderr_print("Content Cache MCP Server shutting down.")
