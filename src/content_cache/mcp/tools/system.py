"""System tool handlers for MCP server.

- ``ping`` -- probe the remote and report reachability.
- ``cache_status`` -- mode, reachability, queue depth and storage health.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync, run_sync_limited
from ...sync.coordinator import SyncCoordinator
from ...sync.models import Condition
from ...sync.reporter import format_status, to_json
from .errors import build_error_response, build_text_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_NO_ARGS = {"type": "object", "properties": {}, "required": []}


async def _handle_ping(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- probe remote connectivity."""
    condition = await run_sync_limited(coordinator.probe)
    structured = {
        "condition": condition.value,
        "mode": coordinator.gate.mode.value,
    }
    if condition is Condition.ONLINE:
        return build_text_response(
            "Remote reachable. Writes apply immediately.", structured
        )
    return build_error_response(
        "remote_unavailable",
        "Remote unreachable. Reads are served from the local cache"
        " and permitted writes are queued.",
        "Check CONTENT_CACHE_GRAPHQL_URL and network connectivity, then retry.",
        structured,
    )


async def _handle_cache_status(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    """Handle cache_status tool.

    Does not probe the remote; the condition reported is the last one
    observed.
    """
    status = await run_sync(coordinator.status)
    text = format_status(status, coordinator.gate.describe())
    return build_text_response(text, to_json(status))


SYSTEM_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="ping",
            description="Check whether the remote content source is reachable.",
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema=_NO_ARGS,
        ),
        handler=_handle_ping,
    ),
    ToolSpec(
        tool=types.Tool(
            name="cache_status",
            description=(
                "Show the operating mode, last known remote condition, "
                "queued write counts and storage backend health."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_NO_ARGS,
        ),
        handler=_handle_cache_status,
    ),
]
