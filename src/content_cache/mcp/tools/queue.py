"""MCP tool handlers for the offline write queue.

- ``queue_list`` -- show queued writes, oldest first.
- ``queue_flush`` -- replay pending writes when the remote is reachable.
- ``queue_discard`` -- drop one entry.
- ``queue_retry`` -- move a failed entry back to pending.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync, run_sync_limited
from ...sync.coordinator import SyncCoordinator
from ...sync.models import MutationStatus, Outcome
from ...sync.reporter import format_flush_report, format_queue_listing, to_json
from .errors import build_error_response, build_text_response, outcome_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)


def _entry_id(args: dict) -> str:
    entry_id = args.get("entry_id")
    if not isinstance(entry_id, str) or not entry_id.strip():
        raise ValueError("'entry_id' is required")
    return entry_id.strip()


def _not_found(entry_id: str) -> types.CallToolResult:
    return build_error_response(
        "not_found",
        f"No queue entry with id {entry_id}",
        "Use queue_list to see current entry ids.",
    )


async def _handle_queue_list(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    entries = await run_sync(coordinator.queue.list)
    status = args.get("status")
    if status is not None:
        wanted = MutationStatus(status)
        entries = [e for e in entries if e.status is wanted]
    return build_text_response(
        format_queue_listing(entries),
        {"entries": [e.model_dump(mode="json") for e in entries]},
    )


async def _handle_queue_flush(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    report = await run_sync_limited(coordinator.flush_queue)
    return outcome_response(
        report.outcome, format_flush_report(report), to_json(report)
    )


async def _handle_queue_discard(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    entry_id = _entry_id(args)
    result = await run_sync(coordinator.discard_entry, entry_id)
    if result.outcome is Outcome.NOT_FOUND:
        return _not_found(entry_id)
    if result.outcome is not Outcome.OK:
        return outcome_response(result.outcome, result.message, to_json(result))
    return build_text_response(
        f"Discarded {entry_id}.", {"discarded": entry_id}
    )


async def _handle_queue_retry(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    entry_id = _entry_id(args)
    result = await run_sync(coordinator.retry_entry, entry_id)
    if result.outcome is Outcome.NOT_FOUND:
        return _not_found(entry_id)
    if result.outcome is Outcome.REJECTED:
        return build_error_response(
            "validation_error",
            f"Queue entry {entry_id} is not failed",
            "Only failed entries can be retried; pending ones flush on queue_flush.",
        )
    if result.outcome is not Outcome.QUEUED:
        return outcome_response(result.outcome, result.message, to_json(result))
    entry = result.data
    return build_text_response(
        f"{entry_id} ({entry['operation']['name']}) is pending again. "
        "Run queue_flush to replay it.",
        entry,
    )


_ENTRY_ID_SCHEMA = {
    "type": "object",
    "properties": {
        "entry_id": {
            "type": "string",
            "description": "Queue entry id from queue_list",
        },
    },
    "required": ["entry_id"],
}

QUEUE_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="queue_list",
            description="List queued writes in order, with status and last error.",
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "enum": [s.value for s in MutationStatus],
                        "description": "Only list entries with this status",
                    },
                },
                "required": [],
            },
        ),
        handler=_handle_queue_list,
    ),
    ToolSpec(
        tool=types.Tool(
            name="queue_flush",
            description=(
                "Replay pending writes against the remote in order. A no-op "
                "when the remote is unreachable."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=False,
                openWorldHint=True,
            ),
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        handler=_handle_queue_flush,
        writes=True,
    ),
    ToolSpec(
        tool=types.Tool(
            name="queue_discard",
            description="Remove a queued write without sending it.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_ENTRY_ID_SCHEMA,
        ),
        handler=_handle_queue_discard,
        writes=True,
    ),
    ToolSpec(
        tool=types.Tool(
            name="queue_retry",
            description="Move a failed queued write back to pending.",
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema=_ENTRY_ID_SCHEMA,
        ),
        handler=_handle_queue_retry,
        writes=True,
    ),
]
