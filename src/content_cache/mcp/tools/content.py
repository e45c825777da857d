"""MCP tool handlers for cached content.

Defines three tools:

- ``content_read`` -- serve the local snapshot (whole, one collection, or
  one record).
- ``content_pull`` -- refresh the local snapshot from the remote.
- ``content_write`` -- submit a write; applied, queued or refused by mode.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import mcp.types as types

from ...core.async_utils import run_sync, run_sync_limited
from ...core.documents import MUTATIONS
from ...storage.base import COLLECTION_NAMES
from ...sync.coordinator import SyncCoordinator
from ...sync.models import MutationOperation, Outcome
from ...sync.reporter import format_snapshot_summary, to_json
from .errors import outcome_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_content_read(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    collection = args.get("collection")
    record_id = args.get("id")

    if collection is not None and collection not in COLLECTION_NAMES:
        raise ValueError(
            f"Unknown collection '{collection}'. "
            f"Expected one of: {', '.join(COLLECTION_NAMES)}"
        )
    if record_id is not None and collection is None:
        raise ValueError("'id' requires 'collection'")

    result = await run_sync(coordinator.read_snapshot)
    structured: dict[str, Any] = {
        "outcome": result.outcome.value,
        "source": result.source,
        "stale": result.stale,
    }
    if result.outcome is not Outcome.OK:
        return outcome_response(
            result.outcome, result.message or result.outcome.value, structured
        )

    snapshot = result.snapshot
    structured["counts"] = snapshot.counts()

    if collection is None:
        structured["site"] = snapshot.site
        return outcome_response(
            result.outcome, format_snapshot_summary(result), structured
        )

    records = snapshot.collection(collection)
    if record_id is None:
        items = [records[key] for key in sorted(records)]
        structured["records"] = items
        text = f"{len(items)} {collection}"
        if result.stale:
            text += " (backup copy, may be stale)"
        return outcome_response(result.outcome, text, structured)

    try:
        record = records[int(record_id)]
    except (KeyError, TypeError, ValueError):
        return outcome_response(
            Outcome.EMPTY,
            f"No {collection} record with id {record_id} in the cache",
            {**structured, "outcome": Outcome.EMPTY.value},
        )
    structured["record"] = record
    return outcome_response(
        result.outcome, json.dumps(record, indent=2, default=str), structured
    )


async def _handle_content_pull(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    result = await run_sync_limited(coordinator.pull_snapshot)
    if result.outcome is Outcome.OK:
        counts = ", ".join(f"{k}: {v}" for k, v in result.counts.items())
        text = f"{result.message} ({counts})"
    else:
        text = result.message or result.outcome.value
    return outcome_response(result.outcome, text, to_json(result))


async def _handle_content_write(
    coordinator: SyncCoordinator, args: dict
) -> types.CallToolResult:
    payload = args.get("input")
    if payload is not None and not isinstance(payload, dict):
        raise ValueError("'input' must be an object")

    operation = MutationOperation(
        name=args.get("operation", ""),
        variables={"input": payload or {}},
        document=args.get("document"),
    )
    result = await run_sync_limited(coordinator.submit_write, operation)

    match result.outcome:
        case Outcome.APPLIED:
            text = f"{operation.name} applied."
            if result.data:
                text += "\n" + json.dumps(result.data, indent=2, default=str)
        case Outcome.QUEUED:
            text = (
                f"{operation.name} queued as {result.queue_id}. "
                f"{result.message}"
            )
        case _:
            text = result.message or result.outcome.value
    return outcome_response(result.outcome, text, to_json(result))


# ---------------------------------------------------------------------------
# Tool specs
# ---------------------------------------------------------------------------


CONTENT_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="content_read",
            description=(
                "Read cached content from local storage. Without arguments "
                "returns per-collection counts; with 'collection' returns its "
                "records; with 'collection' and 'id' returns one record. "
                "Works offline."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "collection": {
                        "type": "string",
                        "enum": list(COLLECTION_NAMES),
                        "description": "Collection to read",
                    },
                    "id": {
                        "type": "integer",
                        "description": "Record id within the collection",
                    },
                },
                "required": [],
            },
        ),
        handler=_handle_content_read,
    ),
    ToolSpec(
        tool=types.Tool(
            name="content_pull",
            description=(
                "Fetch the full content snapshot from the remote and save it "
                "to local storage."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        handler=_handle_content_pull,
    ),
    ToolSpec(
        tool=types.Tool(
            name="content_write",
            description=(
                "Submit a create/update/delete for posts, pages, categories or "
                "tags. Applied immediately when the remote is reachable, "
                "queued for a later flush when it is not. Refused in GETMODE."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=False,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "operation": {
                        "type": "string",
                        "enum": sorted(MUTATIONS),
                        "description": "Mutation name, e.g. updatePost",
                    },
                    "input": {
                        "type": "object",
                        "description": "Mutation input; include 'id' for updates and deletes",
                    },
                    "document": {
                        "type": "string",
                        "description": "Explicit GraphQL document (advanced)",
                    },
                },
                "required": ["operation", "input"],
            },
        ),
        handler=_handle_content_write,
        writes=True,
    ),
]
