"""Pydantic models for the offline queue and the sync coordinator.

- ``MutationOperation``: a write request (operation name + variables).
- ``QueuedMutation``: one deferred write and its status.
- ``Condition`` / ``Outcome``: remote reachability and result tags.
- ``WriteResult``, ``PullResult``, ``ReadResult``, ``FlushReport``,
  ``CacheStatus``: what the coordinator returns.

Queue entries and reports are frozen; status changes go through
``model_copy(update=...)``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from ..core.documents import MUTATION_COLLECTIONS, MUTATIONS
from ..storage.base import CachedCollections


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MutationOperation(BaseModel):
    """A write request as the remote understands it.

    Attributes:
        name: Operation name, e.g. ``updatePost``.
        variables: GraphQL variables, normally ``{"input": {...}}``.
        document: Explicit GraphQL document.  Required when *name* is not
            one of the known ``MUTATIONS``.
    """

    name: str = Field(min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)
    document: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _require_document(self) -> MutationOperation:
        if self.document is None and self.name not in MUTATIONS:
            raise ValueError(
                f"Unknown mutation '{self.name}' and no document given. "
                f"Known mutations: {', '.join(sorted(MUTATIONS))}"
            )
        return self

    def resolve_document(self) -> str:
        return self.document or MUTATIONS[self.name]

    @property
    def collection(self) -> str | None:
        return MUTATION_COLLECTIONS.get(self.name)

    @property
    def record_key(self) -> str | None:
        """``<collection>:<id>`` of the targeted record, when known.

        Creates carry no id yet, so they have no key.
        """
        if self.collection is None:
            return None
        payload = self.variables.get("input", self.variables)
        if not isinstance(payload, dict):
            return None
        record_id = payload.get("id")
        if record_id is None:
            return None
        return f"{self.collection}:{record_id}"


class MutationStatus(str, Enum):
    PENDING = "pending"
    FLUSHED = "flushed"
    FAILED = "failed"


class QueuedMutation(BaseModel):
    """One write that could not be applied remotely yet.

    Attributes:
        id: Generated identifier (uuid4 hex).
        created_at: ISO 8601 timestamp of the enqueue.
        operation: The deferred write.
        status: pending, flushed or failed.
        attempts: Number of flush attempts.
        last_error: Error text from the last failed attempt.
        last_attempt_at: ISO 8601 timestamp of the last attempt.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = Field(default_factory=utc_now)
    operation: MutationOperation
    status: MutationStatus = MutationStatus.PENDING
    attempts: int = 0
    last_error: str | None = None
    last_attempt_at: str | None = None

    model_config = {"frozen": True}


class Condition(str, Enum):
    """Remote reachability as last observed."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class Outcome(str, Enum):
    """Tag on every coordinator result."""

    OK = "ok"
    APPLIED = "applied"
    QUEUED = "queued"
    REJECTED = "rejected"
    WRITE_FORBIDDEN = "write_forbidden"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    PERSIST_FAILURE = "persist_failure"
    NOT_FOUND = "not_found"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


class WriteResult(BaseModel):
    """Result of ``submit_write`` and of queue entry changes.

    Attributes:
        outcome: applied, queued, rejected, write_forbidden, not_found,
            persist_failure or failed.
        data: Remote payload when applied; the entry when retried.
        queue_id: Queue entry id when queued.
        errors: Remote error entries when rejected.
        message: Human-readable detail.
    """

    outcome: Outcome
    data: dict[str, Any] | None = None
    queue_id: str | None = None
    errors: list[dict[str, Any]] = []
    message: str = ""

    model_config = {"frozen": True}


class PullResult(BaseModel):
    """Result of ``pull_snapshot``; *counts* holds records per collection."""

    outcome: Outcome
    counts: dict[str, int] = {}
    errors: list[dict[str, Any]] = []
    message: str = ""
    backup_saved: bool | None = None

    model_config = {"frozen": True}


class ReadResult(BaseModel):
    """Result of ``read_snapshot``.

    Attributes:
        outcome: ok, empty or unavailable.
        snapshot: The snapshot when outcome is ok.
        source: Name of the adapter that served it.
        stale: True when served from the backup adapter.
    """

    outcome: Outcome
    snapshot: CachedCollections | None = None
    source: str | None = None
    stale: bool = False
    message: str = ""

    model_config = {"frozen": True}


class FlushEntryResult(BaseModel):
    """What happened to one queue entry during a flush."""

    id: str
    operation: str
    status: MutationStatus
    skipped: bool = False
    error: str | None = None

    model_config = {"frozen": True}


class FlushReport(BaseModel):
    """Aggregate result of a flush.

    Attributes:
        flushed: Entries applied remotely and removed from the queue.
        failed: Entries rejected by the remote during this flush.
        remaining: Entries still pending afterwards.  Failed dead letters
            are not counted; see ``CacheStatus.failed``.
        outcome: ok, remote_unavailable when nothing could be sent, or
            write_forbidden in GETMODE.
        halted: True if the remote became unreachable mid-flush.
        results: Per-entry results in processing order.
        pull_outcome: Outcome of the snapshot refresh that followed, if any.
    """

    outcome: Outcome = Outcome.OK
    flushed: int = 0
    failed: int = 0
    remaining: int = 0
    halted: bool = False
    results: list[FlushEntryResult] = []
    started_at: str = Field(default_factory=utc_now)
    completed_at: str | None = None
    pull_outcome: Outcome | None = None
    message: str = ""

    model_config = {"frozen": True}

    def summary(self) -> str:
        return (
            f"{self.flushed} flushed, {self.failed} failed, "
            f"{self.remaining} remaining"
        )


class CacheStatus(BaseModel):
    """Mode, reachability, queue depth and adapter state in one snapshot."""

    mode: str
    condition: Condition
    pending: int
    failed: int
    adapter: str | None
    adapter_healthy: bool
    full_replace: bool | None
    backup_adapter: str | None = None
    last_probe_at: str | None = None
    last_pull_at: str | None = None
    last_flush_at: str | None = None

    model_config = {"frozen": True}
