"""Offline-first orchestration of remote, local storage and the write queue.

The coordinator is the only component that talks to all three.  Reads are
served from the local snapshot; writes go to the remote when it answers and
into the ``MutationQueue`` when it does not.  Every public method resolves to
a tagged result model; none of them raise.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ..errors import (
    PersistFailureError,
    RemoteRejectedError,
    RemoteUnavailableError,
    StoreEmptyError,
)
from ..mode import ModeGate
from .mapper import map_snapshot
from .models import (
    CacheStatus,
    Condition,
    FlushReport,
    MutationOperation,
    Outcome,
    PullResult,
    ReadResult,
    WriteResult,
    utc_now,
)
from .queue import MutationQueue

if TYPE_CHECKING:
    from ..core.client import GraphQLClient
    from ..storage.base import StorageAdapter

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Route reads, writes and flushes under the configured mode.

    Args:
        remote: GraphQL client, or ``None`` when no endpoint is configured
            (the remote is then always offline).
        adapter: Primary storage adapter, or ``None`` when storage is
            disabled.
        queue: Queue receiving writes made while offline.
        gate: Mode gate captured at startup.
        backup: Optional second adapter mirrored on every pull and used for
            reads when the primary cannot serve.
        page_size: ``first`` argument for every connection in the snapshot
            query.
    """

    def __init__(
        self,
        remote: GraphQLClient | None,
        adapter: StorageAdapter | None,
        queue: MutationQueue,
        gate: ModeGate,
        backup: StorageAdapter | None = None,
        page_size: int = 100,
    ) -> None:
        self._remote = remote
        self._adapter = adapter
        self._backup = backup
        self._queue = queue
        self._gate = gate
        self._page_size = page_size
        self._lock = threading.RLock()
        self._condition = Condition.UNKNOWN
        self._last_probe_at: str | None = None
        self._last_pull_at: str | None = None
        self._last_flush_at: str | None = None

    @property
    def condition(self) -> Condition:
        return self._condition

    @property
    def gate(self) -> ModeGate:
        return self._gate

    @property
    def queue(self) -> MutationQueue:
        return self._queue

    @property
    def adapter(self) -> StorageAdapter | None:
        return self._adapter

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def probe(self) -> Condition:
        """Check remote reachability with a ``{ __typename }`` query."""
        self._last_probe_at = utc_now()
        if self._remote is None:
            self._set_condition(Condition.OFFLINE)
            return self._condition
        try:
            self._remote.ping()
        except Exception as e:
            logger.debug("Probe failed: %s", e)
            self._set_condition(Condition.OFFLINE)
        else:
            self._set_condition(Condition.ONLINE)
        return self._condition

    def _set_condition(self, condition: Condition) -> None:
        if condition is not self._condition:
            logger.info(
                "Remote condition: %s -> %s",
                self._condition.value,
                condition.value,
            )
        self._condition = condition

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def pull_snapshot(self) -> PullResult:
        """Fetch the full remote snapshot and persist it locally."""
        if self._adapter is None:
            return PullResult(
                outcome=Outcome.PERSIST_FAILURE,
                message="Storage is disabled; nothing to persist into",
            )

        if self.probe() is not Condition.ONLINE:
            return PullResult(
                outcome=Outcome.REMOTE_UNAVAILABLE,
                message="Remote is unreachable",
            )

        try:
            data = self._remote.fetch_snapshot(first=self._page_size)
            snapshot = map_snapshot(data)
        except RemoteUnavailableError as e:
            self._set_condition(Condition.OFFLINE)
            return PullResult(outcome=Outcome.REMOTE_UNAVAILABLE, message=str(e))
        except RemoteRejectedError as e:
            logger.warning("Snapshot query rejected: %s", e)
            return PullResult(
                outcome=Outcome.REJECTED, errors=e.errors, message=str(e)
            )
        except (ValidationError, ValueError) as e:
            logger.error("Snapshot could not be mapped: %s", e)
            return PullResult(outcome=Outcome.FAILED, message=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching snapshot")
            return PullResult(outcome=Outcome.FAILED, message=str(e))

        with self._lock:
            try:
                self._adapter.save_all(snapshot)
            except PersistFailureError as e:
                logger.error(
                    "Saving snapshot to %s failed: %s", self._adapter.name, e
                )
                return PullResult(outcome=Outcome.PERSIST_FAILURE, message=str(e))
            except Exception as e:
                logger.exception("Unexpected error saving snapshot")
                return PullResult(outcome=Outcome.PERSIST_FAILURE, message=str(e))

            backup_saved = self._mirror_to_backup(snapshot) if self._backup else None
            self._last_pull_at = utc_now()

        counts = snapshot.counts()
        logger.info("Pulled snapshot into %s: %s", self._adapter.name, counts)
        return PullResult(
            outcome=Outcome.OK,
            counts=counts,
            backup_saved=backup_saved,
            message=f"Snapshot saved to {self._adapter.name}",
        )

    def _mirror_to_backup(self, snapshot) -> bool:
        try:
            self._backup.save_all(snapshot)
        except Exception as e:
            logger.warning("Backup save to %s failed: %s", self._backup.name, e)
            return False
        return True

    def read_snapshot(self) -> ReadResult:
        """Serve the local snapshot, falling back to the backup adapter.

        When neither adapter can serve, the primary's failure decides the
        outcome: ``empty`` if it simply has no snapshot yet, ``unavailable``
        if it errored or storage is disabled.
        """
        if self._adapter is None and self._backup is None:
            return ReadResult(
                outcome=Outcome.UNAVAILABLE, message="Storage is disabled"
            )

        failure: ReadResult | None = None
        for adapter, stale in ((self._adapter, False), (self._backup, True)):
            if adapter is None:
                continue
            try:
                snapshot = adapter.get_all()
            except StoreEmptyError as e:
                result = ReadResult(outcome=Outcome.EMPTY, message=str(e))
            except Exception as e:
                logger.warning("Reading from %s failed: %s", adapter.name, e)
                result = ReadResult(outcome=Outcome.UNAVAILABLE, message=str(e))
            else:
                if stale:
                    logger.info("Serving snapshot from backup %s", adapter.name)
                return ReadResult(
                    outcome=Outcome.OK,
                    snapshot=snapshot,
                    source=adapter.name,
                    stale=stale,
                )
            if failure is None:
                failure = result

        if self._adapter is None:
            return ReadResult(
                outcome=Outcome.UNAVAILABLE,
                message=f"Storage is disabled; {failure.message}",
            )
        return failure

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def submit_write(self, operation: MutationOperation) -> WriteResult:
        """Apply *operation* remotely, or queue it when the remote is offline."""
        if not self._gate.can_write:
            logger.info(
                "Write %s refused in %s", operation.name, self._gate.mode.value
            )
            return WriteResult(
                outcome=Outcome.WRITE_FORBIDDEN,
                message=f"Writes are not allowed in {self._gate.mode.value}",
            )

        with self._lock:
            try:
                return self._submit_locked(operation)
            except PersistFailureError as e:
                logger.error("Could not queue %s: %s", operation.name, e)
                return WriteResult(
                    outcome=Outcome.FAILED,
                    message=f"Remote unavailable and queueing failed: {e}",
                )
            except Exception as e:
                logger.exception("Unexpected error submitting %s", operation.name)
                return WriteResult(outcome=Outcome.FAILED, message=str(e))

    def _submit_locked(self, operation: MutationOperation) -> WriteResult:
        if self._queue.has_unresolved_for(operation.record_key):
            entry = self._queue.enqueue(operation)
            return WriteResult(
                outcome=Outcome.QUEUED,
                queue_id=entry.id,
                message=(
                    f"Queued behind unresolved writes to {operation.record_key}"
                ),
            )

        if self._remote is None:
            self._set_condition(Condition.OFFLINE)
            entry = self._queue.enqueue(operation)
            return WriteResult(
                outcome=Outcome.QUEUED,
                queue_id=entry.id,
                message="No remote configured; write queued",
            )

        try:
            data = self._remote.execute_mutation(operation)
        except RemoteUnavailableError as e:
            self._set_condition(Condition.OFFLINE)
            entry = self._queue.enqueue(operation)
            return WriteResult(
                outcome=Outcome.QUEUED,
                queue_id=entry.id,
                message=f"Remote unavailable ({e}); write queued",
            )
        except RemoteRejectedError as e:
            self._set_condition(Condition.ONLINE)
            logger.warning("Write %s rejected: %s", operation.name, e)
            return WriteResult(
                outcome=Outcome.REJECTED, errors=e.errors, message=str(e)
            )

        self._set_condition(Condition.ONLINE)
        logger.info("Applied %s", operation.name)
        return WriteResult(outcome=Outcome.APPLIED, data=data)

    def flush_queue(self) -> FlushReport:
        """Replay pending writes if the remote is reachable.

        In ``CRUDMODE`` a flush that applied anything is followed by a
        snapshot pull so local state reflects the remote again.  The
        report's ``remaining`` counts pending entries only; failed dead
        letters are reported through ``status()``.  ``GETMODE`` never
        sends anything upstream and answers ``write_forbidden``.
        """
        if not self._gate.can_write:
            logger.info("Queue flush refused in %s", self._gate.mode.value)
            return FlushReport(
                outcome=Outcome.WRITE_FORBIDDEN,
                remaining=self._queue.pending_count(),
                completed_at=utc_now(),
                message=f"Flushing is not allowed in {self._gate.mode.value}",
            )

        with self._lock:
            if self.probe() is not Condition.ONLINE:
                return FlushReport(
                    outcome=Outcome.REMOTE_UNAVAILABLE,
                    remaining=self._queue.pending_count(),
                    halted=True,
                    completed_at=utc_now(),
                    message="Remote is unreachable; nothing flushed",
                )
            try:
                report = self._queue.flush(self._remote.execute_mutation)
            except PersistFailureError as e:
                logger.error("Queue flush could not persist: %s", e)
                return FlushReport(
                    outcome=Outcome.PERSIST_FAILURE,
                    remaining=self._queue.pending_count(),
                    completed_at=utc_now(),
                    message=str(e),
                )
            except Exception as e:
                logger.exception("Unexpected error flushing queue")
                return FlushReport(
                    outcome=Outcome.FAILED,
                    remaining=self._queue.pending_count(),
                    completed_at=utc_now(),
                    message=str(e),
                )
            if report.halted:
                self._set_condition(Condition.OFFLINE)
            self._last_flush_at = utc_now()

        if report.flushed and self._gate.pulls_remote_changes:
            pull = self.pull_snapshot()
            report = report.model_copy(update={"pull_outcome": pull.outcome})
        return report

    def discard_entry(self, entry_id: str) -> WriteResult:
        """Drop a queued write without sending it."""
        refused = self._refuse_queue_change("discard", entry_id)
        if refused is not None:
            return refused
        with self._lock:
            try:
                removed = self._queue.discard(entry_id)
            except PersistFailureError as e:
                logger.error("Could not discard %s: %s", entry_id, e)
                return WriteResult(outcome=Outcome.PERSIST_FAILURE, message=str(e))
        if not removed:
            return WriteResult(
                outcome=Outcome.NOT_FOUND,
                message=f"Queue entry {entry_id} not found",
            )
        return WriteResult(
            outcome=Outcome.OK,
            queue_id=entry_id,
            message=f"Discarded queue entry {entry_id}",
        )

    def retry_entry(self, entry_id: str) -> WriteResult:
        """Put a failed write back in line for the next flush."""
        refused = self._refuse_queue_change("retry", entry_id)
        if refused is not None:
            return refused
        with self._lock:
            try:
                updated = self._queue.retry(entry_id)
            except PersistFailureError as e:
                logger.error("Could not retry %s: %s", entry_id, e)
                return WriteResult(outcome=Outcome.PERSIST_FAILURE, message=str(e))
            if updated is not None:
                return WriteResult(
                    outcome=Outcome.QUEUED,
                    data=updated.model_dump(mode="json"),
                    queue_id=updated.id,
                    message=f"Queue entry {entry_id} is pending again",
                )
            if self._queue.get(entry_id) is None:
                return WriteResult(
                    outcome=Outcome.NOT_FOUND,
                    message=f"Queue entry {entry_id} not found",
                )
        return WriteResult(
            outcome=Outcome.REJECTED,
            message=f"Queue entry {entry_id} is not failed",
        )

    def _refuse_queue_change(self, action: str, entry_id: str) -> WriteResult | None:
        if self._gate.can_write:
            return None
        logger.info(
            "Queue %s of %s refused in %s", action, entry_id, self._gate.mode.value
        )
        return WriteResult(
            outcome=Outcome.WRITE_FORBIDDEN,
            message=f"Queue changes are not allowed in {self._gate.mode.value}",
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> CacheStatus:
        """Current mode, reachability, queue depth and adapter health."""
        adapter = self._adapter
        return CacheStatus(
            mode=self._gate.mode.value,
            condition=self._condition,
            pending=self._queue.pending_count(),
            failed=self._queue.failed_count(),
            adapter=adapter.name if adapter else None,
            adapter_healthy=adapter.health() if adapter else False,
            full_replace=adapter.full_replace if adapter else None,
            backup_adapter=self._backup.name if self._backup else None,
            last_probe_at=self._last_probe_at,
            last_pull_at=self._last_pull_at,
            last_flush_at=self._last_flush_at,
        )
