"""Durable FIFO queue of writes that could not reach the remote.

Entries live in a single JSON file (``{"version": 1, "entries": [...]}``)
rewritten atomically after every change: the document is written to a temp
file in the same directory, fsynced, then moved over the target with
``os.replace()``.  Without a path the queue is held in memory only.

Flush semantics:

* Only ``pending`` entries are processed, oldest first.
* Success removes the entry.
* ``RemoteRejectedError`` (or any unexpected error) marks the entry
  ``failed``; it stays in the queue as a dead letter and the flush goes on.
* Later entries targeting the same record as a failed entry are skipped and
  stay ``pending`` so they are never applied out of order.
* ``RemoteUnavailableError`` stops the flush; the entry and everything after
  it stay ``pending``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import PersistFailureError, RemoteUnavailableError
from .models import (
    FlushEntryResult,
    FlushReport,
    MutationOperation,
    MutationStatus,
    Outcome,
    QueuedMutation,
    utc_now,
)

logger = logging.getLogger(__name__)

QUEUE_FORMAT_VERSION = 1

Executor = Callable[[MutationOperation], Any]


class MutationQueue:
    """Ordered store of deferred writes.

    Args:
        path: Queue file.  ``None`` keeps the queue in memory only.

    Raises:
        PersistFailureError: If an existing queue file cannot be read.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._entries: list[QueuedMutation] = self._load()

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def durable(self) -> bool:
        return self._path is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> list[QueuedMutation]:
        """Return every entry in insertion order."""
        with self._lock:
            return list(self._entries)

    def get(self, entry_id: str) -> QueuedMutation | None:
        with self._lock:
            index = self._index_of(entry_id)
            return None if index is None else self._entries[index]

    def pending_count(self) -> int:
        with self._lock:
            return self._count(MutationStatus.PENDING)

    def failed_count(self) -> int:
        with self._lock:
            return self._count(MutationStatus.FAILED)

    def has_unresolved_for(self, record_key: str | None) -> bool:
        """Whether a pending or failed entry already targets *record_key*."""
        if record_key is None:
            return False
        with self._lock:
            return any(
                e.status is not MutationStatus.FLUSHED
                and e.operation.record_key == record_key
                for e in self._entries
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def enqueue(self, operation: MutationOperation) -> QueuedMutation:
        """Append *operation* as a new ``pending`` entry.

        Raises:
            PersistFailureError: If the queue file cannot be written.  The
                entry is not kept in that case.
        """
        entry = QueuedMutation(operation=operation)
        with self._lock:
            self._entries.append(entry)
            try:
                self._save()
            except PersistFailureError:
                self._entries.pop()
                raise
        logger.info(
            "Queued %s (%s); %d pending",
            operation.name,
            entry.id,
            self.pending_count(),
        )
        return entry

    def discard(self, entry_id: str) -> bool:
        """Remove an entry regardless of status.  Returns ``False`` if absent.

        Raises:
            PersistFailureError: If the queue file cannot be written.  The
                entry stays queued in that case.
        """
        with self._lock:
            index = self._index_of(entry_id)
            if index is None:
                return False
            before = list(self._entries)
            removed = self._entries.pop(index)
            self._save_or_restore(before)
        logger.info("Discarded queue entry %s (%s)", entry_id, removed.operation.name)
        return True

    def retry(self, entry_id: str) -> QueuedMutation | None:
        """Move a ``failed`` entry back to ``pending``.

        Returns the updated entry, or ``None`` if *entry_id* is unknown or the
        entry is not failed.

        Raises:
            PersistFailureError: If the queue file cannot be written.  The
                entry stays failed in that case.
        """
        with self._lock:
            index = self._index_of(entry_id)
            if index is None:
                return None
            entry = self._entries[index]
            if entry.status is not MutationStatus.FAILED:
                return None
            before = list(self._entries)
            updated = entry.model_copy(update={"status": MutationStatus.PENDING})
            self._entries[index] = updated
            self._save_or_restore(before)
        return updated

    def clear_failed(self) -> int:
        """Drop every ``failed`` entry.  Returns how many were removed."""
        with self._lock:
            kept = [
                e for e in self._entries if e.status is not MutationStatus.FAILED
            ]
            removed = len(self._entries) - len(kept)
            if removed:
                before = self._entries
                self._entries = kept
                self._save_or_restore(before)
        return removed

    def flush(self, executor: Executor) -> FlushReport:
        """Replay pending entries through *executor* in FIFO order.

        Args:
            executor: Called with each ``MutationOperation``; raises
                ``RemoteUnavailableError`` or ``RemoteRejectedError`` on
                failure.

        Returns:
            FlushReport with flushed/failed/remaining counts and per-entry
            results.

        Raises:
            PersistFailureError: If the queue file cannot be rewritten.
        """
        results: list[FlushEntryResult] = []
        flushed = failed = 0
        halted = False
        started_at = utc_now()

        with self._lock:
            blocked_keys = {
                e.operation.record_key
                for e in self._entries
                if e.status is MutationStatus.FAILED
                and e.operation.record_key is not None
            }

            for entry in list(self._entries):
                if entry.status is not MutationStatus.PENDING:
                    continue

                key = entry.operation.record_key
                if key is not None and key in blocked_keys:
                    results.append(
                        _entry_result(
                            entry,
                            MutationStatus.PENDING,
                            skipped=True,
                            error=f"Blocked by failed write to {key}",
                        )
                    )
                    continue

                try:
                    executor(entry.operation)
                except RemoteUnavailableError as e:
                    self._replace(entry, attempted(entry, MutationStatus.PENDING, e))
                    results.append(
                        _entry_result(entry, MutationStatus.PENDING, error=str(e))
                    )
                    halted = True
                    self._save()
                    logger.info(
                        "Flush halted at %s: remote unavailable (%s)",
                        entry.id,
                        e,
                    )
                    break
                except Exception as e:
                    self._replace(entry, attempted(entry, MutationStatus.FAILED, e))
                    results.append(
                        _entry_result(entry, MutationStatus.FAILED, error=str(e))
                    )
                    failed += 1
                    if key is not None:
                        blocked_keys.add(key)
                    logger.warning(
                        "Queued %s (%s) failed: %s",
                        entry.operation.name,
                        entry.id,
                        e,
                    )
                else:
                    self._entries.remove(entry)
                    results.append(_entry_result(entry, MutationStatus.FLUSHED))
                    flushed += 1
                    logger.debug("Flushed %s (%s)", entry.operation.name, entry.id)

                self._save()

            remaining = self._count(MutationStatus.PENDING)

        nothing_sent = halted and flushed == 0 and failed == 0
        report = FlushReport(
            outcome=Outcome.REMOTE_UNAVAILABLE if nothing_sent else Outcome.OK,
            flushed=flushed,
            failed=failed,
            remaining=remaining,
            halted=halted,
            results=results,
            started_at=started_at,
            completed_at=utc_now(),
        )
        logger.info("Queue flush: %s", report.summary())
        return report

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> list[QueuedMutation]:
        if self._path is None or not self._path.exists():
            return []
        try:
            with open(self._path, encoding="utf-8") as fh:
                document = json.load(fh)
        except (OSError, ValueError) as e:
            raise PersistFailureError(
                f"Cannot read queue file {self._path}: {e}"
            ) from e

        if not isinstance(document, dict) or not isinstance(
            document.get("entries"), list
        ):
            raise PersistFailureError(
                f"Queue file {self._path} has no 'entries' list"
            )

        version = document.get("version")
        if version != QUEUE_FORMAT_VERSION:
            logger.warning(
                "Queue file %s has version %r, expected %d",
                self._path,
                version,
                QUEUE_FORMAT_VERSION,
            )

        try:
            entries = [QueuedMutation.model_validate(e) for e in document["entries"]]
        except ValidationError as e:
            raise PersistFailureError(
                f"Queue file {self._path} contains an invalid entry: {e}"
            ) from e

        logger.debug("Loaded %d queue entries from %s", len(entries), self._path)
        return entries

    def _save(self) -> None:
        if self._path is None:
            return
        document = {
            "version": QUEUE_FORMAT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "entries": [e.model_dump(mode="json") for e in self._entries],
        }
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(directory), suffix=".tmp")
        except OSError as e:
            raise PersistFailureError(
                f"Cannot write queue file {self._path}: {e}"
            ) from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._path)
        except BaseException as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            if isinstance(e, (OSError, TypeError, ValueError)):
                raise PersistFailureError(
                    f"Cannot write queue file {self._path}: {e}"
                ) from e
            raise

    def _save_or_restore(self, before: list[QueuedMutation]) -> None:
        """Save, putting *before* back in place if the file was not written."""
        try:
            self._save()
        except PersistFailureError:
            self._entries = before
            raise

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _index_of(self, entry_id: str) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        return None

    def _count(self, status: MutationStatus) -> int:
        return sum(1 for e in self._entries if e.status is status)

    def _replace(self, old: QueuedMutation, new: QueuedMutation) -> None:
        index = self._index_of(old.id)
        if index is not None:
            self._entries[index] = new


def attempted(
    entry: QueuedMutation, status: MutationStatus, error: Exception
) -> QueuedMutation:
    """Return a copy of *entry* recording one more failed attempt."""
    return entry.model_copy(
        update={
            "status": status,
            "attempts": entry.attempts + 1,
            "last_error": str(error),
            "last_attempt_at": utc_now(),
        }
    )


def _entry_result(
    entry: QueuedMutation,
    status: MutationStatus,
    *,
    skipped: bool = False,
    error: str | None = None,
) -> FlushEntryResult:
    return FlushEntryResult(
        id=entry.id,
        operation=entry.operation.name,
        status=status,
        skipped=skipped,
        error=error,
    )
