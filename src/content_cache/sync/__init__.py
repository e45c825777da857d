"""Offline write queue and sync coordination.

Exports the coordinator, the queue and the result models used across the
presentation layer.
"""

from .coordinator import SyncCoordinator
from .mapper import map_snapshot
from .models import (
    CacheStatus,
    Condition,
    FlushEntryResult,
    FlushReport,
    MutationOperation,
    MutationStatus,
    Outcome,
    PullResult,
    QueuedMutation,
    ReadResult,
    WriteResult,
)
from .queue import MutationQueue

__all__ = [
    "CacheStatus",
    "Condition",
    "FlushEntryResult",
    "FlushReport",
    "MutationOperation",
    "MutationQueue",
    "MutationStatus",
    "Outcome",
    "PullResult",
    "QueuedMutation",
    "ReadResult",
    "SyncCoordinator",
    "WriteResult",
    "map_snapshot",
]
