"""Report formatting for coordinator results.

Provides human-readable and machine-readable output:

- ``format_flush_report`` -- post-flush summary.
- ``format_queue_listing`` -- queue contents, oldest first.
- ``format_status`` -- one block describing the cache.
- ``format_snapshot_summary`` -- per-collection counts of a read.
- ``to_json`` -- structured dict for MCP tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from .models import MutationStatus

if TYPE_CHECKING:
    from .models import CacheStatus, FlushReport, QueuedMutation, ReadResult


# ------------------------------------------------------------------
# Flush report
# ------------------------------------------------------------------


def format_flush_report(report: FlushReport) -> str:
    """Format a flush report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed flush report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    lines.append(f"Queue flush: {report.summary()}")
    if report.message:
        lines.append(report.message)
    lines.append("")

    flushed = [r for r in report.results if r.status is MutationStatus.FLUSHED]
    failed = [r for r in report.results if r.status is MutationStatus.FAILED]
    skipped = [r for r in report.results if r.skipped]

    if flushed:
        lines.append("Applied:")
        for r in flushed:
            lines.append(f"  {r.id} {r.operation}")
        lines.append("")

    if failed:
        lines.append("Failed:")
        for r in failed:
            lines.append(f"  {r.id} {r.operation}: {r.error}")
        lines.append("")

    if skipped:
        lines.append(f"Skipped: {len(skipped)} entries behind failed writes")
        lines.append("")

    if report.halted and report.results:
        lines.append("Stopped early: remote became unreachable.")
        lines.append("")

    if report.pull_outcome is not None:
        lines.append(f"Snapshot refresh: {report.pull_outcome.value}")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Queue listing
# ------------------------------------------------------------------


def format_queue_listing(entries: list[QueuedMutation]) -> str:
    """Format queue entries as one line each, oldest first."""
    if not entries:
        return "Queue is empty."

    lines = [f"{len(entries)} queued writes:"]
    for entry in entries:
        line = (
            f"  [{entry.status.value}] {entry.id} {entry.operation.name}"
            f" ({entry.created_at})"
        )
        key = entry.operation.record_key
        if key:
            line += f" -> {key}"
        if entry.attempts:
            line += f", {entry.attempts} attempts"
        if entry.last_error:
            line += f": {entry.last_error}"
        lines.append(line)
    return "\n".join(lines)


# ------------------------------------------------------------------
# Status and reads
# ------------------------------------------------------------------


def format_status(status: CacheStatus, description: str = "") -> str:
    adapter = status.adapter or "disabled"
    if status.adapter:
        health = "healthy" if status.adapter_healthy else "no snapshot"
        overwrite = "full replace" if status.full_replace else "upsert"
        adapter = f"{adapter} ({health}, {overwrite})"

    lines = [
        f"Mode: {status.mode}",
        f"Remote: {status.condition.value}",
        f"Storage: {adapter}",
    ]
    if description:
        lines.insert(1, description)
    if status.backup_adapter:
        lines.append(f"Backup: {status.backup_adapter}")
    lines.append(f"Queue: {status.pending} pending, {status.failed} failed")
    if status.last_pull_at:
        lines.append(f"Last pull: {status.last_pull_at}")
    if status.last_flush_at:
        lines.append(f"Last flush: {status.last_flush_at}")
    return "\n".join(lines)


def format_snapshot_summary(result: ReadResult) -> str:
    if result.snapshot is None:
        return result.message or result.outcome.value

    header = f"Snapshot from {result.source}"
    if result.stale:
        header += " (backup copy, may be stale)"
    lines = [header]
    for name, count in result.snapshot.counts().items():
        lines.append(f"  {name}: {count}")
    if result.snapshot.site:
        title = result.snapshot.site.get("title")
        if title:
            lines.append(f"Site: {title}")
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def to_json(result: BaseModel) -> dict[str, Any]:
    """Convert a result model to a JSON-safe dict.

    Suitable for MCP ``structuredContent`` output.  Integer collection keys
    become strings, as JSON requires.
    """
    return result.model_dump(mode="json")
