"""Tests for report formatting."""

from content_cache.sync.models import (
    CacheStatus,
    Condition,
    FlushEntryResult,
    FlushReport,
    MutationOperation,
    MutationStatus,
    Outcome,
    QueuedMutation,
    ReadResult,
)
from content_cache.sync.reporter import (
    format_flush_report,
    format_queue_listing,
    format_snapshot_summary,
    format_status,
    to_json,
)
from content_cache.storage.base import CachedCollections


class TestFormatFlushReport:
    def test_sections_only_when_present(self):
        report = FlushReport(
            flushed=1,
            failed=1,
            remaining=1,
            results=[
                FlushEntryResult(id="a", operation="updatePost", status=MutationStatus.FLUSHED),
                FlushEntryResult(
                    id="b", operation="updateTag", status=MutationStatus.FAILED, error="bad"
                ),
                FlushEntryResult(
                    id="c", operation="updateTag", status=MutationStatus.PENDING, skipped=True
                ),
            ],
        )
        text = format_flush_report(report)
        assert text.startswith("Queue flush: 1 flushed, 1 failed, 1 remaining")
        assert "Applied:\n  a updatePost" in text
        assert "b updateTag: bad" in text
        assert "Skipped: 1 entries" in text

    def test_empty_report(self):
        text = format_flush_report(FlushReport())
        assert text == "Queue flush: 0 flushed, 0 failed, 0 remaining"

    def test_pull_outcome_shown(self):
        text = format_flush_report(FlushReport(flushed=1, pull_outcome=Outcome.OK))
        assert "Snapshot refresh: ok" in text


class TestFormatQueueListing:
    def test_empty(self):
        assert format_queue_listing([]) == "Queue is empty."

    def test_lines_include_record_key_and_error(self):
        entry = QueuedMutation(
            operation=MutationOperation(
                name="updatePost", variables={"input": {"id": 3}}
            ),
            status=MutationStatus.FAILED,
            attempts=2,
            last_error="denied",
        )
        text = format_queue_listing([entry])
        assert "[failed]" in text
        assert "-> posts:3" in text
        assert "2 attempts: denied" in text


class TestFormatStatus:
    def test_status_block(self):
        status = CacheStatus(
            mode="SETMODE",
            condition=Condition.OFFLINE,
            pending=2,
            failed=0,
            adapter="sqlite",
            adapter_healthy=True,
            full_replace=False,
        )
        text = format_status(status, "Edit mode.")
        assert text.splitlines()[:2] == ["Mode: SETMODE", "Edit mode."]
        assert "Remote: offline" in text
        assert "Storage: sqlite (healthy, upsert)" in text
        assert "Queue: 2 pending, 0 failed" in text

    def test_disabled_storage(self):
        status = CacheStatus(
            mode="GETMODE",
            condition=Condition.UNKNOWN,
            pending=0,
            failed=0,
            adapter=None,
            adapter_healthy=False,
            full_replace=None,
        )
        assert "Storage: disabled" in format_status(status)


class TestSnapshotSummaryAndJson:
    def test_summary_marks_stale(self, sample_collections):
        result = ReadResult(
            outcome=Outcome.OK, snapshot=sample_collections, source="json", stale=True
        )
        text = format_snapshot_summary(result)
        assert "backup copy" in text
        assert "posts: 2" in text
        assert "Site: Example" in text

    def test_to_json_stringifies_ids(self):
        result = ReadResult(
            outcome=Outcome.OK,
            snapshot=CachedCollections(posts=[{"id": 1}]),
            source="memory",
        )
        payload = to_json(result)
        assert payload["outcome"] == "ok"
        assert payload["snapshot"]["posts"] == {"1": {"id": 1}}
