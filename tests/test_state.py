"""Tests for the queue model, pure transitions and the FileQueue container."""

from __future__ import annotations

import pytest

from batchconvert import (
    COMPLETED,
    CONVERTING,
    ERROR,
    PENDING,
    FileQueue,
    ProgressEvent,
    QueueEntry,
    add_files,
    aggregate_progress,
    apply_progress,
    clear_completed,
    fail_in_flight,
    remove_file,
    reset_entries,
    summarize,
)


def _entries(*specs):
    return [QueueEntry(path=path, status=status, progress=progress) for path, status, progress in specs]


# =========================================================================
# 1. Models
# =========================================================================


class TestQueueEntry:
    def test_defaults(self):
        e = QueueEntry(path="/a/report.docx")
        assert e.name == "report.docx"
        assert e.status == PENDING
        assert e.progress == 0
        assert e.output_path is None
        assert e.error is None

    def test_name_from_windows_path(self):
        e = QueueEntry(path=r"C:\Users\me\Letter.docx")
        assert e.name == "Letter.docx"

    def test_explicit_name_kept(self):
        assert QueueEntry(path="/a/b.docx", name="custom").name == "custom"


class TestProgressEvent:
    def test_from_payload(self):
        event = ProgressEvent.from_payload(
            {
                "file_path": "/a/report.docx",
                "output_path": "/out/report.pdf",
                "progress": 100,
                "status": "completed",
                "error": None,
            }
        )
        assert event.status == COMPLETED
        assert event.output_path == "/out/report.pdf"
        assert event.seq is None

    def test_payload_roundtrip_keeps_seq(self):
        event = ProgressEvent("/a.docx", 40, CONVERTING, output_path="/a.pdf", seq=3)
        assert ProgressEvent.from_payload(event.to_payload()) == event

    def test_progress_is_clamped(self):
        assert ProgressEvent.from_payload(
            {"file_path": "/a", "progress": 250, "status": "converting"}
        ).progress == 100
        assert ProgressEvent.from_payload(
            {"file_path": "/a", "progress": -5, "status": "converting"}
        ).progress == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"progress": 10, "status": "converting"},
            {"file_path": "/a", "progress": 10, "status": "done"},
            {"file_path": "/a", "progress": "lots", "status": "converting"},
        ],
    )
    def test_rejects_malformed(self, payload):
        with pytest.raises(ValueError):
            ProgressEvent.from_payload(payload)


# =========================================================================
# 2. Pure transitions
# =========================================================================


class TestAddFiles:
    def test_preserves_order_and_count(self):
        entries = add_files([], ["/a/1.docx", "/a/2.docx"])
        entries = add_files(entries, ["/a/3.docx"])
        assert [e.path for e in entries] == ["/a/1.docx", "/a/2.docx", "/a/3.docx"]
        assert all(e.status == PENDING and e.progress == 0 for e in entries)

    def test_keeps_duplicates(self):
        entries = add_files([], ["/a/1.docx", "/a/1.docx"])
        assert len(entries) == 2

    def test_does_not_mutate_input(self):
        original = add_files([], ["/a/1.docx"])
        add_files(original, ["/a/2.docx"])
        assert len(original) == 1


class TestRemoveFile:
    def test_removes_and_shifts(self):
        entries = add_files([], ["/a", "/b", "/c"])
        result = remove_file(entries, 1)
        assert [e.path for e in result] == ["/a", "/c"]

    def test_converting_entry_is_kept(self):
        entries = _entries(("/a", CONVERTING, 30), ("/b", PENDING, 0))
        assert remove_file(entries, 0) == entries

    def test_refused_while_batch_in_flight(self):
        entries = _entries(("/a", COMPLETED, 100))
        assert remove_file(entries, 0, converting=True) == entries

    @pytest.mark.parametrize("status", [PENDING, COMPLETED, ERROR])
    def test_other_statuses_removed(self, status):
        entries = _entries(("/a", status, 0), ("/b", PENDING, 0))
        assert [e.path for e in remove_file(entries, 0)] == ["/b"]

    def test_out_of_range_is_noop(self):
        entries = add_files([], ["/a"])
        assert remove_file(entries, 5) == entries
        assert remove_file(entries, -1) == entries


class TestClearCompleted:
    def test_removes_only_completed_in_order(self):
        entries = _entries(
            ("/a", COMPLETED, 100),
            ("/b", ERROR, 0),
            ("/c", COMPLETED, 100),
            ("/d", PENDING, 0),
        )
        assert [e.path for e in clear_completed(entries)] == ["/b", "/d"]

    def test_noop_while_converting(self):
        entries = _entries(("/a", COMPLETED, 100))
        assert clear_completed(entries, converting=True) == entries


class TestApplyProgress:
    def test_updates_matching_entry_only(self):
        entries = add_files([], ["/a/report.docx", "/a/notes.docx"])
        event = ProgressEvent(
            "/a/report.docx", 100, COMPLETED, output_path="/out/report.pdf"
        )
        result = apply_progress(entries, event)
        assert result[0].status == COMPLETED
        assert result[0].progress == 100
        assert result[0].output_path == "/out/report.pdf"
        assert result[1] == entries[1]

    def test_unknown_path_has_no_effect(self):
        entries = add_files([], ["/a"])
        assert apply_progress(entries, ProgressEvent("/zzz", 50, CONVERTING)) == entries

    def test_updates_every_duplicate(self):
        entries = add_files([], ["/a", "/a"])
        result = apply_progress(entries, ProgressEvent("/a", 10, CONVERTING))
        assert [e.status for e in result] == [CONVERTING, CONVERTING]

    def test_error_replaces_output_path(self):
        entries = apply_progress(
            add_files([], ["/a"]), ProgressEvent("/a", 0, CONVERTING, output_path="/a.pdf")
        )
        result = apply_progress(entries, ProgressEvent("/a", 0, ERROR, error="boom"))
        assert result[0].output_path is None
        assert result[0].error == "boom"


class TestResetAndFail:
    def test_reset_clears_outcome(self):
        entries = [
            QueueEntry(path="/a", status=COMPLETED, progress=100, output_path="/a.pdf"),
            QueueEntry(path="/b", status=ERROR, error="bad"),
        ]
        for e in reset_entries(entries):
            assert (e.status, e.progress, e.output_path, e.error) == (PENDING, 0, None, None)

    def test_fail_in_flight_leaves_terminal_entries(self):
        entries = _entries(
            ("/a", COMPLETED, 100), ("/b", CONVERTING, 40), ("/c", PENDING, 0)
        )
        result = fail_in_flight(entries, "converter unreachable")
        assert result[0].status == COMPLETED
        assert [e.status for e in result[1:]] == [ERROR, ERROR]
        assert result[1].error == "converter unreachable"


class TestAggregateProgress:
    def test_empty_queue(self):
        assert aggregate_progress([]) == 0

    def test_mean(self):
        entries = _entries(("/a", PENDING, 0), ("/b", CONVERTING, 50), ("/c", COMPLETED, 100))
        assert aggregate_progress(entries) == 50

    def test_not_rounded(self):
        entries = _entries(("/a", COMPLETED, 100), ("/b", PENDING, 0), ("/c", PENDING, 0))
        assert aggregate_progress(entries) == pytest.approx(33.333, rel=1e-3)


def test_summarize_counts_statuses():
    entries = _entries(("/a", COMPLETED, 100), ("/b", ERROR, 0), ("/c", COMPLETED, 100))
    counts = summarize(entries)
    assert counts["total"] == 3
    assert counts[COMPLETED] == 2
    assert counts[ERROR] == 1
    assert counts[PENDING] == 0


# =========================================================================
# 3. FileQueue container
# =========================================================================


class TestFileQueue:
    def test_add_and_paths(self):
        queue = FileQueue(["/a/report.docx"])
        queue.add(["/a/notes.docx"])
        assert len(queue) == 2
        assert queue.paths() == ["/a/report.docx", "/a/notes.docx"]

    def test_entries_is_a_copy(self):
        queue = FileQueue(["/a"])
        queue.entries.clear()
        assert len(queue) == 1

    def test_remove_refused_during_batch(self):
        queue = FileQueue(["/a", "/b"])
        queue.begin_batch()
        assert queue.remove(0) is False
        queue.end_batch()
        assert queue.remove(0) is True
        assert queue.paths() == ["/b"]

    def test_clear_completed_returns_count(self):
        queue = FileQueue(["/a", "/b"])
        queue.apply_event(ProgressEvent("/a", 100, COMPLETED, output_path="/a.pdf"))
        assert queue.clear_completed() == 1
        assert queue.paths() == ["/b"]

    def test_apply_event_unknown_path(self):
        queue = FileQueue(["/a"])
        assert queue.apply_event(ProgressEvent("/b", 100, COMPLETED)) is False

    def test_last_event_wins_without_seq(self):
        queue = FileQueue(["/a"])
        queue.apply_event(ProgressEvent("/a", 100, COMPLETED, output_path="/a.pdf"))
        queue.apply_event(ProgressEvent("/a", 20, CONVERTING))
        assert queue.entries[0].progress == 20

    def test_stale_seq_is_dropped(self):
        queue = FileQueue(["/a"])
        assert queue.apply_event(ProgressEvent("/a", 100, COMPLETED, seq=5))
        assert queue.apply_event(ProgressEvent("/a", 0, CONVERTING, seq=2)) is False
        entry = queue.entries[0]
        assert entry.status == COMPLETED
        assert entry.progress == 100

    def test_begin_batch_resets_entries_and_seq(self):
        queue = FileQueue(["/a", "/b"])
        queue.apply_event(ProgressEvent("/a", 100, COMPLETED, seq=9))
        paths = queue.begin_batch()
        assert paths == ["/a", "/b"]
        assert queue.is_converting is True
        assert all(e.status == PENDING and e.progress == 0 for e in queue.entries)
        # a new batch starts its counter again
        assert queue.apply_event(ProgressEvent("/a", 0, CONVERTING, seq=1))

    def test_aggregate_and_summary(self):
        queue = FileQueue(["/a", "/b"])
        queue.apply_event(ProgressEvent("/a", 100, COMPLETED))
        assert queue.aggregate_progress() == 50
        assert queue.summary()[COMPLETED] == 1

    def test_fail_in_flight(self):
        queue = FileQueue(["/a", "/b"])
        queue.begin_batch()
        queue.apply_event(ProgressEvent("/a", 100, COMPLETED, seq=1))
        queue.fail_in_flight("stopped")
        assert [e.status for e in queue.entries] == [COMPLETED, ERROR]
