"""Conversion queue state: pure transitions plus the ``FileQueue`` container.

Every transition takes a list of :class:`QueueEntry` and returns a new list;
inputs are never mutated, so the functions can be tested without a running
converter. :class:`FileQueue` owns the current list, the "is converting" flag
and the per-path sequence bookkeeping, and routes all writes through the
transitions below.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Iterable, Optional

from .models import (
    COMPLETED,
    CONVERTING,
    ERROR,
    PENDING,
    ProgressEvent,
    QueueEntry,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def add_files(entries: list[QueueEntry], paths: Iterable[str]) -> list[QueueEntry]:
    """Append one pending entry per path. Duplicates are kept."""
    return list(entries) + [QueueEntry(path=str(p)) for p in paths]


def remove_file(
    entries: list[QueueEntry],
    index: int,
    *,
    converting: bool = False,
) -> list[QueueEntry]:
    """Drop the entry at *index* unless it (or the batch) is converting."""
    if converting or not 0 <= index < len(entries):
        return list(entries)
    if entries[index].status == CONVERTING:
        return list(entries)
    return entries[:index] + entries[index + 1 :]


def clear_completed(
    entries: list[QueueEntry],
    *,
    converting: bool = False,
) -> list[QueueEntry]:
    if converting:
        return list(entries)
    return [e for e in entries if e.status != COMPLETED]


def apply_progress(
    entries: list[QueueEntry], event: ProgressEvent
) -> list[QueueEntry]:
    """Merge *event* into every entry whose path matches it."""
    return [
        replace(
            e,
            output_path=event.output_path,
            progress=event.progress,
            status=event.status,
            error=event.error,
        )
        if e.path == event.file_path
        else e
        for e in entries
    ]


def reset_entries(entries: list[QueueEntry]) -> list[QueueEntry]:
    return [
        replace(e, status=PENDING, progress=0, output_path=None, error=None)
        for e in entries
    ]


def fail_in_flight(entries: list[QueueEntry], message: str) -> list[QueueEntry]:
    """Mark every entry that has not reached a terminal state as failed."""
    return [
        replace(e, status=ERROR, progress=0, output_path=None, error=message)
        if e.status in (PENDING, CONVERTING)
        else e
        for e in entries
    ]


def aggregate_progress(entries: list[QueueEntry]) -> float:
    """Arithmetic mean of per-entry progress; 0 for an empty queue."""
    if not entries:
        return 0.0
    return sum(e.progress for e in entries) / len(entries)


def summarize(entries: list[QueueEntry]) -> dict[str, int]:
    counts = {"total": len(entries), PENDING: 0, CONVERTING: 0, COMPLETED: 0, ERROR: 0}
    for e in entries:
        counts[e.status] = counts.get(e.status, 0) + 1
    return counts


# ---------------------------------------------------------------------------
# State container
# ---------------------------------------------------------------------------


class FileQueue:
    """In-memory conversion queue shared by the CLI and the progress listener."""

    def __init__(self, paths: Optional[Iterable[str]] = None) -> None:
        self._lock = threading.RLock()
        self._entries: list[QueueEntry] = []
        self._last_seq: dict[str, int] = {}
        self.is_converting = False
        if paths:
            self.add(paths)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[QueueEntry]:
        with self._lock:
            return list(self._entries)

    def paths(self) -> list[str]:
        with self._lock:
            return [e.path for e in self._entries]

    def add(self, paths: Iterable[str]) -> None:
        paths = list(paths)
        with self._lock:
            self._entries = add_files(self._entries, paths)
        log.debug("Queued %s file(s); queue size %s", len(paths), len(self._entries))

    def remove(self, index: int) -> bool:
        """Remove the entry at *index*; returns False when the removal is refused."""
        with self._lock:
            before = len(self._entries)
            self._entries = remove_file(
                self._entries, index, converting=self.is_converting
            )
            removed = len(self._entries) < before
        if not removed:
            log.debug("remove(%s) refused", index)
        return removed

    def clear_completed(self) -> int:
        with self._lock:
            before = len(self._entries)
            self._entries = clear_completed(
                self._entries, converting=self.is_converting
            )
            return before - len(self._entries)

    def apply_event(self, event: ProgressEvent) -> bool:
        """Merge a progress event. Returns False when it was dropped."""
        with self._lock:
            if not any(e.path == event.file_path for e in self._entries):
                log.debug("Dropping event for unknown path %s", event.file_path)
                return False
            if event.seq is not None:
                last = self._last_seq.get(event.file_path)
                if last is not None and event.seq <= last:
                    log.debug(
                        "Dropping stale event for %s (seq %s <= %s)",
                        event.file_path,
                        event.seq,
                        last,
                    )
                    return False
                self._last_seq[event.file_path] = event.seq
            self._entries = apply_progress(self._entries, event)
        return True

    def begin_batch(self) -> list[str]:
        """Reset every entry, raise the converting flag and return the batch paths."""
        with self._lock:
            self._entries = reset_entries(self._entries)
            self._last_seq.clear()
            self.is_converting = True
            return [e.path for e in self._entries]

    def end_batch(self) -> None:
        with self._lock:
            self.is_converting = False

    def fail_in_flight(self, message: str) -> None:
        with self._lock:
            self._entries = fail_in_flight(self._entries, message)

    def aggregate_progress(self) -> float:
        with self._lock:
            return aggregate_progress(self._entries)

    def summary(self) -> dict[str, int]:
        with self._lock:
            return summarize(self._entries)
