"""Batch conversion loop and the dispatcher that drives the queue."""

from __future__ import annotations

import itertools
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from .events import EventBus
from .models import COMPLETED, CONVERTING, ERROR, ProgressEvent
from .state import FileQueue
from .utils import PROGRESS_EVENT

log = logging.getLogger(__name__)

Emit = Callable[[ProgressEvent], None]


class Converter(Protocol):
    def convert_file(self, input_path: Any, output_path: Any) -> Any: ...


def resolve_output_path(file_path: str, output_dir: Optional[Path | str]) -> str:
    """Return ``<output_dir>/<stem>.pdf``, or a sibling of the input when unset."""
    source = Path(file_path)
    stem = source.stem or "output"
    target_dir = Path(output_dir) if output_dir else source.parent
    return str(target_dir / f"{stem}.pdf")


def convert_batch(
    converter: Converter,
    files: list[str],
    output_dir: Optional[Path | str],
    emit: Emit,
) -> dict[str, int]:
    """Convert *files* in order, reporting every step through *emit*.

    A failing file is reported with an ``error`` event and the loop moves on.
    Returns ``{"completed": n, "error": m}``.
    """
    seq = itertools.count(1)
    total = len(files)
    counts = {COMPLETED: 0, ERROR: 0}
    t0 = time.time()

    for index, file_path in enumerate(files):
        output_path = resolve_output_path(file_path, output_dir)
        emit(
            ProgressEvent(
                file_path=file_path,
                output_path=output_path,
                progress=int(index / total * 100),
                status=CONVERTING,
                seq=next(seq),
            )
        )

        try:
            converter.convert_file(file_path, output_path)
        except Exception as exc:
            log.error("convert_batch: ERROR - %s: %s", file_path, exc)
            counts[ERROR] += 1
            emit(
                ProgressEvent(
                    file_path=file_path,
                    output_path=None,
                    progress=0,
                    status=ERROR,
                    error=str(exc),
                    seq=next(seq),
                )
            )
            continue

        counts[COMPLETED] += 1
        emit(
            ProgressEvent(
                file_path=file_path,
                output_path=output_path,
                progress=100,
                status=COMPLETED,
                seq=next(seq),
            )
        )

    log.info(
        "Conversion: %s succeeded, %s failed (%.2fs)",
        counts[COMPLETED],
        counts[ERROR],
        time.time() - t0,
    )
    return counts


def dispatch_batch(
    queue: FileQueue,
    converter: Converter,
    output_dir: Optional[Path | str] = None,
    *,
    bus: Optional[EventBus] = None,
) -> bool:
    """Run one batch over every queued file.

    Events go through *bus* when given (so every listener sees them),
    otherwise they are applied to *queue* directly. Returns False when the
    dispatch was refused (empty queue, or a batch already in flight).

    A failure of the dispatch itself, such as an unreachable converter, is
    logged and leaves every unfinished entry in the ``error`` state.
    """
    if queue.is_converting:
        log.warning("dispatch_batch: a conversion is already running")
        return False
    if len(queue) == 0:
        log.info("dispatch_batch: queue is empty, nothing to convert")
        return False

    if bus is not None:

        def emit(event: ProgressEvent) -> None:
            bus.emit(PROGRESS_EVENT, event.to_payload())

    else:
        emit = queue.apply_event

    files = queue.begin_batch()
    log.info(
        "dispatch_batch: %s file(s) -> %s",
        len(files),
        output_dir or "same folder as input",
    )
    try:
        ensure = getattr(converter, "ensure", None)
        if ensure is not None:
            ensure()
        convert_batch(converter, files, output_dir, emit)
    except Exception as exc:
        log.exception("dispatch_batch: conversion failed")
        queue.fail_in_flight(f"Conversion failed: {exc}")
    finally:
        queue.end_batch()
    return True
