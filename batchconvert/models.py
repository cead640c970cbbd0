"""Shared data models for the converter queue."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

PENDING = "pending"
CONVERTING = "converting"
COMPLETED = "completed"
ERROR = "error"

STATUSES = (PENDING, CONVERTING, COMPLETED, ERROR)
TERMINAL_STATUSES = (COMPLETED, ERROR)

_SEP_RE = re.compile(r"[\\/]")


def display_name(path: str) -> str:
    """Return the last path segment, accepting both separator styles."""
    name = _SEP_RE.split(path)[-1]
    return name or path


def clamp_progress(value: Any) -> int:
    return max(0, min(100, int(value)))


@dataclass
class QueueEntry:
    """One source file waiting for (or done with) conversion."""

    path: str
    name: str = ""
    output_path: Optional[str] = None
    status: str = PENDING
    progress: int = 0
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = display_name(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "output_path": self.output_path,
            "status": self.status,
            "progress": self.progress,
            "error": self.error,
        }


@dataclass(frozen=True)
class ProgressEvent:
    """A ``conversion-progress`` notification for a single file.

    ``seq`` is a batch-wide counter assigned by the dispatcher. Events without
    one are always applied (last write wins).
    """

    file_path: str
    progress: int
    status: str
    output_path: Optional[str] = None
    error: Optional[str] = None
    seq: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "file_path": self.file_path,
            "output_path": self.output_path,
            "progress": self.progress,
            "status": self.status,
            "error": self.error,
        }
        if self.seq is not None:
            payload["seq"] = self.seq
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ProgressEvent":
        """Build an event from a wire payload.

        Raises:
            ValueError: on a missing path, an unknown status or a
                non-numeric progress value.
        """
        file_path = payload.get("file_path")
        if not file_path:
            raise ValueError("progress payload has no file_path")

        status = payload.get("status")
        if status not in STATUSES:
            raise ValueError(f"unknown conversion status: {status!r}")

        try:
            progress = clamp_progress(payload.get("progress", 0))
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"invalid progress value: {payload.get('progress')!r}"
            ) from exc

        seq = payload.get("seq")
        return cls(
            file_path=str(file_path),
            progress=progress,
            status=status,
            output_path=payload.get("output_path") or None,
            error=payload.get("error") or None,
            seq=int(seq) if seq is not None else None,
        )
