"""Cross-cutting helpers: constants, input discovery, manifest I/O."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from .models import QueueEntry

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PROGRESS_EVENT = "conversion-progress"
DOCX_SUFFIXES = (".docx",)
MANIFEST_FILE_NAME = "conversion_manifest.json"
LOG_FILE_NAME = "batchconvert.log"
RELEASES_URL = "https://api.github.com/repos/batchconvert/batchconvert/releases/latest"


# ---------------------------------------------------------------------------
# Input discovery
# ---------------------------------------------------------------------------


def is_docx(path: Path) -> bool:
    return path.suffix.lower() in DOCX_SUFFIXES


def discover_docx(folder: Path) -> list[Path]:
    """Recursively find all DOCX files under *folder*, sorted by name.

    Word lock files (``~$report.docx``) are skipped.
    """
    if not folder.exists():
        return []
    return sorted(
        p
        for p in folder.rglob("*")
        if p.is_file() and is_docx(p) and not p.name.startswith("~$")
    )


def expand_inputs(items: Iterable[Path | str]) -> list[str]:
    """Turn CLI inputs into absolute file paths.

    Directories are expanded to the DOCX files they contain; files are kept
    as given, whatever their suffix, so LibreOffice reports on them.
    """
    paths: list[str] = []
    for item in items:
        path = Path(item).expanduser()
        if path.is_dir():
            paths.extend(str(p.resolve()) for p in discover_docx(path))
        else:
            paths.append(str(path.resolve()))
    return paths


# ---------------------------------------------------------------------------
# Manifest I/O
# ---------------------------------------------------------------------------


def save_manifest(path: Path, entries: list[QueueEntry]) -> Path:
    """Write the outcome of a run to *path* (a file, or a directory to hold one)."""
    if path.is_dir():
        path = path / MANIFEST_FILE_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "files": [entry.to_dict() for entry in entries],
    }
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(manifest, fh, indent=2, ensure_ascii=False, default=str)
    return path


def load_manifest(path: Path) -> list[dict[str, Any]]:
    """Return the file records of a saved manifest, or ``[]`` when unreadable."""
    if path.is_dir():
        path = path / MANIFEST_FILE_NAME
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (json.JSONDecodeError, OSError, ValueError):
        return []

    if not isinstance(data, dict):
        return []
    files = data.get("files")
    if not isinstance(files, list):
        return []
    return [item for item in files if isinstance(item, dict)]
