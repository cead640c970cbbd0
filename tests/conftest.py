"""Shared fixtures for the batchconvert test suite.

No test needs a real LibreOffice: conversions go through ``FakeConverter``
or a monkeypatched ``subprocess.run``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")


class FakeConverter:
    """Stands in for LibreOfficeManager.

    Writes a tiny PDF for every input except those whose name is in *fail*.
    """

    def __init__(self, fail: tuple[str, ...] = ()) -> None:
        self.fail = set(fail)
        self.calls: list[tuple[str, str]] = []

    def convert_file(self, input_path, output_path):
        self.calls.append((str(input_path), str(output_path)))
        if Path(input_path).name in self.fail:
            raise RuntimeError(f"cannot convert {Path(input_path).name}")
        target = Path(output_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(b"%PDF-1.4 fake")
        return target


@pytest.fixture
def docx_dir(tmp_path: Path) -> Path:
    """A folder with two DOCX files, a nested one, and some noise."""
    folder = tmp_path / "docs"
    (folder / "nested").mkdir(parents=True)
    (folder / "report.docx").write_bytes(b"PK\x03\x04report")
    (folder / "notes.docx").write_bytes(b"PK\x03\x04notes")
    (folder / "nested" / "Minutes.DOCX").write_bytes(b"PK\x03\x04minutes")
    (folder / "readme.txt").write_text("not a document")
    (folder / "~$report.docx").write_bytes(b"lock")
    return folder


@pytest.fixture
def docx_paths(docx_dir: Path) -> list[str]:
    return [str(docx_dir / "report.docx"), str(docx_dir / "notes.docx")]


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Return a temporary output directory for a single test."""
    return tmp_path / "output"


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def converter_factory():
    return FakeConverter
