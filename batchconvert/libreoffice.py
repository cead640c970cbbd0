"""Headless LibreOffice wrapper used to turn DOCX files into PDFs."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

SOFFICE_NAMES = ("soffice", "libreoffice")

KNOWN_LOCATIONS = {
    "linux": (
        "/usr/bin/soffice",
        "/usr/local/bin/soffice",
        "/opt/libreoffice/program/soffice",
        "/snap/bin/libreoffice",
    ),
    "darwin": ("/Applications/LibreOffice.app/Contents/MacOS/soffice",),
    "win32": (
        r"C:\Program Files\LibreOffice\program\soffice.exe",
        r"C:\Program Files (x86)\LibreOffice\program\soffice.exe",
    ),
}


class LibreOfficeError(RuntimeError):
    """Base error for everything raised by :class:`LibreOfficeManager`."""


class LibreOfficeNotFoundError(LibreOfficeError):
    pass


class ConversionError(LibreOfficeError):
    pass


def _known_locations(platform: str) -> tuple[str, ...]:
    for prefix, paths in KNOWN_LOCATIONS.items():
        if platform.startswith(prefix):
            return paths
    return ()


class LibreOfficeManager:
    """Locates ``soffice`` and runs one conversion at a time.

    Args:
        soffice_path: Explicit binary to use instead of searching.
        timeout: Seconds to wait for a single conversion; ``None`` waits
            indefinitely.
    """

    def __init__(
        self,
        soffice_path: Optional[Path | str] = None,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.soffice_path = Path(soffice_path) if soffice_path else None
        self.timeout = timeout
        self._resolved: Optional[Path] = None

    def locate(self) -> Optional[Path]:
        if self._resolved is not None and self._resolved.exists():
            return self._resolved

        found: Optional[Path] = None
        if self.soffice_path is not None:
            if self.soffice_path.exists():
                found = self.soffice_path
            else:
                which = shutil.which(str(self.soffice_path))
                found = Path(which) if which else None
        else:
            for name in SOFFICE_NAMES:
                which = shutil.which(name)
                if which:
                    found = Path(which)
                    break
            if found is None:
                for candidate in _known_locations(sys.platform):
                    if Path(candidate).exists():
                        found = Path(candidate)
                        break

        if found is not None:
            log.debug("Using LibreOffice binary %s", found)
        self._resolved = found
        return found

    def ensure(self) -> Path:
        path = self.locate()
        if path is None:
            target = self.soffice_path or " / ".join(SOFFICE_NAMES)
            raise LibreOfficeNotFoundError(f"LibreOffice not found ({target})")
        return path

    def is_available(self) -> bool:
        return self.locate() is not None

    def convert_file(self, input_path: Path | str, output_path: Path | str) -> Path:
        """Convert *input_path* to the PDF at *output_path*.

        LibreOffice always names its output ``<stem>.pdf`` inside ``--outdir``;
        the file is renamed when *output_path* asks for a different name.

        Raises:
            LibreOfficeNotFoundError: no binary could be located.
            ConversionError: LibreOffice failed, timed out or produced nothing.
        """
        soffice = self.ensure()
        source = Path(input_path)
        target = Path(output_path)
        out_dir = target.parent
        out_dir.mkdir(parents=True, exist_ok=True)

        cmd = [
            str(soffice),
            "--headless",
            "--convert-to",
            "pdf",
            "--outdir",
            str(out_dir),
            str(source),
        ]
        log.info("convert_file: START - %s", source.name)
        log.debug("convert_file: %s", " ".join(cmd))
        t0 = time.time()

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ConversionError(
                f"LibreOffice timed out after {self.timeout}s converting {source.name}"
            ) from exc
        except OSError as exc:
            raise ConversionError(f"Failed to execute LibreOffice {soffice}: {exc}") from exc

        if completed.returncode != 0:
            raise ConversionError(
                "LibreOffice conversion failed:\n"
                f"stdout: {completed.stdout.strip()}\n"
                f"stderr: {completed.stderr.strip()}"
            )

        produced = out_dir / f"{source.stem}.pdf"
        if produced != target and produced.exists():
            produced.replace(target)
        if not target.exists():
            raise ConversionError(
                f"LibreOffice reported success but {target} was not written"
                + (f": {completed.stderr.strip()}" if completed.stderr.strip() else "")
            )

        log.info(
            "convert_file: DONE - %s -> %s in %.2fs",
            source.name,
            target,
            time.time() - t0,
        )
        return target
