"""Host-environment helpers: folders, native pickers, viewers, update check."""

from __future__ import annotations

import json
import logging
import os
import platform
import re
import subprocess
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional, Sequence

from .utils import RELEASES_URL

log = logging.getLogger(__name__)

DOCX_FILETYPES = [("Word Documents", "*.docx")]

LIBREOFFICE_DOWNLOAD_URL = "https://www.libreoffice.org/download/download/"


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


def default_output_folder() -> Path:
    """Return the user's Downloads folder. Existence is not checked."""
    return Path.home() / "Downloads"


# ---------------------------------------------------------------------------
# Native pickers
# ---------------------------------------------------------------------------


def _tk_root():
    import tkinter as tk

    root = tk.Tk()
    root.withdraw()
    root.attributes("-topmost", True)
    return root


def pick_files(title: str = "Select DOCX Files") -> list[str]:
    """Open a native multi-file picker. Returns ``[]`` when cancelled."""
    from tkinter import filedialog

    root = _tk_root()
    try:
        selected = filedialog.askopenfilenames(
            title=title, filetypes=DOCX_FILETYPES, parent=root
        )
    finally:
        root.destroy()
    return [str(p) for p in selected]


def pick_output_directory(title: str = "Select Output Directory") -> Optional[str]:
    """Open a native directory picker. Returns ``None`` when cancelled."""
    from tkinter import filedialog

    root = _tk_root()
    try:
        selected = filedialog.askdirectory(title=title, parent=root)
    finally:
        root.destroy()
    return str(selected) if selected else None


def match_dropped_path(name: str, candidates: Sequence[str]) -> Optional[str]:
    """Pick the candidate whose file name equals *name*, else the first one."""
    for candidate in candidates:
        if re.split(r"[\\/]", candidate)[-1] == name:
            return candidate
    return candidates[0] if candidates else None


def resolve_dropped_path(name: str, size: int = 0) -> Optional[str]:
    """Resolve a dropped item (known only by name and size) to a full path.

    The picker is opened so the user can confirm the file; *size* is
    accepted for parity with drop payloads but not used for matching.
    """
    log.debug("Resolving dropped item %s (%s bytes)", name, size)
    return match_dropped_path(name, pick_files())


# ---------------------------------------------------------------------------
# Viewer
# ---------------------------------------------------------------------------


def open_pdf(path: Path | str) -> None:
    """Open *path* with the platform's default viewer.

    Raises:
        FileNotFoundError: *path* does not exist.
        OSError / subprocess.CalledProcessError: the viewer could not start.
    """
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"PDF not found: {target}")

    system = platform.system()
    if system == "Windows":
        os.startfile(str(target))  # type: ignore[attr-defined]
    elif system == "Darwin":
        subprocess.run(["open", str(target)], check=True)
    else:
        subprocess.run(["xdg-open", str(target)], check=True)


# ---------------------------------------------------------------------------
# Update check
# ---------------------------------------------------------------------------


def check_for_updates(
    current_version: str,
    url: str = RELEASES_URL,
    timeout: int = 5,
) -> Optional[str]:
    """Return the latest release tag when it differs from *current_version*.

    Network and parse failures return None.
    """
    req = urllib.request.Request(
        url,
        headers={
            "Accept": "application/vnd.github+json",
            "User-Agent": f"batchconvert/{current_version}",
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            if resp.status != 200:
                return None
            data = json.load(resp)
    except (urllib.error.URLError, OSError, ValueError) as exc:
        log.debug("Update check failed: %s", exc)
        return None

    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not isinstance(tag, str) or not tag:
        return None
    if tag.lstrip("v") == current_version:
        return None
    return tag


# ---------------------------------------------------------------------------
# Install instructions
# ---------------------------------------------------------------------------


def install_instructions(system: Optional[str] = None) -> str:
    """Explain how to install LibreOffice on *system* (defaults to this OS)."""
    system = system or platform.system()
    lines = [
        "LibreOffice is required to convert Word documents to PDF.",
        "Please install LibreOffice to continue.",
        "",
    ]
    if system == "Windows":
        lines += [
            "1. Download LibreOffice from:",
            f"     {LIBREOFFICE_DOWNLOAD_URL}",
            "2. Run the installer and follow the prompts",
            "3. Run this command again after installation",
        ]
    elif system == "Darwin":
        lines += [
            "Homebrew:",
            "    brew install --cask libreoffice",
            f"or download it from {LIBREOFFICE_DOWNLOAD_URL}",
        ]
    else:
        lines += [
            "Ubuntu/Debian:",
            "    sudo apt install libreoffice",
            "Fedora:",
            "    sudo dnf install libreoffice",
            "Arch Linux:",
            "    sudo pacman -S libreoffice-still",
        ]
    return "\n".join(lines)
