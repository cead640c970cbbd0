"""CLI entrypoint for batch DOCX -> PDF conversion through LibreOffice.

Usage:
    python -m batchconvert report.docx notes.docx
    python -m batchconvert ./letters --output-dir ./pdf
    python -m batchconvert ./letters --same-dir --manifest ./pdf
    python -m batchconvert --pick --pick-output-dir --open
    python -m batchconvert ./letters --soffice /opt/libreoffice/program/soffice
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import sys
import time
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED_FILES = 1
EXIT_NO_LIBREOFFICE = 2
EXIT_INTERRUPTED = 130


def _setup_logging(
    *,
    verbose: bool,
    detailed_logging: bool,
    output_dir: Optional[Path],
    log_file: Path | None,
) -> None:
    from .utils import LOG_FILE_NAME

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    root_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(threadName)s | %(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    resolved_log_file = log_file
    if resolved_log_file is None and detailed_logging:
        resolved_log_file = (output_dir or Path.cwd()) / LOG_FILE_NAME

    if resolved_log_file is not None:
        resolved_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            resolved_log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert DOCX files to PDF with a local LibreOffice",
        epilog="Requires LibreOffice (soffice) installed",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        type=Path,
        help="DOCX files or directories (directories are searched recursively)",
    )

    dest = parser.add_mutually_exclusive_group(required=False)
    dest.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the PDFs (default: your Downloads folder)",
    )
    dest.add_argument(
        "--same-dir",
        action="store_true",
        help="Write each PDF next to its source document",
    )
    dest.add_argument(
        "--pick-output-dir",
        action="store_true",
        help="Choose the output directory with a native dialog",
    )

    parser.add_argument(
        "--pick",
        action="store_true",
        help="Add files with a native file picker",
    )
    parser.add_argument(
        "--soffice",
        type=Path,
        default=None,
        help="Path to the LibreOffice soffice binary (default: search PATH)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds allowed per file before it is marked failed (default: none)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Times to re-check for LibreOffice before giving up (default: 0)",
    )
    parser.add_argument(
        "--retry-interval",
        type=float,
        default=5.0,
        help="Seconds between LibreOffice checks (default: 5)",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open every produced PDF when the batch finishes",
    )
    parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Write a JSON manifest of the run to this file or directory",
    )
    parser.add_argument(
        "--check-updates",
        action="store_true",
        help="Check whether a newer release is available",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (thread, file/line, rotating log file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=(
            "Optional log file path "
            "(default: <output-dir>/batchconvert.log in detailed mode)"
        ),
    )
    return parser.parse_args(argv)


def wait_for_converter(manager, retries: int, interval: float) -> bool:
    """Check converter availability, re-checking up to *retries* times."""
    from .host import install_instructions

    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        if manager.is_available():
            return True
        if attempt == 1:
            log.error("LibreOffice not found.\n%s", install_instructions())
        if attempt < attempts:
            log.info(
                "Retrying LibreOffice check in %.0fs (%s/%s)",
                interval,
                attempt,
                attempts - 1,
            )
            time.sleep(interval)
    return False


def _resolve_output_dir(args: argparse.Namespace) -> Optional[Path]:
    from .host import default_output_folder, pick_output_directory

    if args.output_dir is not None:
        return args.output_dir
    if args.same_dir:
        return None
    if args.pick_output_dir:
        try:
            picked = pick_output_directory()
        except Exception:
            log.exception("Failed to select directory")
            picked = None
        if picked:
            return Path(picked)
        log.warning("No directory selected; using the Downloads folder")
    return default_output_folder()


def main(argv: list[str] | None = None) -> None:
    """Run one conversion batch."""
    from tqdm import tqdm

    from . import __version__
    from .conversion import dispatch_batch
    from .events import EventBus, attach_progress_listener
    from .host import check_for_updates, open_pdf, pick_files
    from .libreoffice import LibreOfficeManager
    from .models import COMPLETED, ERROR
    from .state import FileQueue
    from .utils import PROGRESS_EVENT, expand_inputs, save_manifest

    args = parse_args(argv)
    _setup_logging(
        verbose=args.verbose,
        detailed_logging=args.detailed_logging,
        output_dir=args.output_dir,
        log_file=args.log_file,
    )
    overall_t0 = time.perf_counter()

    if args.check_updates:
        latest = check_for_updates(__version__)
        if latest:
            log.info("A newer release is available: %s (running %s)", latest, __version__)
        else:
            log.info("batchconvert %s is up to date", __version__)

    # --- Step 1: Converter availability ---
    manager = LibreOfficeManager(args.soffice, timeout=args.timeout)
    if not wait_for_converter(manager, args.retries, args.retry_interval):
        sys.exit(EXIT_NO_LIBREOFFICE)
    log.info("LibreOffice: %s", manager.locate())

    # --- Step 2: Collect inputs ---
    paths = expand_inputs(args.inputs)
    if args.pick:
        try:
            paths.extend(pick_files())
        except Exception:
            log.exception("Failed to open the file picker")

    if not paths:
        log.warning("No DOCX files found. Exiting.")
        sys.exit(EXIT_OK)

    output_dir = _resolve_output_dir(args)

    queue = FileQueue(paths)
    bus = EventBus()
    unlisten = attach_progress_listener(bus, queue)
    log.info("Queued %s file(s); output: %s", len(queue), output_dir or "next to sources")

    # --- Step 3: Convert ---
    bar = tqdm(total=100, desc="Converting", unit="%")

    def _refresh_bar(_payload) -> None:
        bar.n = round(queue.aggregate_progress())
        bar.refresh()

    unlisten_bar = bus.listen(PROGRESS_EVENT, _refresh_bar)
    try:
        dispatch_batch(queue, manager, output_dir, bus=bus)
    except KeyboardInterrupt:
        queue.fail_in_flight("Conversion interrupted")
        log.warning("Conversion interrupted by user")
        interrupted = True
    else:
        interrupted = False
    finally:
        unlisten_bar()
        unlisten()
        bar.close()

    entries = queue.entries
    completed = [e for e in entries if e.status == COMPLETED]
    failed = [e for e in entries if e.status == ERROR]

    # --- Step 4: Manifest / viewer ---
    manifest_path = None
    if args.manifest is not None:
        manifest_path = save_manifest(args.manifest, entries)

    if args.open:
        for entry in completed:
            try:
                open_pdf(entry.output_path)
            except Exception:
                log.exception("Failed to open PDF %s", entry.output_path)

    # --- Summary ---
    log.info("=" * 60)
    log.info("CONVERSION COMPLETE")
    log.info(f"  Files queued:    {len(entries)}")
    log.info(f"  Completed:       {len(completed)}")
    log.info(f"  Failed:          {len(failed)}")
    log.info(f"  Output:          {output_dir or 'next to sources'}")
    if manifest_path is not None:
        log.info(f"  Manifest:        {manifest_path}")
    log.info(f"  Total runtime:   {time.perf_counter() - overall_t0:.1f}s")
    if failed:
        log.warning("Failed files:")
        for e in failed:
            log.warning(f"  - {e.name}: {(e.error or 'unknown')[:200]}")

    if interrupted:
        sys.exit(EXIT_INTERRUPTED)
    if failed:
        sys.exit(EXIT_FAILED_FILES)
