"""Batch DOCX -> PDF conversion through a local LibreOffice.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from batchconvert import X`` works.
"""

__version__ = "0.1.0"

from .conversion import convert_batch, dispatch_batch, resolve_output_path
from .events import EventBus, attach_progress_listener
from .host import (
    check_for_updates,
    default_output_folder,
    install_instructions,
    match_dropped_path,
    open_pdf,
    pick_files,
    pick_output_directory,
    resolve_dropped_path,
)
from .libreoffice import (
    ConversionError,
    LibreOfficeError,
    LibreOfficeManager,
    LibreOfficeNotFoundError,
)
from .models import (
    COMPLETED,
    CONVERTING,
    ERROR,
    PENDING,
    STATUSES,
    ProgressEvent,
    QueueEntry,
)
from .state import (
    FileQueue,
    add_files,
    aggregate_progress,
    apply_progress,
    clear_completed,
    fail_in_flight,
    remove_file,
    reset_entries,
    summarize,
)
from .utils import (
    PROGRESS_EVENT,
    discover_docx,
    expand_inputs,
    load_manifest,
    save_manifest,
)

__all__ = [
    "__version__",
    # Models
    "QueueEntry",
    "ProgressEvent",
    "STATUSES",
    "PENDING",
    "CONVERTING",
    "COMPLETED",
    "ERROR",
    # Constants
    "PROGRESS_EVENT",
    # Queue state
    "FileQueue",
    "add_files",
    "remove_file",
    "clear_completed",
    "apply_progress",
    "reset_entries",
    "fail_in_flight",
    "aggregate_progress",
    "summarize",
    # Events
    "EventBus",
    "attach_progress_listener",
    # Conversion
    "resolve_output_path",
    "convert_batch",
    "dispatch_batch",
    # LibreOffice
    "LibreOfficeManager",
    "LibreOfficeError",
    "LibreOfficeNotFoundError",
    "ConversionError",
    # Host
    "default_output_folder",
    "pick_files",
    "pick_output_directory",
    "match_dropped_path",
    "resolve_dropped_path",
    "open_pdf",
    "check_for_updates",
    "install_instructions",
    # Utils
    "discover_docx",
    "expand_inputs",
    "save_manifest",
    "load_manifest",
]
