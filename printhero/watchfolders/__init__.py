"""
Watch folders - unattended hot-folder printing.

Files landing in a monitored folder are detected (backlog scan at start,
live filesystem events afterwards), printed once, then moved, deleted or
kept according to the folder's post-print action.

Public API:
    MonitoredFolder - Hot folder configuration model
    AvailabilityProber - Exclusive-open polling before printing
    resolve_unique_path - Non-overwriting destination naming
    FileScanner - Backlog enumeration with pattern filtering
    FolderWatcher - Backlog + live events for one folder
    FileProcessor - Availability, print, post-print action
    ProcessingQueue - Bounded work queue with worker threads
    WatchRegistry - Session-level start/stop of all watchers
    OutcomeNotifier - Processed-file observer list
"""

from .errors import (
    WatchFolderError,
    WatchFolderNotFoundError,
    DuplicateWatchFolderError,
    DispositionError,
)
from .models import (
    DEFAULT_FILE_PATTERN,
    PostPrintAction,
    DetectionOrigin,
    MonitoredFolder,
    DetectedFile,
    ProcessingOutcome,
    FileAvailabilityCheck,
)
from .availability import AvailabilityProber
from .naming import resolve_unique_path
from .scanner import FileScanner, matches_pattern
from .events import OutcomeListener, OutcomeNotifier
from .processor import FILE_NOT_AVAILABLE, PRINTING_FAILED, FileProcessor
from .queue import ProcessingQueue
from .watcher import FolderWatcher, WatcherState
from .registry import WatchRegistry, WatchSession

__all__ = [
    # Errors
    "WatchFolderError",
    "WatchFolderNotFoundError",
    "DuplicateWatchFolderError",
    "DispositionError",
    # Models
    "DEFAULT_FILE_PATTERN",
    "PostPrintAction",
    "DetectionOrigin",
    "MonitoredFolder",
    "DetectedFile",
    "ProcessingOutcome",
    "FileAvailabilityCheck",
    # Core
    "AvailabilityProber",
    "resolve_unique_path",
    "FileScanner",
    "matches_pattern",
    "OutcomeListener",
    "OutcomeNotifier",
    "FILE_NOT_AVAILABLE",
    "PRINTING_FAILED",
    "FileProcessor",
    "ProcessingQueue",
    "FolderWatcher",
    "WatcherState",
    "WatchRegistry",
    "WatchSession",
]
