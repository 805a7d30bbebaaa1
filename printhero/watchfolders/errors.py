"""
Watch folder error hierarchy.

All errors are non-fatal to the application. They indicate operation failure
but the watching process continues running.
"""


class WatchFolderError(Exception):
    """Base exception for watch folder failures."""

    pass


class WatchFolderNotFoundError(WatchFolderError):
    """Watch folder path does not exist or is not accessible."""

    pass


class DuplicateWatchFolderError(WatchFolderError):
    """A monitored folder is already configured for this path."""

    pass


class DispositionError(WatchFolderError):
    """Post-print move or delete failed after a successful print."""

    def __init__(self, file_path: str, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Post-print action failed for {file_path}: {reason}")
