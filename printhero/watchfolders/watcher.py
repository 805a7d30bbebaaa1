"""
Folder watcher - backlog enumeration plus live creation events for one folder.

Lifecycle: created -> watching -> stopped. A stopped watcher is not
restarted; the registry builds a new one for the next session.
"""

import logging
import os
import threading
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .models import DetectedFile, DetectionOrigin, MonitoredFolder, PostPrintAction
from .processor import DEFAULT_PRINTED_SUBFOLDER
from .scanner import FileScanner

logger = logging.getLogger(__name__)


DEFAULT_SETTLE_DELAY = 1.0
OBSERVER_JOIN_TIMEOUT = 5.0

DetectedFileSink = Callable[[DetectedFile], object]


class WatcherState(str, Enum):
    CREATED = "created"
    WATCHING = "watching"
    STOPPED = "stopped"


class _CreationHandler(FileSystemEventHandler):
    """Translates watchdog events into watcher callbacks. Never blocks on I/O."""

    def __init__(self, watcher: "FolderWatcher"):
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher.handle_created(Path(os.fsdecode(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher.handle_moved(
            Path(os.fsdecode(event.src_path)),
            Path(os.fsdecode(event.dest_path)),
        )


class FolderWatcher:
    """
    Watches one monitored folder and feeds detected files to a sink.

    ``start()`` lists every matching file already present (the backlog),
    subscribes to live creation events, then hands the backlog to the sink
    from a background thread. A file created between the listing and the
    subscription is not reported.

    Live detections carry ``ready_at = detected_at + settle_delay`` so the
    consumer, not the notification thread, absorbs the settle wait.

    Post-print destinations are never reported: the ``Printed`` subfolder
    (at any depth) when the folder moves to its subfolder, and the custom
    destination when it lies inside the watched tree.
    """

    def __init__(
        self,
        folder: MonitoredFolder,
        sink: DetectedFileSink,
        scanner: Optional[FileScanner] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        printed_subfolder_name: str = DEFAULT_PRINTED_SUBFOLDER,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.folder = folder
        self.sink = sink
        self.scanner = scanner or FileScanner(skip_hidden=True, follow_symlinks=False)
        self.settle_delay = settle_delay
        self.printed_subfolder_name = printed_subfolder_name
        self._observer_factory = observer_factory

        self.root = Path(folder.folder_path).absolute()
        self._observer = None
        self._backlog_thread: Optional[threading.Thread] = None
        self._state = WatcherState.CREATED
        self._state_lock = threading.Lock()

    @property
    def state(self) -> WatcherState:
        with self._state_lock:
            return self._state

    @property
    def is_watching(self) -> bool:
        return self.state == WatcherState.WATCHING

    def excluded_dirs(self) -> List[Path]:
        """Absolute post-print destinations inside the watched tree."""
        action = self.folder.effective_post_print_action()
        if action != PostPrintAction.MOVE_TO_CUSTOM_FOLDER:
            return []
        custom = Path(self.folder.custom_move_folder).absolute()
        if custom == self.root:
            return []
        return [custom]

    def excluded_dir_names(self) -> List[str]:
        """Directory names skipped at any depth."""
        if self.folder.effective_post_print_action() == PostPrintAction.MOVE_TO_SUBFOLDER:
            return [self.printed_subfolder_name]
        return []

    def start(self) -> bool:
        """
        Enumerate the backlog and begin live watching.

        The backlog is handed to the sink from a background thread once the
        subscription is open, so a full sink never holds up live events.

        Returns:
            True if the watcher is now watching, False if the folder is
            missing or inaccessible, or the subscription could not be set up
        """
        with self._state_lock:
            if self._state != WatcherState.CREATED:
                logger.warning(
                    f"Watcher for {self.root} cannot start from state {self._state.value}"
                )
                return self._state == WatcherState.WATCHING

        try:
            exists = self.root.is_dir()
        except OSError as e:
            logger.warning(f"Monitored folder is not accessible, skipping: {self.root}: {e}")
            return False
        if not exists:
            logger.warning(f"Monitored folder does not exist, skipping: {self.root}")
            return False

        backlog = self._scan_backlog()

        observer = self._observer_factory()
        try:
            observer.schedule(
                _CreationHandler(self),
                str(self.root),
                recursive=self.folder.include_subfolders,
            )
            with self._state_lock:
                self._state = WatcherState.WATCHING
            observer.start()
        except Exception as e:
            with self._state_lock:
                self._state = WatcherState.CREATED
            logger.error(f"Could not watch {self.root}, existing files not queued: {e}")
            return False

        self._observer = observer
        logger.info(
            f"Watching {self.root} for {self.folder.file_pattern}"
            f"{' (including subfolders)' if self.folder.include_subfolders else ''}"
        )

        if backlog:
            logger.info(f"Queueing {len(backlog)} existing file(s) from {self.root}")
            self._backlog_thread = threading.Thread(
                target=self._feed_backlog,
                args=(backlog,),
                daemon=True,
                name=f"printhero-backlog-{self.root.name}",
            )
            self._backlog_thread.start()
        return True

    def stop(self) -> None:
        """
        Close the live subscription. No live event is reported after this
        returns.

        Waits until the backlog has been handed to the sink. Safe to call
        more than once.
        """
        with self._state_lock:
            was_watching = self._state == WatcherState.WATCHING
            self._state = WatcherState.STOPPED

        observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join(timeout=OBSERVER_JOIN_TIMEOUT)

        self.wait_for_backlog()

        if was_watching:
            logger.info(f"Stopped watching {self.root}")

    def wait_for_backlog(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every backlog file has been handed to the sink.

        Returns:
            True if the backlog hand-off is complete
        """
        thread = self._backlog_thread
        if thread is None:
            return True
        thread.join(timeout=timeout)
        return not thread.is_alive()

    def handle_created(self, path: Path) -> None:
        """Live creation event for ``path``."""
        if not self._accepts(path):
            return
        self._emit(path, DetectionOrigin.LIVE)

    def handle_moved(self, src_path: Path, dest_path: Path) -> None:
        """
        Live rename event.

        A file renamed into a matching name (``scan.pdf.part`` -> ``scan.pdf``)
        or moved in from outside the tree counts as created. Renames between
        two matching names inside the tree were already reported.
        """
        if not self._accepts(dest_path):
            return
        if self._reportable(src_path):
            logger.debug(f"Ignoring rename within watched tree: {src_path} -> {dest_path}")
            return
        self._emit(dest_path, DetectionOrigin.LIVE)

    def _accepts(self, path: Path) -> bool:
        if self.state != WatcherState.WATCHING:
            return False
        return self._reportable(path)

    def _reportable(self, path: Path) -> bool:
        if self.root not in path.parents:
            return False
        if not self.folder.include_subfolders and path.parent != self.root:
            return False
        if not self.scanner.is_candidate(path, self.folder.file_pattern):
            return False
        return not self._is_excluded(path)

    def _is_excluded(self, path: Path) -> bool:
        return self.scanner.is_excluded_location(
            path.absolute(),
            self.root,
            exclude_dirs=self.excluded_dirs(),
            exclude_dir_names=self.excluded_dir_names(),
        )

    def _scan_backlog(self) -> List[Path]:
        try:
            return self.scanner.scan(
                self.folder,
                exclude_dirs=self.excluded_dirs(),
                exclude_dir_names=self.excluded_dir_names(),
            )
        except OSError as e:
            logger.error(f"Backlog scan failed for {self.root}: {e}")
            return []

    def _feed_backlog(self, files: List[Path]) -> None:
        try:
            for index, path in enumerate(files):
                if self._emit(path, DetectionOrigin.BACKLOG) is False:
                    logger.warning(
                        f"Sink closed, {len(files) - index} existing file(s) from "
                        f"{self.root} not queued"
                    )
                    return
        except Exception as e:
            logger.error(f"Queueing existing files from {self.root} failed: {e}")

    def _emit(self, path: Path, origin: DetectionOrigin) -> object:
        detected_at = datetime.now()
        if origin == DetectionOrigin.LIVE:
            ready_at = detected_at + timedelta(seconds=self.settle_delay)
        else:
            ready_at = detected_at

        detected = DetectedFile(
            path=str(path),
            folder=self.folder,
            detected_at=detected_at,
            origin=origin,
            ready_at=ready_at,
        )
        logger.debug(f"Detected {origin.value} file: {path}")
        return self.sink(detected)
