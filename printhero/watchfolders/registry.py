"""
Watch registry - the one place watching is started and stopped.

Owns at most one WatchSession: the set of live folder watchers plus the
processing queue they feed.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .models import MonitoredFolder
from .processor import DEFAULT_PRINTED_SUBFOLDER, FileProcessor
from .queue import DEFAULT_MAX_QUEUE_SIZE, DEFAULT_WORKER_COUNT, ProcessingQueue
from .scanner import FileScanner
from .watcher import DEFAULT_SETTLE_DELAY, FolderWatcher

logger = logging.getLogger(__name__)


@dataclass
class WatchSession:
    """Live watchers keyed by absolute folder path, and their shared queue."""

    work_queue: ProcessingQueue
    watchers: Dict[str, FolderWatcher] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)


class WatchRegistry:
    """
    Starts and stops watching for a set of monitored folders.

    Only the running flag is guarded by the lock. ``start()`` and ``stop()``
    are expected to be called from a single control thread; concurrent
    callers of those two methods are not supported. PrintHeroService
    serializes its control calls for this reason.
    """

    def __init__(
        self,
        processor: FileProcessor,
        folder_store=None,
        scanner: Optional[FileScanner] = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
        worker_count: int = DEFAULT_WORKER_COUNT,
        printed_subfolder_name: str = DEFAULT_PRINTED_SUBFOLDER,
    ):
        """
        Initialize registry.

        Args:
            processor: File processor the session's workers call
            folder_store: Optional PersistenceManager used when ``start()``
                is called without an explicit folder list
            scanner: Scanner shared by every watcher
            settle_delay: Seconds between a live event and processing
            max_queue_size: Bound of the work queue
            worker_count: Number of processing threads
            printed_subfolder_name: Name of the move-to-subfolder destination
        """
        self.processor = processor
        self._folder_store = folder_store
        self.scanner = scanner or FileScanner(skip_hidden=True, follow_symlinks=False)
        self.settle_delay = settle_delay
        self.max_queue_size = max_queue_size
        self.worker_count = worker_count
        self.printed_subfolder_name = printed_subfolder_name

        self._session: Optional[WatchSession] = None
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def session(self) -> Optional[WatchSession]:
        return self._session

    def watched_folders(self) -> List[str]:
        """Absolute paths currently being watched."""
        session = self._session
        if session is None:
            return []
        return sorted(session.watchers.keys())

    def start(self, folders: Optional[Iterable[MonitoredFolder]] = None) -> List[str]:
        """
        Start watching.

        Folders already watched in the current session are skipped, as are
        folders whose watcher fails to start (missing or inaccessible
        directory). A failing folder never prevents the others from being
        watched, and once the session exists ``stop()`` releases it. Calling
        start again adds newly supplied folders to the running session.

        Args:
            folders: Folders to watch. When None, the active folders are
                loaded from the folder store.

        Returns:
            Paths of every folder watched after this call

        Raises:
            ValueError: If folders is None and no folder store is configured
            PersistenceError: If the folder store cannot be read
        """
        if folders is None:
            if self._folder_store is None:
                raise ValueError("No folder store configured for WatchRegistry")
            folders = self._folder_store.load_active_monitored_folders()

        folders = list(folders)

        if self._session is None:
            work_queue = ProcessingQueue(
                self.processor,
                max_size=self.max_queue_size,
                worker_count=self.worker_count,
            )
            work_queue.start()
            self._session = WatchSession(work_queue=work_queue)

        with self._lock:
            self._running = True

        session = self._session
        for folder in folders:
            watcher = None
            try:
                watcher = FolderWatcher(
                    folder,
                    session.work_queue.put,
                    scanner=self.scanner,
                    settle_delay=self.settle_delay,
                    printed_subfolder_name=self.printed_subfolder_name,
                )
                key = str(watcher.root)
                if key in session.watchers:
                    logger.debug(f"Already watching {key}, skipping")
                    continue

                if watcher.start():
                    session.watchers[key] = watcher
                else:
                    logger.warning(f"Could not start watching {key}")
            except Exception as e:
                logger.error(f"Could not start watching {folder.folder_path}: {e}")
                if watcher is not None:
                    watcher.stop()

        logger.info(f"Watching {len(session.watchers)} folder(s)")
        return self.watched_folders()

    def stop(self) -> None:
        """
        Stop every watcher, then let queued and in-flight files complete.

        No-op when not running.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False

        session, self._session = self._session, None
        if session is None:
            return

        for key, watcher in session.watchers.items():
            try:
                watcher.stop()
            except Exception as e:
                logger.error(f"Error stopping watcher for {key}: {e}")

        session.work_queue.shutdown()
        session.watchers.clear()
        logger.info("Stopped watching all folders")
