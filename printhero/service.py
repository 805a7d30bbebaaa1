"""
PrintHero service runtime.

Wires the configuration store, print dispatcher, outcome listeners, file
processor and watch registry together, and runs them until interrupted.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .config import ServiceConfig
from .jobs.recorder import PrintJobRecorder
from .jobs.statistics import StatisticsTracker
from .persistence.manager import PersistenceManager
from .printing.dispatcher import DryRunPrintDispatcher, PrintDispatcher, SystemPrintDispatcher
from .printing.models import Orientation, PrinterSettings
from .watchfolders.availability import AvailabilityProber
from .watchfolders.events import OutcomeNotifier
from .watchfolders.models import ProcessingOutcome
from .watchfolders.processor import FileProcessor
from .watchfolders.registry import WatchRegistry

logger = logging.getLogger(__name__)


class PrintHeroService:
    """
    Long-running hot folder print service.

    ``start()`` watches every active folder in the store; ``run_forever()``
    additionally blocks, logging a heartbeat, until the stop event is set.
    """

    def __init__(
        self,
        config: ServiceConfig,
        persistence: Optional[PersistenceManager] = None,
        dispatcher: Optional[PrintDispatcher] = None,
    ):
        self.config = config
        self.persistence = persistence or PersistenceManager(config.db_path)

        if dispatcher is None:
            printer_settings = self.persistence.load_printer_settings()
            if config.dry_run:
                dispatcher = DryRunPrintDispatcher(printer_settings)
            else:
                dispatcher = SystemPrintDispatcher(printer_settings)
        self.dispatcher = dispatcher

        self.notifier = OutcomeNotifier()
        self.recorder = PrintJobRecorder(self.persistence)
        self.statistics = StatisticsTracker(self.persistence)
        self.notifier.subscribe(self.recorder)
        self.notifier.subscribe(self.statistics)
        self.notifier.subscribe(self._log_outcome)

        self.processor = FileProcessor(
            dispatcher=self.dispatcher,
            notifier=self.notifier,
            prober=AvailabilityProber(
                poll_interval=config.availability_poll_interval,
                max_wait=config.availability_max_wait,
            ),
            printed_subfolder_name=config.printed_subfolder_name,
        )
        self.registry = WatchRegistry(
            processor=self.processor,
            folder_store=self.persistence,
            settle_delay=config.settle_delay,
            max_queue_size=config.max_queue_size,
            worker_count=config.worker_count,
            printed_subfolder_name=config.printed_subfolder_name,
        )
        self.started_at: Optional[datetime] = None
        # start, stop and restart may arrive from API threadpool threads
        self._control_lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self.registry.is_running

    def start(self) -> List[str]:
        """
        Watch every active folder in the store.

        Returns:
            Paths being watched

        Raises:
            PersistenceError: If the folder configuration cannot be read
        """
        with self._control_lock:
            watched = self.registry.start()
            if self.started_at is None:
                self.started_at = datetime.now()

        if watched:
            logger.info(f"PrintHero started, watching {len(watched)} folder(s)")
        else:
            logger.warning("PrintHero started, but no active folder could be watched")
        return watched

    def stop(self) -> None:
        """Stop watching; queued files finish printing first."""
        with self._control_lock:
            if not self.registry.is_running:
                return
            self.registry.stop()
            self.started_at = None
        logger.info("PrintHero stopped")

    def restart(self) -> List[str]:
        """Stop and start again, picking up folder configuration changes."""
        with self._control_lock:
            self.stop()
            return self.start()

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Start watching and block until ``stop_event`` is set.

        A heartbeat line is logged every ``heartbeat_interval`` seconds.
        Watching is always stopped on exit, including on KeyboardInterrupt.
        """
        stop_event = stop_event or threading.Event()
        self.start()
        try:
            while not stop_event.wait(self.config.heartbeat_interval):
                self._heartbeat()
        finally:
            self.stop()

    def update_printer_settings(
        self,
        printer_name: Optional[str],
        paper_size: str,
        orientation: Union[str, Orientation],
    ) -> PrinterSettings:
        """Apply and persist a new printer selection."""
        settings = self.dispatcher.set_printer_settings(printer_name, paper_size, orientation)
        self.persistence.save_printer_settings(settings)
        return settings

    def status(self) -> Dict[str, Any]:
        stats = self.statistics.snapshot()
        return {
            "running": self.registry.is_running,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "watched_folders": self.registry.watched_folders(),
            "dry_run": isinstance(self.dispatcher, DryRunPrintDispatcher),
            "printer": self.dispatcher.settings.model_dump(mode="json"),
            "files_processed_today": stats.files_processed_today,
            "printing_errors": stats.printing_errors,
        }

    def _heartbeat(self) -> None:
        stats = self.statistics.snapshot()
        logger.info(
            f"Heartbeat: watching {len(self.registry.watched_folders())} folder(s), "
            f"{stats.files_processed_today} printed today, {stats.printing_errors} error(s)"
        )

    @staticmethod
    def _log_outcome(outcome: ProcessingOutcome) -> None:
        if outcome.success and outcome.disposition_error:
            logger.warning(
                f"Printed {outcome.file_name} but post-print action failed: "
                f"{outcome.disposition_error}"
            )
        elif outcome.success:
            logger.info(f"Processed {outcome.file_name}")
        else:
            logger.warning(f"Failed {outcome.file_name}: {outcome.error_message}")
