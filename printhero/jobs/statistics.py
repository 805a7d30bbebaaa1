"""
Daily print statistics.

Counts successful prints and failed cycles for the current calendar day.
Counters are kept in memory and, when a store is configured, written to
the settings table after every update so they survive a restart.
"""

import logging
import threading
from datetime import date
from typing import Callable

from pydantic import ValidationError

from ..watchfolders.models import ProcessingOutcome
from .models import PrintStatistics

logger = logging.getLogger(__name__)


STATISTICS_KEY = "statistics"


class StatisticsTracker:
    """
    Outcome listener maintaining PrintStatistics.

    Worker threads call the tracker concurrently; updates are serialized by
    an internal lock.
    """

    def __init__(
        self,
        persistence_manager=None,
        today: Callable[[], date] = date.today,
    ):
        self._persistence = persistence_manager
        self._today = today
        self._lock = threading.Lock()
        self._stats = self._load()

    def __call__(self, outcome: ProcessingOutcome) -> None:
        with self._lock:
            stats = self._stats.rolled_over(self._today())
            if outcome.success:
                update = {"files_processed_today": stats.files_processed_today + 1}
            else:
                update = {"printing_errors": stats.printing_errors + 1}
            self._stats = stats.model_copy(update=update)
            self._save(self._stats)

    def snapshot(self) -> PrintStatistics:
        """Current counters, reset first if the day has changed."""
        with self._lock:
            rolled = self._stats.rolled_over(self._today())
            if rolled is not self._stats:
                logger.info(f"Daily statistics reset for {rolled.last_reset_date}")
                self._stats = rolled
                self._save(rolled)
            return self._stats

    def reset(self) -> PrintStatistics:
        """Zero the counters for today."""
        with self._lock:
            self._stats = PrintStatistics(last_reset_date=self._today())
            self._save(self._stats)
            return self._stats

    def _load(self) -> PrintStatistics:
        if self._persistence is None:
            return PrintStatistics(last_reset_date=self._today())

        data = self._persistence.get_setting(STATISTICS_KEY)
        if not data:
            return PrintStatistics(last_reset_date=self._today())

        try:
            stats = PrintStatistics.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid stored statistics: {e}")
            return PrintStatistics(last_reset_date=self._today())

        return stats.rolled_over(self._today())

    def _save(self, stats: PrintStatistics) -> None:
        if self._persistence is None:
            return
        self._persistence.set_setting(STATISTICS_KEY, stats.model_dump(mode="json"))
