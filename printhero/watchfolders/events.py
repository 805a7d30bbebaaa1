"""
Processed-file notifications.

Fire-and-forget fan-out of ProcessingOutcome values to any number of
observers (statistics, print-job log, UI refresh). A failing observer is
logged and skipped; it never breaks delivery to the others and never
propagates back into the pipeline.
"""

import logging
import threading
from typing import Callable, List

from .models import ProcessingOutcome

logger = logging.getLogger(__name__)


OutcomeListener = Callable[[ProcessingOutcome], None]


class OutcomeNotifier:
    """Thread-safe observer registration list for processed-file events."""

    def __init__(self):
        self._listeners: List[OutcomeListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: OutcomeListener) -> None:
        """Register a listener. Registering the same listener twice is a no-op."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: OutcomeListener) -> None:
        """Remove a listener. Does not raise if it was never registered."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self, outcome: ProcessingOutcome) -> None:
        """
        Deliver an outcome to every registered listener.

        Listeners run on the calling (worker) thread, in registration order.
        """
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(outcome)
            except Exception:
                logger.exception(
                    f"Processed-file listener {listener!r} failed for {outcome.file_path}"
                )
