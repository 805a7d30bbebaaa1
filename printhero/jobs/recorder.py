"""
Print job log listener.

Subscribed to the OutcomeNotifier; writes one PrintJobRecord per processed
file and records the folder's last activity after a successful print.
"""

import logging

from ..watchfolders.models import ProcessingOutcome
from .models import PrintJobRecord

logger = logging.getLogger(__name__)


class PrintJobRecorder:
    """
    Persist processing outcomes to the print job log.

    Store errors propagate to the notifier, which logs them without
    affecting other listeners.
    """

    def __init__(self, persistence_manager):
        self._persistence = persistence_manager

    def __call__(self, outcome: ProcessingOutcome) -> None:
        record = PrintJobRecord.from_outcome(outcome)
        self._persistence.save_print_job(record)

        if outcome.success and outcome.folder_id:
            self._persistence.touch_folder_activity(outcome.folder_id, outcome.completed_at)

        logger.debug(f"Recorded print job {record.id}: {record.file_name} ({record.status.value})")
