"""
Print job log and statistics models.

A PrintJobRecord is written for every processing outcome, successful or
not. PrintStatistics holds the daily counters shown to the operator.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..watchfolders.models import PostPrintAction, ProcessingOutcome


class PrintJobStatus(str, Enum):
    """
    Print job status.

    The pipeline only records terminal outcomes (completed or failed);
    the other states exist for records created by an operator or by
    future queue views.
    """

    PENDING = "pending"
    PRINTING = "printing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PrintJobRecord(BaseModel):
    """One entry in the print job log."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    file_path: str
    file_name: str
    printer_name: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    printed_at: Optional[datetime] = None
    status: PrintJobStatus = PrintJobStatus.PENDING
    error_message: Optional[str] = None
    monitored_folder_id: Optional[str] = None
    file_size_bytes: int = 0
    post_print_action: Optional[PostPrintAction] = None
    moved_to_path: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: ProcessingOutcome) -> "PrintJobRecord":
        """Build a terminal log entry from a processing outcome."""
        if outcome.success:
            status = PrintJobStatus.COMPLETED
            error_message = outcome.disposition_error
        else:
            status = PrintJobStatus.FAILED
            error_message = outcome.error_message

        return cls(
            file_path=outcome.file_path,
            file_name=Path(outcome.file_path).name,
            printer_name=outcome.printer_name,
            created_at=outcome.completed_at,
            printed_at=outcome.completed_at if outcome.success else None,
            status=status,
            error_message=error_message,
            monitored_folder_id=outcome.folder_id,
            file_size_bytes=outcome.file_size_bytes,
            post_print_action=outcome.post_print_action,
            moved_to_path=outcome.destination_path,
        )


class PrintStatistics(BaseModel):
    """
    Daily processing counters.

    ``files_processed_today`` counts successful prints, ``printing_errors``
    counts failed cycles. Both reset when the calendar day changes.
    """

    model_config = ConfigDict(extra="forbid")

    files_processed_today: int = 0
    printing_errors: int = 0
    last_reset_date: date = Field(default_factory=date.today)

    def rolled_over(self, today: date) -> "PrintStatistics":
        """Return counters valid for ``today``, reset if the day changed."""
        if self.last_reset_date == today:
            return self
        return PrintStatistics(last_reset_date=today)
