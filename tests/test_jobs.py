"""
Tests for the print job log listener and daily statistics.
"""

from datetime import date, datetime

import pytest

from printhero.jobs.models import PrintJobRecord, PrintJobStatus, PrintStatistics
from printhero.jobs.recorder import PrintJobRecorder
from printhero.jobs.statistics import StatisticsTracker
from printhero.persistence.manager import PersistenceManager
from printhero.watchfolders.models import MonitoredFolder, PostPrintAction, ProcessingOutcome


@pytest.fixture
def store(tmp_path):
    return PersistenceManager(str(tmp_path / "printhero.db"))


def _success(**overrides):
    data = dict(
        success=True,
        file_path="/hot/invoice.pdf",
        destination_path="/hot/Printed/invoice.pdf",
        folder_id="folder-1",
        post_print_action=PostPrintAction.MOVE_TO_SUBFOLDER,
        printer_name="office",
        file_size_bytes=1024,
    )
    data.update(overrides)
    return ProcessingOutcome(**data)


def _failure():
    return ProcessingOutcome(
        success=False, file_path="/hot/broken.pdf", error_message="Printing failed"
    )


class TestPrintJobRecord:

    def test_from_successful_outcome(self):
        outcome = _success()

        record = PrintJobRecord.from_outcome(outcome)

        assert record.status == PrintJobStatus.COMPLETED
        assert record.file_name == "invoice.pdf"
        assert record.printed_at == outcome.completed_at
        assert record.moved_to_path == "/hot/Printed/invoice.pdf"
        assert record.error_message is None

    def test_disposition_error_is_kept_on_completed_record(self):
        record = PrintJobRecord.from_outcome(_success(destination_path=None, disposition_error="move failed"))

        assert record.status == PrintJobStatus.COMPLETED
        assert record.error_message == "move failed"

    def test_from_failed_outcome(self):
        record = PrintJobRecord.from_outcome(_failure())

        assert record.status == PrintJobStatus.FAILED
        assert record.printed_at is None
        assert record.error_message == "Printing failed"


class TestPrintJobRecorder:

    def test_outcome_is_written_to_log(self, store):
        PrintJobRecorder(store)(_failure())

        jobs = store.load_print_jobs()
        assert len(jobs) == 1
        assert jobs[0].status == PrintJobStatus.FAILED

    def test_success_touches_folder_activity(self, store, tmp_path):
        folder = MonitoredFolder(folder_path=str(tmp_path / "hot"))
        store.save_folder(folder)
        outcome = _success(folder_id=folder.id)

        PrintJobRecorder(store)(outcome)

        assert store.load_monitored_folder(folder.id).last_activity == outcome.completed_at


class TestStatisticsTracker:

    def test_counts_successes_and_failures(self):
        tracker = StatisticsTracker()

        tracker(_success())
        tracker(_success())
        tracker(_failure())

        stats = tracker.snapshot()
        assert stats.files_processed_today == 2
        assert stats.printing_errors == 1

    def test_counters_reset_when_day_changes(self):
        today = [date(2026, 10, 18)]
        tracker = StatisticsTracker(today=lambda: today[0])
        tracker(_success())

        today[0] = date(2026, 10, 19)
        stats = tracker.snapshot()

        assert stats.files_processed_today == 0
        assert stats.last_reset_date == date(2026, 10, 19)

    def test_update_after_midnight_starts_new_day(self):
        today = [date(2026, 10, 18)]
        tracker = StatisticsTracker(today=lambda: today[0])
        tracker(_failure())

        today[0] = date(2026, 10, 19)
        tracker(_success())

        stats = tracker.snapshot()
        assert stats.files_processed_today == 1
        assert stats.printing_errors == 0

    def test_counters_survive_restart_on_same_day(self, store):
        day = date(2026, 10, 19)
        StatisticsTracker(store, today=lambda: day)(_success())

        restored = StatisticsTracker(store, today=lambda: day).snapshot()

        assert restored.files_processed_today == 1

    def test_stored_counters_from_earlier_day_are_reset(self, store):
        store.set_setting(
            "statistics",
            PrintStatistics(files_processed_today=9, last_reset_date=date(2026, 1, 1)).model_dump(mode="json"),
        )

        stats = StatisticsTracker(store, today=lambda: date(2026, 10, 19)).snapshot()

        assert stats.files_processed_today == 0

    def test_reset(self):
        tracker = StatisticsTracker()
        tracker(_failure())

        assert tracker.reset().printing_errors == 0
