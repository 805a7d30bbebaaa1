"""
Print job log and daily statistics.

Both are OutcomeNotifier listeners: they observe processing outcomes and
never influence the pipeline.
"""

from .models import PrintJobRecord, PrintJobStatus, PrintStatistics
from .recorder import PrintJobRecorder
from .statistics import StatisticsTracker

__all__ = [
    "PrintJobRecord",
    "PrintJobStatus",
    "PrintStatistics",
    "PrintJobRecorder",
    "StatisticsTracker",
]
