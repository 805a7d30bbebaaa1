"""
Printing - the capability boundary consumed by the watch folder pipeline.

Public API:
    PrintDispatcher - Abstract print capability
    SystemPrintDispatcher - CUPS ``lp`` based dispatcher
    DryRunPrintDispatcher - Logging-only dispatcher for testing
    PrinterSettings - Printer name, paper size and orientation
"""

from .errors import PrinterError, PrinterNotConfiguredError, UnsupportedFileTypeError
from .models import Orientation, PrinterSettings
from .dispatcher import (
    SUPPORTED_EXTENSIONS,
    DryRunPrintDispatcher,
    PrintDispatcher,
    SystemPrintDispatcher,
)

__all__ = [
    # Errors
    "PrinterError",
    "PrinterNotConfiguredError",
    "UnsupportedFileTypeError",
    # Models
    "Orientation",
    "PrinterSettings",
    # Dispatchers
    "SUPPORTED_EXTENSIONS",
    "PrintDispatcher",
    "SystemPrintDispatcher",
    "DryRunPrintDispatcher",
]
