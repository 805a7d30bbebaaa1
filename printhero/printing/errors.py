"""
Printing error types.

Dispatchers never let these escape ``print_file``; they are raised by the
lower-level helpers and converted into a False result at the boundary.
"""


class PrinterError(RuntimeError):
    """Raised when the printer cannot accept or process a print request."""

    pass


class PrinterNotConfiguredError(PrinterError):
    """No printer name is configured and no system default could be found."""

    pass


class UnsupportedFileTypeError(PrinterError):
    """The file extension has no print route."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '<none>'}")
