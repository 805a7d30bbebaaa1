"""
Print dispatchers - the "print this file" capability.

The file processor only needs ``print_file(path) -> bool``: True means the
document was handed to a printer, False means it was not, for any reason.
Dispatchers never raise out of ``print_file``.

Concrete dispatchers:
    SystemPrintDispatcher - submits to the CUPS spooler via ``lp``
    DryRunPrintDispatcher - logs and reports success without printing
"""

import logging
import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .errors import PrinterError, PrinterNotConfiguredError, UnsupportedFileTypeError
from .models import Orientation, PrinterSettings

logger = logging.getLogger(__name__)


# Extensions with a print route, grouped by how the spooler treats them
DOCUMENT_EXTENSIONS = {".pdf", ".txt", ".doc", ".docx"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp"}
SUPPORTED_EXTENSIONS = DOCUMENT_EXTENSIONS | IMAGE_EXTENSIONS

DEFAULT_PRINT_TIMEOUT_SECONDS = 120.0


class PrintDispatcher(ABC):
    """
    Abstract print capability.

    Printer selection is shared, single-writer configuration. Updates
    replace the whole ``PrinterSettings`` value; each print call reads one
    snapshot and is unaffected by changes made while it runs.
    """

    def __init__(self, settings: Optional[PrinterSettings] = None):
        self._settings = settings or PrinterSettings()

    @property
    def settings(self) -> PrinterSettings:
        return self._settings

    def set_printer_settings(
        self,
        printer_name: Optional[str],
        paper_size: str,
        orientation: Union[str, Orientation],
    ) -> PrinterSettings:
        """
        Replace the printer selection used by subsequent print calls.

        Raises:
            pydantic.ValidationError: If orientation is not portrait/landscape
        """
        self._settings = PrinterSettings(
            printer_name=printer_name,
            paper_size=paper_size,
            orientation=orientation,
        )
        logger.info(
            f"Printer settings updated: {self._settings.printer_name or '<system default>'}, "
            f"{self._settings.paper_size}, {self._settings.orientation.value}"
        )
        return self._settings

    @abstractmethod
    def print_file(self, file_path: Union[str, Path]) -> bool:
        """
        Submit ``file_path`` to the printer.

        Returns:
            True if the document was handed to a printer, False otherwise
        """
        raise NotImplementedError


class SystemPrintDispatcher(PrintDispatcher):
    """
    Print through the CUPS command line tools.

    ``lp`` accepts PDF, plain text and images directly; office documents
    rely on the spooler's conversion filters being installed.
    """

    def __init__(
        self,
        settings: Optional[PrinterSettings] = None,
        lp_command: str = "lp",
        lpstat_command: str = "lpstat",
        timeout: float = DEFAULT_PRINT_TIMEOUT_SECONDS,
    ):
        super().__init__(settings)
        self.lp_command = lp_command
        self.lpstat_command = lpstat_command
        self.timeout = timeout

    def print_file(self, file_path: Union[str, Path]) -> bool:
        settings = self._settings
        path = Path(file_path)

        try:
            printer = self._resolve_printer(settings)

            if not path.is_file():
                logger.error(f"File not found: {path}")
                return False

            extension = path.suffix.lower()
            if extension not in SUPPORTED_EXTENSIONS:
                raise UnsupportedFileTypeError(extension)

            self._submit(path, printer, settings)
            logger.info(f"Printed {path.name} on {printer}")
            return True

        except UnsupportedFileTypeError as e:
            logger.warning(f"{e}: {path}")
            return False
        except PrinterError as e:
            logger.error(f"Failed to print {path}: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected error printing {path}")
            return False

    def build_command(self, path: Path, printer: str, settings: PrinterSettings) -> List[str]:
        """Build the ``lp`` argument vector for one file."""
        cmd = [
            self.lp_command,
            "-d", printer,
            "-t", path.name,
            "-o", f"media={settings.paper_size}",
        ]
        if settings.orientation == Orientation.LANDSCAPE:
            cmd.extend(["-o", "landscape"])
        if path.suffix.lower() in IMAGE_EXTENSIONS:
            cmd.extend(["-o", "fit-to-page"])
        cmd.append(str(path))
        return cmd

    def list_printers(self) -> List[str]:
        """
        List installed print destinations.

        Returns:
            Printer names (empty if the spooler cannot be queried)
        """
        try:
            result = subprocess.run(
                [self.lpstat_command, "-e"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not list printers: {e}")
            return []

        if result.returncode != 0:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def default_printer(self) -> Optional[str]:
        """Return the spooler's default destination, if one is set."""
        try:
            result = subprocess.run(
                [self.lpstat_command, "-d"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not query default printer: {e}")
            return None

        # "system default destination: office_laser"
        for line in result.stdout.splitlines():
            if ":" in line and "default destination" in line:
                name = line.split(":", 1)[1].strip()
                if name:
                    return name
        return None

    def test_print(self) -> bool:
        """
        Print a one-page text test sheet on the configured printer.

        Returns:
            True if the test page was submitted
        """
        settings = self._settings
        printer_label = settings.printer_name or self.default_printer() or "<none>"
        content = (
            "PrintHero Test Page\n"
            "\n"
            f"Printer: {printer_label}\n"
            f"Paper: {settings.paper_size} ({settings.orientation.value})\n"
            f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
        )

        fd, temp_path = tempfile.mkstemp(prefix="printhero_test_", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            return self.print_file(temp_path)
        finally:
            try:
                os.remove(temp_path)
            except OSError:
                pass

    def _resolve_printer(self, settings: PrinterSettings) -> str:
        if settings.printer_name:
            return settings.printer_name

        default = self.default_printer()
        if not default:
            raise PrinterNotConfiguredError("No printer configured and no system default")
        return default

    def _submit(self, path: Path, printer: str, settings: PrinterSettings) -> None:
        cmd = self.build_command(path, printer, settings)
        logger.debug(f"Submitting print job: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise PrinterError(f"Print command not found: {self.lp_command}") from e
        except subprocess.TimeoutExpired as e:
            raise PrinterError(f"Print command timed out after {self.timeout}s") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise PrinterError(f"lp exited with code {result.returncode}: {detail}")


class DryRunPrintDispatcher(PrintDispatcher):
    """
    Dispatcher for operator testing without a printer.

    Reports success for every existing file and keeps a history of what
    would have been printed.
    """

    def __init__(self, settings: Optional[PrinterSettings] = None):
        super().__init__(settings)
        self.printed: List[str] = []

    def print_file(self, file_path: Union[str, Path]) -> bool:
        path = Path(file_path)
        if not path.is_file():
            logger.error(f"[dry-run] File not found: {path}")
            return False

        settings = self._settings
        logger.info(
            f"[dry-run] Would print {path.name} on "
            f"{settings.printer_name or '<system default>'} "
            f"({settings.paper_size}, {settings.orientation.value})"
        )
        self.printed.append(str(path))
        return True
