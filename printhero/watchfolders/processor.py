"""
File processor - one detected file through availability, print and disposition.

Every cycle produces exactly one ProcessingOutcome, which is published to
the OutcomeNotifier whether the cycle succeeded or not. Nothing raised
inside a cycle escapes ``process()``.
"""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..printing.dispatcher import PrintDispatcher
from .availability import AvailabilityProber
from .errors import DispositionError
from .events import OutcomeNotifier
from .models import DetectedFile, MonitoredFolder, PostPrintAction, ProcessingOutcome
from .naming import resolve_unique_path

logger = logging.getLogger(__name__)


FILE_NOT_AVAILABLE = "File not available"
PRINTING_FAILED = "Printing failed"
DEFAULT_PRINTED_SUBFOLDER = "Printed"


class FileProcessor:
    """
    Print pipeline for a single file.

    Order of operations:
    1. Wait until the file can be opened exclusively
    2. Submit it to the print dispatcher (one attempt, no retry)
    3. On success, apply the folder's post-print action

    A failed print leaves the file where it is. A failed move or delete
    after a successful print is logged and recorded on the outcome, but the
    outcome stays successful: the document was printed.
    """

    def __init__(
        self,
        dispatcher: PrintDispatcher,
        notifier: OutcomeNotifier,
        prober: Optional[AvailabilityProber] = None,
        printed_subfolder_name: str = DEFAULT_PRINTED_SUBFOLDER,
    ):
        self.dispatcher = dispatcher
        self.notifier = notifier
        self.prober = prober or AvailabilityProber()
        self.printed_subfolder_name = printed_subfolder_name

    def process(self, detected: DetectedFile) -> ProcessingOutcome:
        """
        Run one processing cycle and publish its outcome.

        Returns:
            The published ProcessingOutcome
        """
        try:
            outcome = self._run_cycle(detected)
        except Exception as e:
            logger.exception(f"Unexpected error processing {detected.path}")
            outcome = self._failure(detected, str(e) or type(e).__name__)

        self.notifier.notify(outcome)
        return outcome

    def _run_cycle(self, detected: DetectedFile) -> ProcessingOutcome:
        path = Path(detected.path)
        folder = detected.folder

        if not self.prober.wait_until_available(path):
            logger.warning(f"File not available, skipping: {path}")
            return self._failure(detected, FILE_NOT_AVAILABLE)

        # Size is captured before disposition may move or delete the file
        file_size = _file_size(path)
        printer_name = self.dispatcher.settings.printer_name

        if not self.dispatcher.print_file(path):
            logger.error(f"Printing failed: {path}")
            return self._failure(
                detected, PRINTING_FAILED, printer_name=printer_name, file_size=file_size
            )

        logger.info(f"Printed {path.name} from {folder.folder_path}")

        action = folder.effective_post_print_action()
        destination: Optional[Path] = None
        disposition_error: Optional[str] = None
        try:
            destination = self.apply_post_print_action(path, folder)
        except DispositionError as e:
            logger.error(str(e))
            disposition_error = e.reason

        folder.last_activity = datetime.now()

        return ProcessingOutcome(
            success=True,
            file_path=str(path),
            destination_path=str(destination) if destination else None,
            folder_id=folder.id,
            post_print_action=action,
            printer_name=printer_name,
            file_size_bytes=file_size,
            disposition_error=disposition_error,
        )

    def apply_post_print_action(self, path: Path, folder: MonitoredFolder) -> Optional[Path]:
        """
        Move, delete or keep a printed file according to folder policy.

        Returns:
            The destination path if the file was moved, None otherwise

        Raises:
            DispositionError: If the move or delete failed
        """
        action = folder.effective_post_print_action()

        if action == PostPrintAction.KEEP_FILE:
            logger.debug(f"Keeping printed file in place: {path}")
            return None

        if action == PostPrintAction.DELETE_FILE:
            try:
                path.unlink()
            except OSError as e:
                raise DispositionError(str(path), f"delete failed: {e}") from e
            logger.info(f"Deleted printed file: {path}")
            return None

        target_dir = self.destination_directory(path, folder)
        return self._move(path, target_dir)

    def destination_directory(self, path: Path, folder: MonitoredFolder) -> Path:
        """Directory a printed file is moved into for a move action."""
        if folder.effective_post_print_action() == PostPrintAction.MOVE_TO_CUSTOM_FOLDER:
            return Path(folder.custom_move_folder)
        return path.parent / self.printed_subfolder_name

    def _move(self, path: Path, target_dir: Path) -> Path:
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DispositionError(
                str(path), f"cannot create destination folder {target_dir}: {e}"
            ) from e

        destination = resolve_unique_path(target_dir / path.name)

        # Re-check right before moving; shutil.move overwrites on POSIX
        if destination.exists():
            raise DispositionError(str(path), f"destination already exists: {destination}")

        try:
            shutil.move(str(path), str(destination))
        except (OSError, shutil.Error) as e:
            raise DispositionError(str(path), f"move failed: {e}") from e

        logger.info(f"Moved printed file: {path.name} -> {destination}")
        return destination

    def _failure(
        self,
        detected: DetectedFile,
        message: str,
        printer_name: Optional[str] = None,
        file_size: int = 0,
    ) -> ProcessingOutcome:
        return ProcessingOutcome(
            success=False,
            file_path=detected.path,
            error_message=message,
            folder_id=detected.folder.id,
            post_print_action=detected.folder.effective_post_print_action(),
            printer_name=printer_name,
            file_size_bytes=file_size,
        )


def _file_size(path: Path) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0
