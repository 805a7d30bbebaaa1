"""
Watch folder data models.

All models use Pydantic with strict validation and no silent coercion.
"""

import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_FILE_PATTERN = "*.pdf"


class PostPrintAction(str, Enum):
    """
    What happens to a file once it has been printed successfully.
    """

    MOVE_TO_SUBFOLDER = "move_to_subfolder"  # <file dir>/Printed
    MOVE_TO_CUSTOM_FOLDER = "move_to_custom_folder"  # custom_move_folder
    DELETE_FILE = "delete_file"
    KEEP_FILE = "keep_file"


class DetectionOrigin(str, Enum):
    """How a file was discovered by its watcher."""

    BACKLOG = "backlog"  # Present when watching started
    LIVE = "live"  # Reported by a filesystem creation event


class MonitoredFolder(BaseModel):
    """
    Monitored folder configuration.

    A monitored folder is a hot folder: every file matching ``file_pattern``
    that lands in it is printed, then handled according to
    ``post_print_action``.

    The pipeline does not own these records. It borrows a snapshot for the
    duration of a watch session and only touches ``last_activity`` on it.
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Opaque identifier for this folder",
    )
    folder_path: str = Field(..., description="Absolute path to monitored directory")
    is_active: bool = Field(default=True, description="Whether this folder is watched")
    file_pattern: str = Field(
        default=DEFAULT_FILE_PATTERN,
        description="Glob matched against file names (case-insensitive)",
    )
    include_subfolders: bool = Field(
        default=False, description="Whether to monitor subdirectories"
    )
    created_at: datetime = Field(default_factory=datetime.now)
    last_activity: Optional[datetime] = None
    post_print_action: PostPrintAction = PostPrintAction.MOVE_TO_SUBFOLDER
    custom_move_folder: Optional[str] = None

    @field_validator("folder_path")
    @classmethod
    def validate_folder_path(cls, v: str) -> str:
        """Ensure path is non-empty and absolute."""
        if not v or not v.strip():
            raise ValueError("Monitored folder path must not be empty")
        if not Path(v).is_absolute():
            raise ValueError(f"Monitored folder path must be absolute: {v}")
        return v

    @field_validator("file_pattern")
    @classmethod
    def default_blank_pattern(cls, v: str) -> str:
        return v.strip() or DEFAULT_FILE_PATTERN

    @field_validator("custom_move_folder")
    @classmethod
    def validate_custom_move_folder(cls, v: Optional[str]) -> Optional[str]:
        """Blank means no destination; otherwise the path must be absolute."""
        if v is None or not v.strip():
            return None
        if not Path(v).is_absolute():
            raise ValueError(f"Custom move folder must be absolute: {v}")
        return v

    def effective_post_print_action(self) -> PostPrintAction:
        """
        Resolve the action that will actually be applied.

        A custom-folder move without a destination degrades to keeping the
        file in place.
        """
        if (
            self.post_print_action == PostPrintAction.MOVE_TO_CUSTOM_FOLDER
            and not self.custom_move_folder
        ):
            return PostPrintAction.KEEP_FILE
        return self.post_print_action


class DetectedFile(BaseModel):
    """
    One unit of work for the file processor.

    Created by a folder watcher, consumed exactly once, then discarded.
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Absolute path to the detected file")
    folder: MonitoredFolder
    detected_at: datetime = Field(default_factory=datetime.now)
    origin: DetectionOrigin = DetectionOrigin.BACKLOG
    ready_at: Optional[datetime] = Field(
        default=None,
        description="Earliest moment processing may begin (settle delay)",
    )


class ProcessingOutcome(BaseModel):
    """
    Result of one file processor cycle.

    ``success`` reflects the print itself. A failed move or delete after a
    successful print is reported in ``disposition_error`` without changing
    ``success``.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    file_path: str = Field(..., description="Original path of the processed file")
    destination_path: Optional[str] = Field(
        None, description="Where the file was moved to, if it was moved"
    )
    error_message: Optional[str] = None
    completed_at: datetime = Field(default_factory=datetime.now)

    folder_id: Optional[str] = None
    post_print_action: Optional[PostPrintAction] = None
    printer_name: Optional[str] = None
    file_size_bytes: int = 0
    disposition_error: Optional[str] = None

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name


class FileAvailabilityCheck(BaseModel):
    """
    Result of a file availability probe.

    A file is available once it can be opened exclusively for reading.
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Absolute path to checked file")
    is_available: bool = Field(..., description="Whether file could be opened")
    attempts: int = Field(default=0, description="Number of open attempts made")
    waited_seconds: float = Field(default=0.0, description="Time spent waiting")
    reason: Optional[str] = Field(
        None, description="Last error seen while the file was unavailable"
    )
