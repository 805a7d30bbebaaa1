"""
SQLite configuration store for PrintHero.

Single-file database holding monitored folders, the print job log and a
small key/value settings table. Every call opens its own connection, so
the manager can be shared between the control thread and worker threads.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..jobs.models import PrintJobRecord, PrintJobStatus
from ..printing.models import PrinterSettings
from ..watchfolders.errors import DuplicateWatchFolderError, WatchFolderNotFoundError
from ..watchfolders.models import MonitoredFolder
from .errors import LoadError, PersistenceError, SaveError, SchemaError

logger = logging.getLogger(__name__)


# Database schema version for migrations
SCHEMA_VERSION = 1

DEFAULT_DB_NAME = "printhero.db"
PRINTER_SETTINGS_KEY = "printer_settings"


class PersistenceManager:
    """
    Manages SQLite persistence for PrintHero state.

    Stores:
    - Monitored folder configurations
    - Print job log
    - Settings (printer selection, daily statistics)

    Does NOT store:
    - Watch session state (rebuilt from active folders at start)
    - Queued but unprocessed files
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize persistence manager.

        Args:
            db_path: Path to SQLite database file (defaults to ./printhero.db)
        """
        if db_path is None:
            db_path = str(Path.cwd() / DEFAULT_DB_NAME)

        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def _connect(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row  # Access columns by name
        try:
            yield conn
            conn.commit()
        except PersistenceError:
            conn.rollback()
            raise
        except Exception as e:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self):
        """Create schema if it doesn't exist."""
        with self._connect() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version > SCHEMA_VERSION:
                raise SchemaError(
                    f"Database schema version {current_version} is newer than "
                    f"supported version {SCHEMA_VERSION}: {self.db_path}"
                )

            if current_version < SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

    def _migrate_schema(self, conn, from_version: int):
        """Apply schema migrations."""
        cursor = conn.cursor()

        if from_version < 1:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS monitored_folders (
                    id TEXT PRIMARY KEY,
                    folder_path TEXT NOT NULL UNIQUE,
                    is_active INTEGER NOT NULL,
                    file_pattern TEXT NOT NULL,
                    include_subfolders INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    last_activity TEXT,
                    post_print_action TEXT NOT NULL,
                    custom_move_folder TEXT
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS print_jobs (
                    id TEXT PRIMARY KEY,
                    file_path TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    printer_name TEXT,
                    created_at TEXT NOT NULL,
                    printed_at TEXT,
                    status TEXT NOT NULL,
                    error_message TEXT,
                    monitored_folder_id TEXT,
                    file_size_bytes INTEGER DEFAULT 0,
                    post_print_action TEXT,
                    moved_to_path TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_print_jobs_created_at
                ON print_jobs (created_at)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, datetime.now().isoformat())
            )
            logger.info(f"Initialized database schema v1: {self.db_path}")

    # Monitored folders

    def save_folder(self, folder: MonitoredFolder) -> None:
        """
        Save or update a monitored folder.

        Raises:
            DuplicateWatchFolderError: If another folder already uses this path
        """
        existing = self.find_folder_by_path(folder.folder_path)
        if existing is not None and existing.id != folder.id:
            raise DuplicateWatchFolderError(
                f"Folder is already monitored: {folder.folder_path}"
            )

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO monitored_folders (
                    id, folder_path, is_active, file_pattern, include_subfolders,
                    created_at, last_activity, post_print_action, custom_move_folder
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    folder_path = excluded.folder_path,
                    is_active = excluded.is_active,
                    file_pattern = excluded.file_pattern,
                    include_subfolders = excluded.include_subfolders,
                    last_activity = excluded.last_activity,
                    post_print_action = excluded.post_print_action,
                    custom_move_folder = excluded.custom_move_folder
            """, (
                folder.id,
                folder.folder_path,
                1 if folder.is_active else 0,
                folder.file_pattern,
                1 if folder.include_subfolders else 0,
                folder.created_at.isoformat(),
                folder.last_activity.isoformat() if folder.last_activity else None,
                folder.post_print_action.value,
                folder.custom_move_folder,
            ))

    def load_monitored_folder(self, folder_id: str) -> Optional[MonitoredFolder]:
        """Load one monitored folder by ID."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM monitored_folders WHERE id = ?", (folder_id,))
            row = cursor.fetchone()

        return self._folder_from_row(row) if row else None

    def find_folder_by_path(self, folder_path: str) -> Optional[MonitoredFolder]:
        """Load the monitored folder configured for ``folder_path``, if any."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM monitored_folders WHERE folder_path = ?", (folder_path,)
            )
            row = cursor.fetchone()

        return self._folder_from_row(row) if row else None

    def load_all_monitored_folders(self) -> List[MonitoredFolder]:
        """Load every monitored folder, oldest first."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM monitored_folders ORDER BY created_at")
            rows = cursor.fetchall()

        return [self._folder_from_row(row) for row in rows]

    def load_active_monitored_folders(self) -> List[MonitoredFolder]:
        """Load the folders that should be watched, oldest first."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM monitored_folders WHERE is_active = 1 ORDER BY created_at"
            )
            rows = cursor.fetchall()

        return [self._folder_from_row(row) for row in rows]

    def delete_folder(self, folder_id: str) -> None:
        """
        Delete a monitored folder.

        Raises:
            WatchFolderNotFoundError: If no folder has this ID
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM monitored_folders WHERE id = ?", (folder_id,))
            deleted = cursor.rowcount

        if not deleted:
            raise WatchFolderNotFoundError(f"Monitored folder not found: {folder_id}")

    def set_folder_active(self, folder_id: str, is_active: bool) -> None:
        """
        Enable or disable a monitored folder.

        Raises:
            WatchFolderNotFoundError: If no folder has this ID
        """
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE monitored_folders SET is_active = ? WHERE id = ?",
                (1 if is_active else 0, folder_id),
            )
            updated = cursor.rowcount

        if not updated:
            raise WatchFolderNotFoundError(f"Monitored folder not found: {folder_id}")

    def touch_folder_activity(self, folder_id: str, when: Optional[datetime] = None) -> None:
        """Record the time of the folder's last successful print. Unknown IDs are ignored."""
        when = when or datetime.now()
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE monitored_folders SET last_activity = ? WHERE id = ?",
                (when.isoformat(), folder_id),
            )

    # Print job log

    def save_print_job(self, record: PrintJobRecord) -> None:
        """Save or update a print job log entry."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO print_jobs (
                    id, file_path, file_name, printer_name, created_at, printed_at,
                    status, error_message, monitored_folder_id, file_size_bytes,
                    post_print_action, moved_to_path
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    printer_name = excluded.printer_name,
                    printed_at = excluded.printed_at,
                    status = excluded.status,
                    error_message = excluded.error_message,
                    moved_to_path = excluded.moved_to_path
            """, (
                record.id,
                record.file_path,
                record.file_name,
                record.printer_name,
                record.created_at.isoformat(),
                record.printed_at.isoformat() if record.printed_at else None,
                record.status.value,
                record.error_message,
                record.monitored_folder_id,
                record.file_size_bytes,
                record.post_print_action.value if record.post_print_action else None,
                record.moved_to_path,
            ))

    def load_print_jobs(
        self,
        limit: int = 100,
        status: Optional[PrintJobStatus] = None,
    ) -> List[PrintJobRecord]:
        """
        Load print job log entries, newest first.

        Args:
            limit: Maximum number of entries
            status: Optional status filter
        """
        with self._connect() as conn:
            cursor = conn.cursor()

            if status is not None:
                cursor.execute(
                    "SELECT * FROM print_jobs WHERE status = ? "
                    "ORDER BY created_at DESC LIMIT ?",
                    (PrintJobStatus(status).value, limit)
                )
            else:
                cursor.execute(
                    "SELECT * FROM print_jobs ORDER BY created_at DESC LIMIT ?",
                    (limit,)
                )
            rows = cursor.fetchall()

        return [self._job_from_row(row) for row in rows]

    # Settings

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Load a JSON-encoded setting, or ``default`` if it is not set."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()

        if not row:
            return default

        try:
            return json.loads(row["value"])
        except ValueError as e:
            raise LoadError(f"Setting '{key}' is not valid JSON: {e}") from e

    def set_setting(self, key: str, value: Any) -> None:
        """
        Store a setting as JSON.

        Raises:
            SaveError: If the value cannot be encoded
        """
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise SaveError(f"Setting '{key}' is not JSON serializable: {e}") from e

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, encoded, datetime.now().isoformat()))

    def load_printer_settings(self) -> PrinterSettings:
        """Load the stored printer selection (defaults if never saved)."""
        data = self.get_setting(PRINTER_SETTINGS_KEY)
        if not data:
            return PrinterSettings()
        try:
            return PrinterSettings.model_validate(data)
        except ValidationError as e:
            raise LoadError(f"Stored printer settings are invalid: {e}") from e

    def save_printer_settings(self, settings: PrinterSettings) -> None:
        self.set_setting(PRINTER_SETTINGS_KEY, settings.model_dump(mode="json"))

    # Row conversion

    @staticmethod
    def _folder_from_row(row: sqlite3.Row) -> MonitoredFolder:
        try:
            return MonitoredFolder(
                id=row["id"],
                folder_path=row["folder_path"],
                is_active=bool(row["is_active"]),
                file_pattern=row["file_pattern"],
                include_subfolders=bool(row["include_subfolders"]),
                created_at=datetime.fromisoformat(row["created_at"]),
                last_activity=(
                    datetime.fromisoformat(row["last_activity"])
                    if row["last_activity"] else None
                ),
                post_print_action=row["post_print_action"],
                custom_move_folder=row["custom_move_folder"],
            )
        except (ValidationError, ValueError) as e:
            raise LoadError(f"Invalid monitored folder row '{row['id']}': {e}") from e

    @staticmethod
    def _job_from_row(row: sqlite3.Row) -> PrintJobRecord:
        data: Dict[str, Any] = dict(row)
        try:
            return PrintJobRecord.model_validate(data)
        except ValidationError as e:
            raise LoadError(f"Invalid print job row '{row['id']}': {e}") from e
