"""
Logging setup for the PrintHero service and CLI.

Console output always; a daily rotating ``printhero.log`` when a log
directory is configured. Library modules only ever call
``logging.getLogger(__name__)``; handlers are installed here, once, by the
entry point.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"
LOG_FILE_NAME = "printhero.log"
LOG_BACKUP_DAYS = 14

# Marks handlers installed by configure_logging so reconfiguring replaces them
_HANDLER_TAG = "_printhero_handler"


def configure_logging(
    level: Union[str, int] = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
) -> None:
    """
    Install console and optional file handlers on the root logger.

    Args:
        level: Level name or number for the root logger
        log_dir: Directory for ``printhero.log`` (no file logging if None)

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.strip().upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    setattr(console, _HANDLER_TAG, True)
    root.addHandler(console)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_path / LOG_FILE_NAME,
            when="midnight",
            backupCount=LOG_BACKUP_DAYS,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    root.setLevel(level)

    # watchdog is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(max(level, logging.INFO))
