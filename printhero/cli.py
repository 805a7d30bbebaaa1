#!/usr/bin/env python3
"""
PrintHero CLI - operator entrypoint.

Commands:
- run: watch all active folders until interrupted
- serve: watch and expose the monitor API
- folders: list, add, remove, enable and disable monitored folders
- jobs: show the print job log
- stats: show (or reset) today's counters
- printer: show, set, list and test printers

Exit Codes:
===========
- 0: Success
- 1: Validation error (bad argument, unknown folder, duplicate path)
- 4: System error (configuration, database, filesystem)
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import List, NoReturn, Optional

from pydantic import ValidationError

from . import __version__
from .config import ConfigError, ServiceConfig, load_config
from .jobs.models import PrintJobStatus
from .jobs.statistics import StatisticsTracker
from .logging_config import configure_logging
from .persistence.errors import PersistenceError
from .persistence.manager import PersistenceManager
from .printing.dispatcher import SystemPrintDispatcher
from .printing.models import Orientation
from .watchfolders.errors import DuplicateWatchFolderError, WatchFolderNotFoundError
from .watchfolders.models import DEFAULT_FILE_PATTERN, MonitoredFolder, PostPrintAction

EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_SYSTEM = 4


def _error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


def _load_config(args: argparse.Namespace) -> ServiceConfig:
    config = load_config(args.config)
    updates = {}
    if args.db:
        updates["db_path"] = args.db
    if args.log_level:
        updates["log_level"] = args.log_level.upper()
    if getattr(args, "dry_run", False):
        updates["dry_run"] = True
    if updates:
        config = ServiceConfig.model_validate({**config.model_dump(), **updates})
    return config


def _open_store(args: argparse.Namespace) -> PersistenceManager:
    return PersistenceManager(args.service_config.db_path)


def _find_folder(store: PersistenceManager, reference: str) -> MonitoredFolder:
    """Look a folder up by ID, then by path."""
    folder = store.load_monitored_folder(reference)
    if folder is None:
        folder = store.find_folder_by_path(str(Path(reference).expanduser().absolute()))
    if folder is None:
        raise WatchFolderNotFoundError(f"Monitored folder not found: {reference}")
    return folder


# -----------------------------------------------------------------------------
# Service commands
# -----------------------------------------------------------------------------

def cmd_run(args: argparse.Namespace) -> int:
    """
    Watch all active folders until SIGINT/SIGTERM.

    Exit codes:
        0: Normal shutdown
        4: Configuration store could not be read
    """
    from .service import PrintHeroService

    service = PrintHeroService(args.service_config)
    stop_event = threading.Event()

    def _request_stop(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGTERM, _request_stop)

    try:
        service.run_forever(stop_event)
    except KeyboardInterrupt:
        print("\nPrintHero stopped by user.", file=sys.stderr)
    return EXIT_OK


def cmd_serve(args: argparse.Namespace) -> int:
    """Watch folders and serve the monitor API."""
    from .api import run_api_server
    from .service import PrintHeroService

    service = PrintHeroService(args.service_config)
    run_api_server(
        service,
        host=args.host,
        port=args.port,
        start_watching=not args.no_watch,
    )
    return EXIT_OK


# -----------------------------------------------------------------------------
# Folder commands
# -----------------------------------------------------------------------------

def cmd_folders_list(args: argparse.Namespace) -> int:
    folders = _open_store(args).load_all_monitored_folders()
    if not folders:
        print("No monitored folders configured.")
        return EXIT_OK

    for folder in folders:
        marker = "✓" if folder.is_active else "-"
        action = folder.effective_post_print_action().value
        if folder.effective_post_print_action() == PostPrintAction.MOVE_TO_CUSTOM_FOLDER:
            action = f"{action} -> {folder.custom_move_folder}"
        last = folder.last_activity.strftime("%Y-%m-%d %H:%M") if folder.last_activity else "never"
        print(f"{marker} {folder.id}  {folder.folder_path}")
        print(
            f"    pattern={folder.file_pattern} "
            f"subfolders={'yes' if folder.include_subfolders else 'no'} "
            f"action={action} last_activity={last}"
        )
    return EXIT_OK


def cmd_folders_add(args: argparse.Namespace) -> int:
    """
    Add a monitored folder.

    Exit codes:
        0: Added
        1: Folder missing, duplicate path, or invalid options
    """
    path = Path(args.path).expanduser().absolute()
    if not path.is_dir():
        _error(f"Folder not found or not a directory: {path}")
        return EXIT_VALIDATION

    action = PostPrintAction(args.action)
    if action == PostPrintAction.MOVE_TO_CUSTOM_FOLDER and not args.custom_folder:
        _error("--custom-folder is required with --action move_to_custom_folder")
        return EXIT_VALIDATION

    try:
        folder = MonitoredFolder(
            folder_path=str(path),
            is_active=not args.inactive,
            file_pattern=args.pattern,
            include_subfolders=args.include_subfolders,
            post_print_action=action,
            custom_move_folder=(
                str(Path(args.custom_folder).expanduser().absolute())
                if args.custom_folder else None
            ),
        )
        _open_store(args).save_folder(folder)
    except ValidationError as e:
        _error(f"Invalid folder configuration: {e}")
        return EXIT_VALIDATION
    except DuplicateWatchFolderError as e:
        _error(str(e))
        return EXIT_VALIDATION

    print(f"✓ Added monitored folder {folder.id}: {folder.folder_path}")
    return EXIT_OK


def cmd_folders_remove(args: argparse.Namespace) -> int:
    store = _open_store(args)
    folder = _find_folder(store, args.folder)
    store.delete_folder(folder.id)
    print(f"✓ Removed monitored folder: {folder.folder_path}")
    return EXIT_OK


def _set_active(args: argparse.Namespace, is_active: bool) -> int:
    store = _open_store(args)
    folder = _find_folder(store, args.folder)
    store.set_folder_active(folder.id, is_active)
    state = "Enabled" if is_active else "Disabled"
    print(f"✓ {state} monitored folder: {folder.folder_path}")
    return EXIT_OK


def cmd_folders_enable(args: argparse.Namespace) -> int:
    return _set_active(args, True)


def cmd_folders_disable(args: argparse.Namespace) -> int:
    return _set_active(args, False)


# -----------------------------------------------------------------------------
# Job log and statistics
# -----------------------------------------------------------------------------

def cmd_jobs(args: argparse.Namespace) -> int:
    status = PrintJobStatus(args.status) if args.status else None
    jobs = _open_store(args).load_print_jobs(limit=args.limit, status=status)
    if not jobs:
        print("No print jobs recorded.")
        return EXIT_OK

    for job in jobs:
        when = job.created_at.strftime("%Y-%m-%d %H:%M:%S")
        line = f"{when}  {job.status.value:<9}  {job.file_name}"
        if job.printer_name:
            line += f"  [{job.printer_name}]"
        if job.error_message:
            line += f"  ({job.error_message})"
        print(line)
    return EXIT_OK


def cmd_stats(args: argparse.Namespace) -> int:
    tracker = StatisticsTracker(_open_store(args))
    stats = tracker.reset() if args.reset else tracker.snapshot()
    print(f"Date:             {stats.last_reset_date.isoformat()}")
    print(f"Files processed:  {stats.files_processed_today}")
    print(f"Printing errors:  {stats.printing_errors}")
    return EXIT_OK


# -----------------------------------------------------------------------------
# Printer commands
# -----------------------------------------------------------------------------

def cmd_printer_show(args: argparse.Namespace) -> int:
    settings = _open_store(args).load_printer_settings()
    print(f"Printer:      {settings.printer_name or '<system default>'}")
    print(f"Paper size:   {settings.paper_size}")
    print(f"Orientation:  {settings.orientation.value}")
    return EXIT_OK


def cmd_printer_set(args: argparse.Namespace) -> int:
    store = _open_store(args)
    current = store.load_printer_settings()
    dispatcher = SystemPrintDispatcher(current)

    printer_name = current.printer_name if args.name is None else args.name
    try:
        settings = dispatcher.set_printer_settings(
            printer_name,
            args.paper or current.paper_size,
            args.orientation or current.orientation,
        )
    except ValidationError as e:
        _error(f"Invalid printer settings: {e}")
        return EXIT_VALIDATION

    store.save_printer_settings(settings)
    print(
        f"✓ Printer set to {settings.printer_name or '<system default>'} "
        f"({settings.paper_size}, {settings.orientation.value})"
    )
    return EXIT_OK


def cmd_printer_list(args: argparse.Namespace) -> int:
    dispatcher = SystemPrintDispatcher()
    printers = dispatcher.list_printers()
    if not printers:
        print("No printers found.")
        return EXIT_OK

    default = dispatcher.default_printer()
    for name in printers:
        print(f"{'*' if name == default else ' '} {name}")
    return EXIT_OK


def cmd_printer_test(args: argparse.Namespace) -> int:
    dispatcher = SystemPrintDispatcher(_open_store(args).load_printer_settings())
    if dispatcher.test_print():
        print("✓ Test page sent")
        return EXIT_OK
    print("✗ Test page failed, see log for details", file=sys.stderr)
    return EXIT_SYSTEM


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="printhero",
        description="PrintHero - hot folder printing",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to config JSON (default: ~/.printhero/config.json)")
    parser.add_argument("--db", help="Path to SQLite database (overrides config)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    # Service
    parser_run = subparsers.add_parser("run", help="Watch all active folders until interrupted")
    parser_run.add_argument("--dry-run", action="store_true", help="Log instead of printing")
    parser_run.set_defaults(func=cmd_run)

    parser_serve = subparsers.add_parser("serve", help="Watch folders and serve the monitor API")
    parser_serve.add_argument("--host", default=None, help="Bind address (default: 127.0.0.1)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port (default: from config)")
    parser_serve.add_argument("--no-watch", action="store_true", help="Serve the API without watching")
    parser_serve.add_argument("--dry-run", action="store_true", help="Log instead of printing")
    parser_serve.set_defaults(func=cmd_serve)

    # Folders
    parser_folders = subparsers.add_parser("folders", help="Manage monitored folders")
    folder_commands = parser_folders.add_subparsers(dest="folder_command", required=True)

    folder_commands.add_parser("list", help="List monitored folders").set_defaults(
        func=cmd_folders_list
    )

    parser_add = folder_commands.add_parser("add", help="Add a monitored folder")
    parser_add.add_argument("path", help="Folder to monitor")
    parser_add.add_argument(
        "--pattern",
        default=DEFAULT_FILE_PATTERN,
        help=f"File name pattern (default: {DEFAULT_FILE_PATTERN})",
    )
    parser_add.add_argument(
        "--include-subfolders", action="store_true", help="Also watch subdirectories"
    )
    parser_add.add_argument(
        "--action",
        choices=[a.value for a in PostPrintAction],
        default=PostPrintAction.MOVE_TO_SUBFOLDER.value,
        help="What to do with a file after printing (default: move_to_subfolder)",
    )
    parser_add.add_argument("--custom-folder", help="Destination for move_to_custom_folder")
    parser_add.add_argument("--inactive", action="store_true", help="Add without watching it")
    parser_add.set_defaults(func=cmd_folders_add)

    for name, func, help_text in (
        ("remove", cmd_folders_remove, "Remove a monitored folder"),
        ("enable", cmd_folders_enable, "Enable a monitored folder"),
        ("disable", cmd_folders_disable, "Disable a monitored folder"),
    ):
        sub = folder_commands.add_parser(name, help=help_text)
        sub.add_argument("folder", help="Folder ID or path")
        sub.set_defaults(func=func)

    # Jobs and stats
    parser_jobs = subparsers.add_parser("jobs", help="Show the print job log")
    parser_jobs.add_argument("--limit", type=int, default=20, help="Entries to show (default: 20)")
    parser_jobs.add_argument(
        "--status", choices=[s.value for s in PrintJobStatus], help="Filter by status"
    )
    parser_jobs.set_defaults(func=cmd_jobs)

    parser_stats = subparsers.add_parser("stats", help="Show today's statistics")
    parser_stats.add_argument("--reset", action="store_true", help="Reset today's counters")
    parser_stats.set_defaults(func=cmd_stats)

    # Printer
    parser_printer = subparsers.add_parser("printer", help="Printer settings")
    printer_commands = parser_printer.add_subparsers(dest="printer_command", required=True)

    printer_commands.add_parser("show", help="Show printer settings").set_defaults(
        func=cmd_printer_show
    )

    parser_set = printer_commands.add_parser("set", help="Change printer settings")
    parser_set.add_argument("--name", help="Printer name (empty string = system default)")
    parser_set.add_argument("--paper", help="Paper size, e.g. A4 or Letter")
    parser_set.add_argument(
        "--orientation", choices=[o.value for o in Orientation], help="Page orientation"
    )
    parser_set.set_defaults(func=cmd_printer_set)

    printer_commands.add_parser("list", help="List installed printers").set_defaults(
        func=cmd_printer_list
    )
    printer_commands.add_parser("test", help="Print a test page").set_defaults(
        func=cmd_printer_test
    )

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """
    Main CLI entrypoint.

    Parses arguments and dispatches to subcommands.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.service_config = _load_config(args)
    except (ConfigError, ValidationError) as e:
        _error(str(e))
        sys.exit(EXIT_SYSTEM)

    configure_logging(args.service_config.log_level, args.service_config.log_dir or None)

    try:
        sys.exit(args.func(args))
    except WatchFolderNotFoundError as e:
        _error(str(e))
        sys.exit(EXIT_VALIDATION)
    except (PersistenceError, OSError) as e:
        _error(str(e))
        sys.exit(EXIT_SYSTEM)


if __name__ == "__main__":
    main()
