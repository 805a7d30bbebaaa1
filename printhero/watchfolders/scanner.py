"""
Filesystem scanner for monitored folders.

Enumerates the backlog of files already present when watching starts, and
provides the name and location filters that live events go through as well.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, List, Set

from .models import MonitoredFolder

logger = logging.getLogger(__name__)


def matches_pattern(file_name: str, pattern: str) -> bool:
    """Case-insensitive glob match against a bare file name."""
    return fnmatch.fnmatch(file_name.lower(), pattern.lower())


def is_within(path: Path, directories: Iterable[Path]) -> bool:
    """Return True if ``path`` is one of ``directories`` or below one of them."""
    for directory in directories:
        if path == directory or directory in path.parents:
            return True
    return False


class FileScanner:
    """
    Filesystem scanner for hot folder backlogs.

    Returns files matching the folder's glob pattern, optionally recursing
    into subdirectories. Skips hidden files, directories, symlinks and any
    excluded directory (post-print destinations), either by absolute path or
    by directory name at any depth.
    """

    def __init__(self, skip_hidden: bool = True, follow_symlinks: bool = False):
        """
        Initialize file scanner.

        Args:
            skip_hidden: Skip files/dirs starting with '.' (default: True)
            follow_symlinks: Follow symbolic links (default: False for safety)
        """
        self.skip_hidden = skip_hidden
        self.follow_symlinks = follow_symlinks

    def scan(
        self,
        folder: MonitoredFolder,
        exclude_dirs: Iterable[Path] = (),
        exclude_dir_names: Iterable[str] = (),
    ) -> List[Path]:
        """
        Scan a monitored folder for matching files.

        Returns:
            List of absolute paths, sorted for deterministic ordering

        Raises:
            OSError: If the folder itself cannot be listed
        """
        root = Path(folder.folder_path)
        excluded = {Path(d).absolute() for d in exclude_dirs}
        excluded_names = {name.lower() for name in exclude_dir_names}

        if folder.include_subfolders:
            candidates = self._scan_recursive(
                root, folder.file_pattern, excluded, excluded_names
            )
        else:
            candidates = self._scan_toplevel(root, folder.file_pattern)

        return sorted(candidates)

    def is_candidate(self, path: Path, pattern: str) -> bool:
        """Apply the name-level filters shared by scans and live events."""
        if self.skip_hidden and path.name.startswith("."):
            return False
        return matches_pattern(path.name, pattern)

    def is_excluded_location(
        self,
        path: Path,
        root: Path,
        exclude_dirs: Iterable[Path] = (),
        exclude_dir_names: Iterable[str] = (),
    ) -> bool:
        """
        Check whether a file sits in an excluded or hidden directory below ``root``.
        """
        if is_within(path, exclude_dirs):
            return True

        try:
            relative_parts = path.relative_to(root).parts[:-1]
        except ValueError:
            return False

        excluded_names = {name.lower() for name in exclude_dir_names}
        for part in relative_parts:
            if part.lower() in excluded_names:
                return True
            if self.skip_hidden and part.startswith("."):
                return True
        return False

    def _scan_toplevel(self, root: Path, pattern: str) -> List[Path]:
        candidates = []

        for item in root.iterdir():
            if item.is_symlink() and not self.follow_symlinks:
                continue
            if not item.is_file():
                continue
            if self.is_candidate(item, pattern):
                candidates.append(item.absolute())

        return candidates

    def _scan_recursive(
        self,
        root: Path,
        pattern: str,
        excluded: Set[Path],
        excluded_names: Set[str],
    ) -> List[Path]:
        candidates = []

        # os.walk swallows errors on the root; list it first so they raise
        os.listdir(root)

        def _log_walk_error(error: OSError) -> None:
            logger.warning(f"Skipping unreadable directory during scan: {error}")

        for dirpath, dirnames, filenames in os.walk(
            root, onerror=_log_walk_error, followlinks=self.follow_symlinks
        ):
            current = Path(dirpath).absolute()

            # Prune in place so os.walk does not descend
            dirnames[:] = [
                name
                for name in dirnames
                if not (self.skip_hidden and name.startswith("."))
                and name.lower() not in excluded_names
                and not is_within(current / name, excluded)
            ]

            for name in filenames:
                item = current / name
                if item.is_symlink() and not self.follow_symlinks:
                    continue
                if self.is_candidate(item, pattern):
                    candidates.append(item)

        return candidates
