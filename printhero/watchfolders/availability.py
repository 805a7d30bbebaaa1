"""
File availability detection.

Guards against printing a file the producing application has not finished
writing. A file is available when it can be opened exclusively for reading.
"""

import logging
import os
import time
from pathlib import Path
from typing import Optional, Union

from .models import FileAvailabilityCheck

if os.name == "posix":
    import fcntl
else:
    fcntl = None

logger = logging.getLogger(__name__)


DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_MAX_WAIT = 10.0


class AvailabilityProber:
    """
    Poll-based exclusive-open probe.

    Configuration:
        poll_interval: Seconds between open attempts (default: 0.5)
        max_wait: Total budget in seconds before giving up (default: 10)

    On Windows an exclusive open fails with a sharing violation while the
    producer still holds the file. On POSIX the open itself always succeeds,
    so the probe additionally takes a non-blocking exclusive advisory lock,
    which fails while another process holds a lock on the file.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: float = DEFAULT_MAX_WAIT,
    ):
        self.poll_interval = poll_interval
        self.max_wait = max_wait

    def wait_until_available(self, path: Union[str, Path]) -> bool:
        """
        Block until the file can be opened exclusively or the budget runs out.

        Returns:
            True if the file became available within budget, False otherwise.
            Never raises.
        """
        return self.check(path).is_available

    def check(self, path: Union[str, Path]) -> FileAvailabilityCheck:
        """
        Probe a file repeatedly and report the detailed result.

        Every OSError (missing file, permission error, sharing violation,
        held lock) counts as "not yet available".
        """
        path_str = str(path)
        started = time.monotonic()
        attempts = 0
        last_error: Optional[str] = None

        while True:
            attempts += 1
            last_error = self._try_exclusive_open(path_str)
            elapsed = time.monotonic() - started

            if last_error is None:
                return FileAvailabilityCheck(
                    path=path_str,
                    is_available=True,
                    attempts=attempts,
                    waited_seconds=elapsed,
                )

            if elapsed + self.poll_interval > self.max_wait:
                break

            time.sleep(self.poll_interval)

        logger.debug(
            f"File not available after {attempts} attempt(s): {path_str} ({last_error})"
        )
        return FileAvailabilityCheck(
            path=path_str,
            is_available=False,
            attempts=attempts,
            waited_seconds=time.monotonic() - started,
            reason=last_error,
        )

    @staticmethod
    def _try_exclusive_open(path: str) -> Optional[str]:
        """
        Attempt one exclusive open.

        Returns:
            None on success, otherwise a description of the failure
        """
        try:
            with open(path, "rb") as handle:
                if fcntl is not None:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            return None
        except OSError as e:
            return f"{type(e).__name__}: {e}"
