"""Guard write operations against another application holding the ledger open.

The check shells out to ``lsof`` and looks only at the COMMAND column, because
the database path itself may contain the application name.
"""

import subprocess
import threading
import time
from typing import Callable, Optional, Sequence

from ledgerkit.domain.errors import WriteBlockedError
from ledgerkit.logger import get_logger

logger = get_logger("write_guard")

LSOF_PATH = "/usr/sbin/lsof"
DEFAULT_CACHE_TTL = 3.0


class WriteGuard:
    """Detects blocking processes that have the database file open."""

    def __init__(
        self,
        db_path: str,
        process_names: Sequence[str],
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the guard.

        Args:
            db_path: Path of the database file to watch
            process_names: Command names that block writes while they hold the file
            cache_ttl: Seconds a detection result stays valid
            clock: Monotonic time source (injectable for tests)
        """
        self.db_path = db_path
        self.process_names = tuple(process_names)
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._cached_result = False
        self._cache_expiry = float("-inf")

    def is_blocked(self) -> bool:
        """Return True if a blocking process has the file open (cached)."""
        if not self.process_names:
            return False
        with self._lock:
            now = self._clock()
            if now < self._cache_expiry:
                return self._cached_result
            result = self._detect_blocking_process()
            self._cached_result = result
            self._cache_expiry = now + self.cache_ttl
            return result

    def check_write_allowed(self) -> Optional[str]:
        """Return a human-readable reason if writes are blocked, else None."""
        if self.is_blocked():
            names = ", ".join(self.process_names)
            return (
                f"{names} currently has the ledger open. "
                "Please close it before making changes to avoid database corruption."
            )
        return None

    def _detect_blocking_process(self) -> bool:
        try:
            completed = subprocess.run(
                [LSOF_PATH, "+c", "0", self.db_path],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            # lsof missing or not executable
            logger.debug(f"lsof unavailable, assuming no blocking process: {e}")
            return False

        # lsof exits with 1 when nothing has the file open
        if completed.returncode != 0:
            return False

        for line in completed.stdout.splitlines():
            parts = line.split(None, 1)
            if not parts:
                continue
            command = parts[0]
            if any(name in command for name in self.process_names):
                logger.info(f"Write blocked: '{command}' has {self.db_path} open")
                return True
        return False


def require_write_access(write_guard: Optional[WriteGuard]) -> None:
    """Raise WriteBlockedError if the guard vetoes writes. A None guard allows."""
    if write_guard is None:
        return
    reason = write_guard.check_write_allowed()
    if reason is not None:
        raise WriteBlockedError(reason)
