"""Cross-process mutex over a filelock soft marker file.

The marker holds the holder's pid and host; its mtime is the acquisition
time. Adequate for several processes on one host sharing a data directory.
"""

import logging
import os
import time

from filelock import AsyncSoftFileLock, Timeout

from ..errors import LockTimeout

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_MS = 5000
LOCK_RETRY_MS = 50
LOCK_FILENAME = ".lock"


class FileLock:
    """Marker-file lock. Use as ``async with lock: ...``.

    Each acquisition uses a fresh ``AsyncSoftFileLock`` so that two
    coroutines sharing one ``FileLock`` still exclude each other.
    """

    def __init__(
        self,
        base_dir: str,
        timeout_ms: int = LOCK_TIMEOUT_MS,
        retry_ms: int = LOCK_RETRY_MS,
    ) -> None:
        self.lock_path = os.path.join(base_dir, LOCK_FILENAME)
        self.timeout_ms = timeout_ms
        self.retry_ms = retry_ms
        self._held: AsyncSoftFileLock | None = None

    async def acquire(self) -> None:
        """Block until the marker is created, or raise LockTimeout."""
        os.makedirs(os.path.dirname(self.lock_path), exist_ok=True)
        lock = AsyncSoftFileLock(self.lock_path)
        try:
            await lock.acquire(
                timeout=self.timeout_ms / 1000,
                poll_interval=self.retry_ms / 1000,
                cancel_check=self._sweep_stale,
            )
        except Timeout as err:
            logger.error("Timed out acquiring %s after %d ms", self.lock_path, self.timeout_ms)
            raise LockTimeout(f"Failed to acquire file lock: timeout ({self.lock_path})") from err
        self._held = lock

    async def release(self) -> None:
        """Remove the marker if this lock holds it. Never raises."""
        lock, self._held = self._held, None
        if lock is None:
            return
        try:
            await lock.release()
        except OSError as err:
            logger.warning("Could not release %s: %s", self.lock_path, err)

    def _sweep_stale(self) -> bool:
        """Poll hook: drop a marker held longer than the ceiling. Never cancels."""
        try:
            age_ms = (time.time() - os.path.getmtime(self.lock_path)) * 1000
        except OSError:
            return False
        if age_ms > self.timeout_ms:
            logger.warning("Removing stale lock marker %s", self.lock_path)
            try:
                os.unlink(self.lock_path)
            except OSError:
                pass  # already gone
        return False

    async def __aenter__(self) -> "FileLock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
