"""Advisory file locking for a database directory.

This module provides a shared/exclusive lock backed by POSIX ``flock`` on
a sentinel ``.lock`` file inside the database directory.  The lock file is
never read or written by application code; it only exists so the OS has
something to lock.

Classes
-------
FileMutex
    Holds an open descriptor on the lock file and converts between shared
    and exclusive ``flock`` modes on it.
"""
from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path

from jsondoc.errors import LockError
from jsondoc.locking.base import LockMode, Mutex

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_LOCK_MODE: int = 0o666  # any user sharing the store may lock it

_FLOCK_FLAGS: dict[LockMode, int] = {
    LockMode.SHARED: fcntl.LOCK_SH,
    LockMode.EXCLUSIVE: fcntl.LOCK_EX,
}


# ---------------------------------------------------------------------------
# FileMutex
# ---------------------------------------------------------------------------


class FileMutex(Mutex):
    """Advisory, single-host shared/exclusive lock using ``fcntl.flock``.

    The lock file is created on first acquisition (with the process umask
    reset so ``file_mode`` applies exactly) and is left in place on
    release.  Re-acquiring on a locked handle asks the OS to convert the
    existing lock on the same descriptor rather than closing it.

    Parameters
    ----------
    lock_path:
        Path to the sentinel lock file.
    file_mode:
        Permission bits applied when the lock file is created.
        Defaults to ``0o666``.
    """

    def __init__(self, lock_path: str | Path, file_mode: int = _DEFAULT_LOCK_MODE) -> None:
        self._lock_path: Path = Path(lock_path)
        self._file_mode: int = file_mode
        self._fd: int | None = None
        self._mode: LockMode | None = None

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    @property
    def mode(self) -> LockMode | None:
        return self._mode

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    def lock_shared(self) -> None:
        """Acquire (or convert to) a shared lock."""
        self._lock(LockMode.SHARED)

    def lock_exclusive(self) -> None:
        """Acquire (or convert to) an exclusive lock."""
        self._lock(LockMode.EXCLUSIVE)

    def unlock(self) -> None:
        """Release the lock and close the descriptor.

        Idempotent: calling ``unlock()`` when no lock is held is safe.
        """
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        self._mode = None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        logger.debug("FileMutex: released %s", self._lock_path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self) -> int:
        """Open (creating if needed) the lock file and return its descriptor."""
        mask = os.umask(0)
        try:
            return os.open(self._lock_path, os.O_RDWR | os.O_CREAT, self._file_mode)
        except OSError as exc:
            raise LockError(f"unable to create the lock-file: {self._lock_path}", exc) from exc
        finally:
            os.umask(mask)

    def _lock(self, mode: LockMode) -> None:
        if self._fd is None:
            self._fd = self._open()
        try:
            fcntl.flock(self._fd, _FLOCK_FLAGS[mode])
        except OSError as exc:
            # A failed conversion may have dropped the previous lock.
            fd, self._fd = self._fd, None
            self._mode = None
            os.close(fd)
            raise LockError(f"unable to lock the database: {self._lock_path}", exc) from exc
        self._mode = mode
        logger.debug("FileMutex: acquired %s lock on %s", mode.value, self._lock_path)

    def __repr__(self) -> str:
        state = self._mode.value if self._mode else "unlocked"
        return f"FileMutex(lock_path={str(self._lock_path)!r}, mode={state})"
