"""In-process reader/writer lock.

Used by ``InMemoryPersistence`` so sessions that share a process (tests,
prototypes) see the same shared/exclusive semantics as ``FileMutex``
without touching the filesystem.

Classes
-------
- ReadWriteLock  — reference-counted readers / single writer lock
- InMemoryMutex  — ``Mutex`` handle over a shared ReadWriteLock
"""
from __future__ import annotations

import threading
import time

from jsondoc.locking.base import LockMode, Mutex


class ReadWriteLock:
    """Any number of readers, or exactly one writer.

    The lock is not reentrant and does not track ownership; each
    ``InMemoryMutex`` handle is responsible for releasing what it acquired.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers: int = 0
        self._writer: bool = False

    @property
    def readers(self) -> int:
        """Number of shared holders."""
        with self._condition:
            return self._readers

    @property
    def writer(self) -> bool:
        """True while an exclusive holder exists."""
        with self._condition:
            return self._writer

    def acquire_read(self, timeout: float | None = None) -> bool:
        """Acquire a shared hold.

        Parameters
        ----------
        timeout:
            Seconds to wait; ``None`` blocks indefinitely.

        Returns
        -------
        bool
            True if acquired, False if ``timeout`` expired first.
        """
        with self._condition:
            if not self._wait(lambda: not self._writer, timeout):
                return False
            self._readers += 1
            return True

    def acquire_write(self, timeout: float | None = None) -> bool:
        """Acquire the exclusive hold.  See ``acquire_read`` for ``timeout``."""
        with self._condition:
            if not self._wait(lambda: not self._writer and self._readers == 0, timeout):
                return False
            self._writer = True
            return True

    def release_read(self) -> None:
        with self._condition:
            if self._readers == 0:
                raise RuntimeError("release_read() called without a shared hold")
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def release_write(self) -> None:
        with self._condition:
            if not self._writer:
                raise RuntimeError("release_write() called without an exclusive hold")
            self._writer = False
            self._condition.notify_all()

    def _wait(self, predicate, timeout: float | None) -> bool:
        if timeout is None:
            self._condition.wait_for(predicate)
            return True
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._condition.wait(remaining)
        return True

    def __repr__(self) -> str:
        return f"ReadWriteLock(readers={self._readers}, writer={self._writer})"


class InMemoryMutex(Mutex):
    """``Mutex`` handle over a ``ReadWriteLock`` shared by one database.

    Re-acquiring on a locked handle releases the prior hold first; unlike
    ``flock`` there is no atomic conversion, which is acceptable within a
    single process.
    """

    def __init__(self, lock: ReadWriteLock) -> None:
        self._lock = lock
        self._mode: LockMode | None = None

    @property
    def mode(self) -> LockMode | None:
        return self._mode

    def lock_shared(self) -> None:
        self.unlock()
        self._lock.acquire_read()
        self._mode = LockMode.SHARED

    def lock_exclusive(self) -> None:
        self.unlock()
        self._lock.acquire_write()
        self._mode = LockMode.EXCLUSIVE

    def unlock(self) -> None:
        if self._mode is LockMode.SHARED:
            self._lock.release_read()
        elif self._mode is LockMode.EXCLUSIVE:
            self._lock.release_write()
        self._mode = None

    def __repr__(self) -> str:
        state = self._mode.value if self._mode else "unlocked"
        return f"InMemoryMutex(mode={state})"
