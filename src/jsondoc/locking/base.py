"""Abstract base class for database locks.

A ``Mutex`` is a readers/committer lock scoped to one database.  Shared
locks are mutually compatible; an exclusive lock excludes every other
holder.  Each handle is owned by exactly one session.

Classes
-------
- LockMode  — enum: SHARED, EXCLUSIVE
- Mutex     — abstract base for all lock implementations
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class LockMode(str, Enum):
    """The mode a lock handle currently holds."""

    SHARED = "shared"
    EXCLUSIVE = "exclusive"


class Mutex(ABC):
    """Shared/exclusive lock handle for a single database.

    Acquisition blocks until the lock is available; there is no timeout.
    Calling ``lock_shared`` or ``lock_exclusive`` on a handle that already
    holds a lock replaces the prior lock.
    """

    @abstractmethod
    def lock_shared(self) -> None:
        """Acquire a shared lock, blocking while an exclusive lock is held.

        Raises
        ------
        LockError
            If the lock cannot be acquired.
        """

    @abstractmethod
    def lock_exclusive(self) -> None:
        """Acquire an exclusive lock, blocking while any other lock is held.

        Raises
        ------
        LockError
            If the lock cannot be acquired.
        """

    @abstractmethod
    def unlock(self) -> None:
        """Release any lock held by this handle.  No-op when unlocked."""

    @property
    @abstractmethod
    def mode(self) -> LockMode | None:
        """The mode held by this handle, or ``None`` when unlocked."""

    def is_locked(self) -> bool:
        """Return True if this handle believes it holds a lock.

        This reflects local state only, not the global state of the lock.
        """
        return self.mode is not None
