"""Locking subpackage.

Public surface
--------------
- LockMode       — enum: SHARED, EXCLUSIVE
- Mutex          — abstract base class for database locks
- FileMutex      — ``fcntl.flock`` lock on ``<database>/.lock``
- ReadWriteLock  — in-process readers/writer lock
- InMemoryMutex  — ``Mutex`` handle over a ReadWriteLock
"""
from __future__ import annotations

from jsondoc.locking.base import LockMode, Mutex
from jsondoc.locking.file import FileMutex
from jsondoc.locking.memory import InMemoryMutex, ReadWriteLock

__all__ = [
    "FileMutex",
    "InMemoryMutex",
    "LockMode",
    "Mutex",
    "ReadWriteLock",
]
