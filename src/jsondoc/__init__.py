"""jsondoc — transactional document store with staged commits.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import jsondoc
>>> jsondoc.__version__
'0.1.0'
"""
from __future__ import annotations

# Errors
from jsondoc.errors import (
    ClosedSessionError,
    CommitError,
    ConflictingStatusError,
    DocumentError,
    DocumentNotFoundError,
    InvalidIdError,
    InvalidNameError,
    LockError,
    PersistenceError,
    RecoverableCommitError,
    SerializationError,
    UnrecoverableCommitError,
)

# Locking
from jsondoc.locking import FileMutex, InMemoryMutex, LockMode, Mutex, ReadWriteLock

# Persistence
from jsondoc.storage import FilePersistence, InMemoryPersistence, Persistence

# Serialization
from jsondoc.serialization import JsonSerializer, Serializer, YamlSerializer

# Sessions and store
from jsondoc.session import DocumentSession, DocumentStatus
from jsondoc.store import DocumentStore
from jsondoc.config import StoreConfig
from jsondoc.convenience import open_store

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "ClosedSessionError",
    "CommitError",
    "ConflictingStatusError",
    "DocumentError",
    "DocumentNotFoundError",
    "InvalidIdError",
    "InvalidNameError",
    "LockError",
    "PersistenceError",
    "RecoverableCommitError",
    "SerializationError",
    "UnrecoverableCommitError",
    # Locking
    "FileMutex",
    "InMemoryMutex",
    "LockMode",
    "Mutex",
    "ReadWriteLock",
    # Persistence
    "FilePersistence",
    "InMemoryPersistence",
    "Persistence",
    # Serialization
    "JsonSerializer",
    "Serializer",
    "YamlSerializer",
    # Sessions and store
    "DocumentSession",
    "DocumentStatus",
    "DocumentStore",
    "StoreConfig",
    "open_store",
]
