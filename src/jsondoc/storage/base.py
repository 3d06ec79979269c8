"""Abstract base class for document persistence.

All concrete persistence layers implement the operations defined here.
Documents are addressed by database name and document id -- never by raw
path -- and the payload exchanged is always ``bytes`` produced by a
serializer.  Staging ids (``<id>.<token>``) are accepted wherever a
document id is.

Classes
-------
- Persistence  — abstract base for all persistence layers
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from jsondoc.locking.base import Mutex


class Persistence(ABC):
    """Byte-level document storage keyed by ``(database, doc_id)``.

    Implementations must validate ids before performing any I/O and must
    report every storage failure as ``PersistenceError``.  They need not
    be thread-safe: each session uses its persistence sequentially.
    """

    @abstractmethod
    def create_mutex(self, database: str) -> Mutex:
        """Return a new, unlocked lock handle scoped to ``database``.

        Parameters
        ----------
        database:
            Database name.

        Returns
        -------
        Mutex
        """

    @abstractmethod
    def ensure_container(self, database: str) -> None:
        """Create the storage container for ``database`` if it is missing.

        Raises
        ------
        PersistenceError
            If the container cannot be created or is not usable.
        """

    @abstractmethod
    def read(self, database: str, doc_id: str) -> bytes:
        """Return the payload stored under ``doc_id``.

        Raises
        ------
        PersistenceError
            If the document cannot be read (including when it is missing).
        """

    @abstractmethod
    def write(self, database: str, doc_id: str, data: bytes) -> None:
        """Write (or overwrite) ``doc_id``, creating containers as needed.

        Raises
        ------
        PersistenceError
            If the document cannot be written.
        """

    @abstractmethod
    def move(self, database: str, from_id: str, to_id: str) -> None:
        """Rename ``from_id`` to ``to_id``, replacing ``to_id`` if present.

        Raises
        ------
        PersistenceError
            If the document cannot be moved.
        """

    @abstractmethod
    def delete(self, database: str, doc_id: str) -> None:
        """Remove ``doc_id``.

        Raises
        ------
        PersistenceError
            If the document cannot be deleted (including when it is missing).
        """

    @abstractmethod
    def exists(self, database: str, doc_id: str) -> bool:
        """Return True if ``doc_id`` is present in ``database``."""
