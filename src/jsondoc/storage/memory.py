"""In-memory persistence.

Stores documents in a plain Python dict.  All data is lost when the object
is discarded.  This layer is primarily useful for tests and local
prototyping; it still validates ids and produces real shared/exclusive
locks so session semantics match ``FilePersistence``.

Classes
-------
- InMemoryPersistence  — dict-backed ephemeral storage
"""
from __future__ import annotations

from jsondoc.errors import PersistenceError
from jsondoc.identifiers import parse_id, validate_name
from jsondoc.locking.memory import InMemoryMutex, ReadWriteLock
from jsondoc.storage.base import Persistence


class InMemoryPersistence(Persistence):
    """Ephemeral, in-process persistence backed by a Python dict.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of database name to a mapping of
        document id to payload.  Copies are taken so the caller's dicts
        are not mutated.
    """

    def __init__(self, initial_data: dict[str, dict[str, bytes]] | None = None) -> None:
        self._databases: dict[str, dict[str, bytes]] = {
            name: dict(docs) for name, docs in (initial_data or {}).items()
        }
        self._locks: dict[str, ReadWriteLock] = {}

    # ------------------------------------------------------------------
    # Persistence interface
    # ------------------------------------------------------------------

    def create_mutex(self, database: str) -> InMemoryMutex:
        return InMemoryMutex(self.lock_for(database))

    def ensure_container(self, database: str) -> None:
        self._databases.setdefault(validate_name(database), {})

    def read(self, database: str, doc_id: str) -> bytes:
        docs = self._container(database, doc_id)
        try:
            return docs[doc_id]
        except KeyError:
            raise PersistenceError(f"unable to read document: {database}/{doc_id}") from None

    def write(self, database: str, doc_id: str, data: bytes) -> None:
        parse_id(doc_id)
        self._databases.setdefault(validate_name(database), {})[doc_id] = bytes(data)

    def move(self, database: str, from_id: str, to_id: str) -> None:
        parse_id(to_id)
        docs = self._container(database, from_id)
        try:
            docs[to_id] = docs.pop(from_id)
        except KeyError:
            raise PersistenceError(
                f"unable to move document from: {database}/{from_id} - to: {to_id}"
            ) from None

    def delete(self, database: str, doc_id: str) -> None:
        docs = self._container(database, doc_id)
        try:
            del docs[doc_id]
        except KeyError:
            raise PersistenceError(f"unable to delete document: {database}/{doc_id}") from None

    def exists(self, database: str, doc_id: str) -> bool:
        parse_id(doc_id)
        return doc_id in self._databases.get(validate_name(database), {})

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def lock_for(self, database: str) -> ReadWriteLock:
        """Return the lock shared by every mutex created for ``database``."""
        return self._locks.setdefault(validate_name(database), ReadWriteLock())

    def keys(self, database: str) -> list[str]:
        """Return the ids stored in ``database`` (staging ids included), sorted."""
        return sorted(self._databases.get(database, {}))

    def _container(self, database: str, doc_id: str) -> dict[str, bytes]:
        parse_id(doc_id)
        try:
            return self._databases[validate_name(database)]
        except KeyError:
            raise PersistenceError(f"database does not exist: {database}") from None

    def __len__(self) -> int:
        return sum(len(docs) for docs in self._databases.values())

    def __repr__(self) -> str:
        return f"InMemoryPersistence(databases={len(self._databases)}, documents={len(self)})"
