"""Document store: the entry point for opening sessions.

Classes
-------
- DocumentStore  — owns a persistence layer and a serializer
"""
from __future__ import annotations

import logging

from jsondoc.config import StoreConfig
from jsondoc.identifiers import validate_name
from jsondoc.serialization import JsonSerializer, Serializer, make_serializer
from jsondoc.session.document_session import DocumentSession
from jsondoc.storage.base import Persistence
from jsondoc.storage.filesystem import FilePersistence

logger = logging.getLogger(__name__)


class DocumentStore:
    """Creates ``DocumentSession`` objects bound to a named database.

    Parameters
    ----------
    persistence:
        Storage layer shared by every session of this store.
    serializer:
        Object <-> bytes converter.  Defaults to ``JsonSerializer``.
    """

    def __init__(self, persistence: Persistence, serializer: Serializer | None = None) -> None:
        self._persistence = persistence
        self._serializer = serializer or JsonSerializer()

    @classmethod
    def from_config(cls, config: StoreConfig) -> DocumentStore:
        """Build a file-backed store from a ``StoreConfig``."""
        persistence = FilePersistence(
            config.root,
            extension=config.extension,
            staging_extension=config.staging_extension,
            lock_name=config.lock_name,
            dir_mode=config.dir_mode,
            file_mode=config.file_mode,
            fsync=config.fsync,
        )
        return cls(persistence, make_serializer(config.format))

    @property
    def persistence(self) -> Persistence:
        return self._persistence

    @property
    def serializer(self) -> Serializer:
        return self._serializer

    def open_session(self, database: str) -> DocumentSession:
        """Open a new session on ``database``, creating it if necessary.

        The returned session holds a shared lock until it is closed.

        Raises
        ------
        InvalidNameError
            If ``database`` is not a valid name.
        PersistenceError
            If the database container cannot be created.
        LockError
            If the database lock cannot be acquired.
        """
        validate_name(database)
        self._persistence.ensure_container(database)
        return DocumentSession(self, database)

    def __repr__(self) -> str:
        return f"DocumentStore(persistence={self._persistence!r}, serializer={self._serializer!r})"
