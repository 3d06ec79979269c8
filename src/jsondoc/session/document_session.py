"""Document sessions: unit of work over one database.

A ``DocumentSession`` buffers loads, stores, and deletes in memory and
applies them with a two-phase staged commit:

1. *Stage* -- every stored document is written to a staging copy
   ``<id>.<token>``; every deleted document is moved aside to its staging
   id.  Any failure rolls back the steps already taken.
2. *Finalize* -- staging copies replace their documents atomically and
   deleted staging copies are removed.  A failure here cannot be rolled
   back.

The session holds a shared lock on its database while open and upgrades
to an exclusive lock only for the duration of ``commit()``.

Classes
-------
- DocumentSession  — identity-preserving unit of work with staged commit
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jsondoc.errors import (
    ClosedSessionError,
    ConflictingStatusError,
    DocumentError,
    DocumentNotFoundError,
    RecoverableCommitError,
    UnrecoverableCommitError,
)
from jsondoc.identifiers import new_token, split_id, staging_id
from jsondoc.session.entries import (
    DocumentStatus,
    Entry,
    Keep,
    PendingDelete,
    PendingEntry,
    PendingStore,
    is_pending,
)

if TYPE_CHECKING:
    from jsondoc.store import DocumentStore

logger = logging.getLogger(__name__)

# Placeholder for documents queued for deletion without being loaded.
_UNREAD = object()


class DocumentSession:
    """Buffers document changes for one database until ``commit()``.

    Sessions are created by ``DocumentStore.open_session`` and must be
    closed on every exit path, either explicitly or by using the session as
    a context manager.  A session is single-owner and not thread-safe.

    Parameters
    ----------
    store:
        The store that created this session; supplies persistence and the
        serializer.
    database:
        Name of the database this session is scoped to.

    Raises
    ------
    LockError
        If the shared lock on the database cannot be acquired.
    """

    def __init__(self, store: DocumentStore, database: str) -> None:
        self._store = store
        self._database = database
        self._persistence = store.persistence
        self._serializer = store.serializer
        self._entries: dict[str, Entry] = {}
        self._mutex = self._persistence.create_mutex(database)
        self._mutex.lock_shared()
        logger.debug("DocumentSession: opened database %r", database)

    # ------------------------------------------------------------------
    # Context management
    # ------------------------------------------------------------------

    def __enter__(self) -> DocumentSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None and self.is_open:
                self.commit()
        finally:
            self.flush()
            self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def database(self) -> str:
        return self._database

    @property
    def is_open(self) -> bool:
        """True while this session holds its database lock."""
        return self._mutex.is_locked()

    @property
    def has_pending_changes(self) -> bool:
        """True if any store or delete awaits ``commit()``."""
        return any(is_pending(entry) for entry in self._entries.values())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load(self, doc_id: str) -> Any:
        """Return the object stored under ``doc_id``.

        Repeated calls return the same instance for the lifetime of the
        session (or until the id is evicted).

        Raises
        ------
        ClosedSessionError
            If the session has been closed.
        InvalidIdError
            If ``doc_id`` is malformed.
        DocumentNotFoundError
            If the document does not exist.
        ConflictingStatusError
            If the document is queued for deletion in this session.
        """
        self._require_open("load a document from")
        split_id(doc_id)
        entry = self._entries.get(doc_id)
        if entry is None:
            entry = Keep(self._read(doc_id))
            self._entries[doc_id] = entry
        if isinstance(entry, PendingDelete):
            raise ConflictingStatusError(
                doc_id,
                entry.status,
                f"cannot load a document queued for deletion within the same session: {doc_id}",
            )
        return entry.obj

    def get_id(self, obj: Any) -> str:
        """Return the id under which ``obj`` is tracked, by identity.

        Raises
        ------
        DocumentNotFoundError
            If ``obj`` is not present in this session.
        """
        self._require_open("determine the id of an object in")
        for doc_id, entry in self._entries.items():
            if entry.obj is obj:
                return doc_id
        raise DocumentNotFoundError(message="the given object is not present in this session")

    def contains(self, doc_id: str) -> bool:
        """Return True if an object for ``doc_id`` is held by this session."""
        return doc_id in self._entries

    def exists(self, doc_id: str) -> bool:
        """Return True if ``doc_id`` exists, taking pending changes into account.

        A document queued for deletion is reported as absent; a pending
        store is reported as present even before it is committed.
        """
        self._require_open("check for a document in")
        entry = self._entries.get(doc_id)
        if entry is not None:
            return not isinstance(entry, PendingDelete)
        split_id(doc_id)
        return self._persistence.exists(self._database, doc_id)

    def status(self, doc_id: str) -> DocumentStatus | None:
        """Return the status of ``doc_id``, or ``None`` if it is not tracked."""
        entry = self._entries.get(doc_id)
        return entry.status if entry is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store(self, obj: Any, doc_id: str) -> None:
        """Queue ``obj`` to be written under ``doc_id`` on commit.

        The object is serialized immediately, so later mutations of ``obj``
        are not written unless ``store`` is called again.

        Raises
        ------
        ConflictingStatusError
            If ``doc_id`` is queued for deletion in this session.
        SerializationError
            If ``obj`` cannot be serialized.
        """
        self._require_open("store a document in")
        split_id(doc_id)
        entry = self._entries.get(doc_id)
        if isinstance(entry, PendingDelete):
            raise ConflictingStatusError(
                doc_id,
                entry.status,
                f"cannot store a document queued for deletion within the same session: {doc_id}",
            )
        payload = self._serializer.serialize(obj)
        self._entries[doc_id] = PendingStore(obj, payload)
        logger.debug("DocumentSession: queued store of %r", doc_id)

    def delete(self, doc_id: str) -> None:
        """Queue ``doc_id`` for deletion on commit.

        The object stays in the session (``contains`` is True) until the
        deletion is committed.  An untracked document is only checked for
        existence; its contents are never read.

        Raises
        ------
        ConflictingStatusError
            If ``doc_id`` is queued for storage in this session.
        DocumentNotFoundError
            If the document does not exist.
        """
        self._require_open("delete a document from")
        split_id(doc_id)
        entry = self._entries.get(doc_id)
        if isinstance(entry, PendingStore):
            raise ConflictingStatusError(
                doc_id,
                entry.status,
                f"cannot delete a document queued for storage within the same session: {doc_id}",
            )
        if isinstance(entry, PendingDelete):
            return
        if entry is not None:
            obj = entry.obj
        elif self._persistence.exists(self._database, doc_id):
            obj = _UNREAD
        else:
            raise DocumentNotFoundError(doc_id)
        self._entries[doc_id] = PendingDelete(obj)
        logger.debug("DocumentSession: queued delete of %r", doc_id)

    def evict(self, doc_id: str) -> None:
        """Forget ``doc_id``, discarding any pending change to it."""
        self._require_open("evict a document from")
        self._entries.pop(doc_id, None)

    def flush(self) -> None:
        """Discard every pending change and evict every tracked object."""
        if self._entries:
            logger.debug(
                "DocumentSession: flushed %d tracked document(s) from %r",
                len(self._entries),
                self._database,
            )
        self._entries.clear()

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Apply every pending store and delete using a staged commit.

        Raises
        ------
        ClosedSessionError
            If the session has been closed.
        LockError
            If the exclusive lock cannot be acquired.
        RecoverableCommitError
            If staging failed; all staged steps were rolled back and the
            pending changes are intact, so ``commit()`` may be retried.
        UnrecoverableCommitError
            If finalization (or a rollback) failed; persisted documents
            may be partially updated and require external repair.
        """
        self._require_open("commit")
        pending: list[tuple[str, PendingEntry]] = [
            (doc_id, entry) for doc_id, entry in self._entries.items() if is_pending(entry)
        ]
        token = new_token()

        self._mutex.lock_exclusive()
        try:
            self._stage(pending, token)
            self._finalize(pending, token)
        finally:
            self._mutex.lock_shared()

        self._entries = {
            doc_id: Keep(entry.obj)
            for doc_id, entry in self._entries.items()
            if not isinstance(entry, PendingDelete)
        }
        if pending:
            logger.info(
                "DocumentSession: committed %d change(s) to database %r",
                len(pending),
                self._database,
            )

    def _stage(self, pending: list[tuple[str, PendingEntry]], token: str) -> None:
        attempted: list[tuple[str, PendingEntry]] = []
        try:
            for doc_id, entry in pending:
                attempted.append((doc_id, entry))
                temp_id = staging_id(doc_id, token)
                if isinstance(entry, PendingDelete):
                    self._persistence.move(self._database, doc_id, temp_id)
                else:
                    self._persistence.write(self._database, temp_id, entry.payload)
        except DocumentError as exc:
            logger.warning(
                "DocumentSession: staging failed in %r, rolling back: %s", self._database, exc
            )
            self._rollback(attempted, token, exc)
            raise RecoverableCommitError(
                "an error occurred while committing changes to documents - changes were rolled back",
                exc,
            ) from exc

    def _rollback(
        self,
        attempted: list[tuple[str, PendingEntry]],
        token: str,
        error: DocumentError,
    ) -> None:
        try:
            for doc_id, entry in attempted:
                temp_id = staging_id(doc_id, token)
                if not self._persistence.exists(self._database, temp_id):
                    continue
                if isinstance(entry, PendingDelete):
                    self._persistence.move(self._database, temp_id, doc_id)
                else:
                    self._persistence.delete(self._database, temp_id)
        except DocumentError as exc:
            logger.error(
                "DocumentSession: rollback failed in %r after %s: %s", self._database, error, exc
            )
            raise UnrecoverableCommitError(
                "an error occurred while rolling back a failed commit - changes could not be rolled back!",
                exc,
            ) from exc

    def _finalize(self, pending: list[tuple[str, PendingEntry]], token: str) -> None:
        for doc_id, entry in pending:
            temp_id = staging_id(doc_id, token)
            try:
                if isinstance(entry, PendingDelete):
                    self._persistence.delete(self._database, temp_id)
                else:
                    self._persistence.move(self._database, temp_id, doc_id)
            except DocumentError as exc:
                logger.error(
                    "DocumentSession: finalizing %r in %r failed, documents may be inconsistent: %s",
                    doc_id,
                    self._database,
                    exc,
                )
                raise UnrecoverableCommitError(
                    "an error occurred while committing changes to documents - changes could not be rolled back!",
                    exc,
                ) from exc

    # ------------------------------------------------------------------
    # Close
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the database lock.

        Pending changes must be committed or flushed first.  Closing an
        already-closed session is a no-op.

        Raises
        ------
        ClosedSessionError
            If the session has pending changes.
        """
        if self.has_pending_changes:
            raise ClosedSessionError(
                "unable to close session with pending changes - "
                "you must either flush() or commit() pending changes before calling close()"
            )
        if self._mutex.is_locked():
            self._mutex.unlock()
            logger.debug("DocumentSession: closed database %r", self._database)
        self._entries.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_open(self, action: str) -> None:
        if not self._mutex.is_locked():
            raise ClosedSessionError(f"cannot {action} a closed session")

    def _read(self, doc_id: str) -> Any:
        if not self._persistence.exists(self._database, doc_id):
            raise DocumentNotFoundError(doc_id)
        data = self._persistence.read(self._database, doc_id)
        return self._serializer.deserialize(data)

    def __repr__(self) -> str:
        pending = sum(1 for entry in self._entries.values() if is_pending(entry))
        return (
            f"DocumentSession(database={self._database!r}, tracked={len(self._entries)}, "
            f"pending={pending}, open={self.is_open})"
        )
