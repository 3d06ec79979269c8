"""Exception hierarchy for jsondoc.

Every error raised by the store derives from ``DocumentError`` so callers
can catch the whole family in one clause.  Each error carries an optional
``cause`` -- the lower-level exception that triggered it -- which is also
chained through ``__cause__`` when raised with ``raise ... from``.

Classes
-------
- DocumentError             — base class, message + optional cause
- InvalidNameError          — malformed database name
- InvalidIdError            — malformed document id
- DocumentNotFoundError     — load/delete/get_id against a missing document
- ConflictingStatusError    — operation incompatible with a pending status
- LockError                 — the database lock could not be acquired
- PersistenceError          — underlying read/write/move/delete failure
- SerializationError        — object could not be (de)serialized
- CommitError               — base for commit failures
- RecoverableCommitError    — staging failed and was rolled back
- UnrecoverableCommitError  — finalization failed; storage may be inconsistent
- ClosedSessionError        — session used after close, or closed while dirty
"""
from __future__ import annotations


class DocumentError(Exception):
    """Base class for all jsondoc errors.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    cause:
        Optional lower-level exception that triggered this error.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"


class InvalidNameError(DocumentError, ValueError):
    """Raised when a database name does not match the allowed pattern."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"invalid name: {name!r}")


class InvalidIdError(InvalidNameError):
    """Raised when a document id contains an invalid segment."""

    def __init__(self, doc_id: str, message: str | None = None) -> None:
        self.doc_id = doc_id
        super().__init__(doc_id, message or f"invalid document id: {doc_id!r}")


class DocumentNotFoundError(DocumentError, KeyError):
    """Raised when a document (or tracked object) does not exist."""

    def __init__(self, doc_id: str | None = None, message: str | None = None) -> None:
        self.doc_id = doc_id
        super().__init__(message or f"document not found: {doc_id!r}")


class ConflictingStatusError(DocumentError):
    """Raised when an operation conflicts with an id's pending status."""

    def __init__(self, doc_id: str, status: object, message: str) -> None:
        self.doc_id = doc_id
        self.status = status
        super().__init__(message)


class LockError(DocumentError):
    """Raised when a database lock cannot be created or acquired."""


class PersistenceError(DocumentError):
    """Raised for any failure of the underlying storage layer."""


class SerializationError(DocumentError):
    """Raised when an object cannot be serialized or deserialized."""


class CommitError(DocumentError):
    """Base class for failures of ``DocumentSession.commit``."""


class RecoverableCommitError(CommitError):
    """Staging failed and every staged step was rolled back.

    The session's pending changes are left intact; ``commit()`` may be
    retried.
    """


class UnrecoverableCommitError(CommitError):
    """Finalization failed after staging succeeded.

    Some documents may already have been replaced or deleted.  Persisted
    state is not repaired automatically.
    """


class ClosedSessionError(DocumentError):
    """Raised when a closed session is used, or closed with pending changes."""
