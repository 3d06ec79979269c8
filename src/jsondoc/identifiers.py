"""Database names, document ids, and commit staging ids.

A document id is a ``/``-separated sequence of segments, each matching
``NAME_PATTERN``.  A database name is a single such segment.  During a
commit, documents are staged under a *staging id* of the form
``<id>.<token>``, where ``token`` is a fresh random value per commit
attempt.

Functions
---------
- is_valid_name    — True if ``name`` is a valid segment
- validate_name    — return ``name`` or raise InvalidNameError
- split_id         — return the segments of a document id
- parse_id         — split a document or staging id into a DocumentKey
- staging_id       — build the staging id for a document id
- new_token        — generate a collision-resistant commit token
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from uuid import uuid4

from jsondoc.errors import InvalidIdError, InvalidNameError

NAME_PATTERN: re.Pattern[str] = re.compile(r"[A-Za-z0-9_-]+")

ID_SEPARATOR = "/"
STAGING_SEPARATOR = "."


@dataclass(frozen=True)
class DocumentKey:
    """A parsed document id.

    Parameters
    ----------
    segments:
        The validated id segments, outermost first.
    token:
        Commit token when the id addresses a staging copy, else ``None``.
    """

    segments: tuple[str, ...]
    token: str | None = None

    @property
    def doc_id(self) -> str:
        """The document id without any staging suffix."""
        return ID_SEPARATOR.join(self.segments)

    @property
    def is_staging(self) -> bool:
        return self.token is not None


def is_valid_name(name: object) -> bool:
    """Return True if ``name`` is a string matching ``NAME_PATTERN`` exactly."""
    return isinstance(name, str) and NAME_PATTERN.fullmatch(name) is not None


def validate_name(name: str) -> str:
    """Return ``name`` unchanged, or raise if it is not a valid name.

    Raises
    ------
    InvalidNameError
        If ``name`` is empty or contains characters outside ``[A-Za-z0-9_-]``.
    """
    if not is_valid_name(name):
        raise InvalidNameError(str(name))
    return name


def split_id(doc_id: str) -> tuple[str, ...]:
    """Return the segments of ``doc_id``.

    Raises
    ------
    InvalidIdError
        If ``doc_id`` is not a string or any segment is invalid.
    """
    if not isinstance(doc_id, str):
        raise InvalidIdError(repr(doc_id), f"document id must be a string, got {type(doc_id).__name__}")
    segments = tuple(doc_id.split(ID_SEPARATOR))
    for segment in segments:
        if not is_valid_name(segment):
            raise InvalidIdError(doc_id, f"invalid segment {segment!r} in document id {doc_id!r}")
    return segments


def parse_id(doc_id: str) -> DocumentKey:
    """Parse a document id or a staging id into a ``DocumentKey``.

    Raises
    ------
    InvalidIdError
        If the id, or the staging token it carries, is malformed.
    """
    if not isinstance(doc_id, str):
        raise InvalidIdError(repr(doc_id), f"document id must be a string, got {type(doc_id).__name__}")
    base, sep, token = doc_id.partition(STAGING_SEPARATOR)
    if sep and not is_valid_name(token):
        raise InvalidIdError(doc_id, f"invalid staging token in document id {doc_id!r}")
    return DocumentKey(segments=split_id(base), token=token if sep else None)


def staging_id(doc_id: str, token: str) -> str:
    """Return the staging id used for ``doc_id`` during the commit ``token``."""
    return f"{doc_id}{STAGING_SEPARATOR}{token}"


def new_token() -> str:
    """Return a fresh random commit token (32 hex characters)."""
    return uuid4().hex
