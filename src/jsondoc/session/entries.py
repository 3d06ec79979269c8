"""Per-document session entries.

A session tracks each document id with exactly one entry.  The entry type
is the document's status, so an id can never be both pending store and
pending delete, and every buffered change has a status by construction.

Classes
-------
- DocumentStatus  — enum: KEEP, STORE, DELETE
- Keep            — loaded or committed, no pending change
- PendingStore    — object plus its serialized payload, awaiting commit
- PendingDelete   — deletion queued, awaiting commit
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class DocumentStatus(str, Enum):
    """Status of a tracked document id within a session."""

    KEEP = "keep"
    STORE = "store"
    DELETE = "delete"


@dataclass(frozen=True)
class Keep:
    obj: Any

    status = DocumentStatus.KEEP


@dataclass(frozen=True)
class PendingStore:
    obj: Any
    payload: bytes

    status = DocumentStatus.STORE


@dataclass(frozen=True)
class PendingDelete:
    obj: Any

    status = DocumentStatus.DELETE


Entry = Union[Keep, PendingStore, PendingDelete]
PendingEntry = Union[PendingStore, PendingDelete]


def is_pending(entry: Entry) -> bool:
    """Return True if ``entry`` belongs to the write buffer."""
    return isinstance(entry, (PendingStore, PendingDelete))
