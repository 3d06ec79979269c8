"""Session subpackage.

Public surface
--------------
- DocumentSession  — unit of work with staged two-phase commit
- DocumentStatus   — enum: KEEP, STORE, DELETE
- Keep, PendingStore, PendingDelete — per-id session entries
"""
from __future__ import annotations

from jsondoc.session.document_session import DocumentSession
from jsondoc.session.entries import DocumentStatus, Keep, PendingDelete, PendingStore

__all__ = [
    "DocumentSession",
    "DocumentStatus",
    "Keep",
    "PendingDelete",
    "PendingStore",
]
