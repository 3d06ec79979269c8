"""Persistence subpackage.

All persistence layers implement the ``Persistence`` ABC.

Public surface
--------------
- Persistence          — abstract base class
- FilePersistence      — one file per document under a root directory
- InMemoryPersistence  — in-process dict (useful for testing)
"""
from __future__ import annotations

from jsondoc.storage.base import Persistence
from jsondoc.storage.filesystem import FilePersistence
from jsondoc.storage.memory import InMemoryPersistence

__all__ = [
    "FilePersistence",
    "InMemoryPersistence",
    "Persistence",
]
