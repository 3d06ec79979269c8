"""Convenience API for jsondoc -- 3-line quickstart.

Example
-------
::

    from jsondoc import open_store
    with open_store("/tmp/docs").open_session("app") as session:
        session.store({"bar": "one"}, "foo/a")

"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

from jsondoc.config import StoreConfig
from jsondoc.store import DocumentStore


def open_store(
    root: str | Path | None = None,
    *,
    format: Literal["json", "yaml"] = "json",
) -> DocumentStore:
    """Return a ready-to-use ``DocumentStore``.

    Parameters
    ----------
    root:
        Root directory for a file-backed store.  When omitted, an
        in-memory store is returned; nothing is written to disk.
    format:
        Serialization format, ``"json"`` (default) or ``"yaml"``.

    Returns
    -------
    DocumentStore
    """
    if root is None:
        from jsondoc.serialization import make_serializer
        from jsondoc.storage.memory import InMemoryPersistence

        return DocumentStore(InMemoryPersistence(), make_serializer(format))
    return DocumentStore.from_config(StoreConfig(root=Path(root), format=format))
