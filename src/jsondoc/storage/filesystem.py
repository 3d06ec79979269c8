"""Filesystem persistence.

Persists each document as an individual file under a root directory::

    <root>/<database>/<seg>/.../<last>.json         document
    <root>/<database>/<seg>/.../<last>.<token>.tmp  staging copy
    <root>/<database>/.lock                         lock file

Classes
-------
- FilePersistence  — file-per-document storage with configurable modes
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from jsondoc.errors import PersistenceError
from jsondoc.identifiers import DocumentKey, parse_id, validate_name
from jsondoc.locking.file import FileMutex
from jsondoc.storage.base import Persistence

logger = logging.getLogger(__name__)

_DEFAULT_EXTENSION = ".json"
_DEFAULT_STAGING_EXTENSION = ".tmp"
_DEFAULT_LOCK_NAME = ".lock"


class FilePersistence(Persistence):
    """Stores documents as files beneath ``root``.

    Every file and directory this class creates gets exactly ``file_mode``
    or ``dir_mode``: the process umask is reset to zero around creation
    and restored afterwards.

    Parameters
    ----------
    root:
        Root directory of the store.  Created on demand.
    extension:
        Suffix appended to document files.  Defaults to ``".json"``.
    staging_extension:
        Suffix of staging copies written during a commit.  Defaults to
        ``".tmp"``.
    lock_name:
        File name of the per-database lock file.  Defaults to ``".lock"``.
    dir_mode:
        Permission bits for created directories.  Defaults to ``0o755``.
    file_mode:
        Permission bits for written documents.  Defaults to ``0o644``.
    fsync:
        When True (default), written files are flushed to disk before the
        write returns.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        extension: str = _DEFAULT_EXTENSION,
        staging_extension: str = _DEFAULT_STAGING_EXTENSION,
        lock_name: str = _DEFAULT_LOCK_NAME,
        dir_mode: int = 0o755,
        file_mode: int = 0o644,
        fsync: bool = True,
    ) -> None:
        self._root: Path = Path(root)
        self.extension = extension
        self.staging_extension = staging_extension
        self.lock_name = lock_name
        self.dir_mode = dir_mode
        self.file_mode = file_mode
        self.fsync = fsync

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Path mapping
    # ------------------------------------------------------------------

    def database_path(self, database: str) -> Path:
        """Return the directory holding ``database``."""
        return self._root / validate_name(database)

    def path_for(self, database: str, doc_id: str) -> Path:
        """Return the file path for a document or staging id.

        Raises
        ------
        InvalidNameError
            If ``database`` is not a valid name.
        InvalidIdError
            If ``doc_id`` is malformed.
        """
        key = parse_id(doc_id)
        return self._path_for_key(self.database_path(database), key)

    def _path_for_key(self, base: Path, key: DocumentKey) -> Path:
        *parents, last = key.segments
        if key.token is None:
            filename = f"{last}{self.extension}"
        else:
            filename = f"{last}.{key.token}{self.staging_extension}"
        return base.joinpath(*parents, filename)

    # ------------------------------------------------------------------
    # Persistence interface
    # ------------------------------------------------------------------

    def create_mutex(self, database: str) -> FileMutex:
        return FileMutex(self.database_path(database) / self.lock_name)

    def ensure_container(self, database: str) -> None:
        self._ensure_dir(self.database_path(database))

    def read(self, database: str, doc_id: str) -> bytes:
        path = self.path_for(database, doc_id)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"unable to read file: {path}", exc) from exc

    def write(self, database: str, doc_id: str, data: bytes) -> None:
        path = self.path_for(database, doc_id)
        self._ensure_dir(path.parent)
        mask = os.umask(0)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.file_mode)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                if self.fsync:
                    fh.flush()
                    os.fsync(fh.fileno())
            os.chmod(path, self.file_mode)
        except OSError as exc:
            raise PersistenceError(f"unable to write file: {path}", exc) from exc
        finally:
            os.umask(mask)
        logger.debug("FilePersistence: wrote %d bytes to %s", len(data), path)

    def move(self, database: str, from_id: str, to_id: str) -> None:
        source = self.path_for(database, from_id)
        target = self.path_for(database, to_id)
        try:
            self._ensure_dir(target.parent)
            os.replace(source, target)
            if self.fsync:
                self._fsync_dir(target.parent)
        except OSError as exc:
            raise PersistenceError(f"unable to move file from: {source} - to: {target}", exc) from exc
        logger.debug("FilePersistence: moved %s -> %s", source, target)

    def delete(self, database: str, doc_id: str) -> None:
        path = self.path_for(database, doc_id)
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceError(f"unable to delete file: {path}", exc) from exc
        logger.debug("FilePersistence: deleted %s", path)

    def exists(self, database: str, doc_id: str) -> bool:
        return self.path_for(database, doc_id).is_file()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fsync_dir(self, path: Path) -> None:
        # Makes the rename itself durable.
        fd = os.open(path, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def _ensure_dir(self, path: Path) -> None:
        """Create ``path`` (and parents) with ``dir_mode`` if it does not exist."""
        if path.exists():
            if not path.is_dir():
                raise PersistenceError(f"path is not a directory: {path}")
            return
        # mkdir(parents=True) ignores ``mode`` for intermediate directories.
        missing: list[Path] = []
        current = path
        while not current.exists():
            missing.append(current)
            current = current.parent
        mask = os.umask(0)
        try:
            for directory in reversed(missing):
                try:
                    directory.mkdir(mode=self.dir_mode)
                except FileExistsError:
                    continue
        except OSError as exc:
            raise PersistenceError(f"unable to create directory: {path}", exc) from exc
        finally:
            os.umask(mask)

    def __repr__(self) -> str:
        return f"FilePersistence(root={str(self._root)!r})"
