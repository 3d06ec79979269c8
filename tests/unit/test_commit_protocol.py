"""Unit tests for the staged commit of DocumentSession.

Failures are injected with a recording InMemoryPersistence subclass that
raises PersistenceError on a chosen call.
"""
from __future__ import annotations

from unittest.mock import patch

import pytest

from jsondoc.errors import (
    LockError,
    PersistenceError,
    RecoverableCommitError,
    UnrecoverableCommitError,
)
from jsondoc.locking.base import LockMode
from jsondoc.session import DocumentSession
from jsondoc.storage.memory import InMemoryPersistence
from jsondoc.store import DocumentStore


class RecordingPersistence(InMemoryPersistence):
    """Records every mutating call and fails the ``fail_on``-th matching one."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, ...]] = []
        self.fail_on: tuple[str, int] | None = None

    def _record(self, *call: str) -> None:
        self.calls.append(call)
        if self.fail_on is not None:
            name, remaining = self.fail_on
            if call[0] == name:
                if remaining <= 1:
                    self.fail_on = None
                    raise PersistenceError(f"injected {name} failure")
                self.fail_on = (name, remaining - 1)

    def write(self, database: str, doc_id: str, data: bytes) -> None:
        self._record("write", doc_id)
        super().write(database, doc_id, data)

    def move(self, database: str, from_id: str, to_id: str) -> None:
        self._record("move", from_id, to_id)
        super().move(database, from_id, to_id)

    def delete(self, database: str, doc_id: str) -> None:
        self._record("delete", doc_id)
        super().delete(database, doc_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def persistence() -> RecordingPersistence:
    return RecordingPersistence()


@pytest.fixture()
def store(persistence: RecordingPersistence) -> DocumentStore:
    return DocumentStore(persistence)


@pytest.fixture()
def seeded(store: DocumentStore, persistence: RecordingPersistence) -> DocumentStore:
    with store.open_session("sampledb") as session:
        session.store({"bar": "old-a"}, "foo/a")
        session.store({"bar": "old-b"}, "foo/b")
    persistence.calls.clear()
    return store


def _token(call: tuple[str, ...]) -> str:
    staged = call[-1] if call[0] == "move" else call[1]
    return staged.rsplit(".", 1)[1]


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestCommitOrdering:
    def test_empty_commit_does_no_io(self, store: DocumentStore, persistence: RecordingPersistence) -> None:
        session = store.open_session("sampledb")
        session.commit()
        assert persistence.calls == []
        assert session.is_open
        session.close()

    def test_empty_commit_cycles_lock(self, store: DocumentStore) -> None:
        session = store.open_session("sampledb")
        mutex = session._mutex
        with patch.object(mutex, "lock_exclusive", wraps=mutex.lock_exclusive) as exclusive, patch.object(
            mutex, "lock_shared", wraps=mutex.lock_shared
        ) as shared:
            session.commit()
        exclusive.assert_called_once_with()
        shared.assert_called_once_with()
        session.close()

    def test_stage_then_finalize_in_insertion_order(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.store({"bar": "new"}, "foo/c")
        session.delete("foo/a")
        session.commit()
        session.close()

        token = _token(persistence.calls[0])
        assert persistence.calls == [
            ("write", f"foo/c.{token}"),
            ("move", "foo/a", f"foo/a.{token}"),
            ("move", f"foo/c.{token}", "foo/c"),
            ("delete", f"foo/a.{token}"),
        ]

    def test_each_commit_uses_a_fresh_token(self, store: DocumentStore, persistence: RecordingPersistence) -> None:
        session = store.open_session("sampledb")
        session.store({"bar": "one"}, "foo/a")
        session.commit()
        session.store({"bar": "two"}, "foo/a")
        session.commit()
        session.close()
        writes = [call for call in persistence.calls if call[0] == "write"]
        assert _token(writes[0]) != _token(writes[1])

    def test_only_pending_entries_are_written(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.load("foo/a")
        session.store({"bar": "new"}, "foo/b")
        session.commit()
        session.close()
        assert all("foo/a" not in call[1] for call in persistence.calls)

    def test_lock_is_exclusive_during_commit(self, store: DocumentStore, persistence: RecordingPersistence) -> None:
        session = store.open_session("sampledb")
        observed: list[LockMode | None] = []
        original = persistence.write

        def write(database: str, doc_id: str, data: bytes) -> None:
            observed.append(session._mutex.mode)
            original(database, doc_id, data)

        session.store({"bar": "one"}, "foo/a")
        with patch.object(persistence, "write", side_effect=write):
            session.commit()
        assert observed == [LockMode.EXCLUSIVE]
        assert session._mutex.mode is LockMode.SHARED
        session.close()


# ---------------------------------------------------------------------------
# Staging failures
# ---------------------------------------------------------------------------


class TestCommitStagingFailure:
    def test_write_failure_rolls_back(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.delete("foo/a")
        session.store({"bar": "new-c"}, "foo/c")
        session.store({"bar": "new-d"}, "foo/d")
        persistence.fail_on = ("write", 2)

        with pytest.raises(RecoverableCommitError) as excinfo:
            session.commit()

        assert isinstance(excinfo.value.cause, PersistenceError)
        assert persistence.keys("sampledb") == ["foo/a", "foo/b"]
        assert session.has_pending_changes
        assert session._mutex.mode is LockMode.SHARED
        session.flush()
        session.close()

    def test_rollback_restores_moved_documents(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.delete("foo/a")
        session.delete("foo/b")
        persistence.fail_on = ("move", 2)

        with pytest.raises(RecoverableCommitError):
            session.commit()

        token = _token(persistence.calls[0])
        assert ("move", f"foo/a.{token}", "foo/a") in persistence.calls
        assert persistence.read("sampledb", "foo/a") == seeded.serializer.serialize({"bar": "old-a"})
        assert persistence.keys("sampledb") == ["foo/a", "foo/b"]
        session.flush()
        session.close()

    def test_retry_after_recoverable_failure(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.store({"bar": "new-c"}, "foo/c")
        session.delete("foo/a")
        persistence.fail_on = ("move", 1)

        with pytest.raises(RecoverableCommitError):
            session.commit()
        session.commit()
        session.close()

        assert persistence.keys("sampledb") == ["foo/b", "foo/c"]

    def test_identity_survives_recoverable_failure(self, store: DocumentStore, persistence: RecordingPersistence) -> None:
        session = store.open_session("sampledb")
        obj = {"bar": "one"}
        session.store(obj, "foo/a")
        persistence.fail_on = ("write", 1)
        with pytest.raises(RecoverableCommitError):
            session.commit()
        assert session.get_id(obj) == "foo/a"
        assert session.load("foo/a") is obj
        session.flush()
        session.close()


# ---------------------------------------------------------------------------
# Unrecoverable failures
# ---------------------------------------------------------------------------


class TestCommitUnrecoverableFailure:
    def test_finalize_failure(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.store({"bar": "new-a"}, "foo/a")
        session.store({"bar": "new-b"}, "foo/b")
        persistence.fail_on = ("move", 2)

        with pytest.raises(UnrecoverableCommitError) as excinfo:
            session.commit()

        assert isinstance(excinfo.value.cause, PersistenceError)
        assert session.is_open
        assert session._mutex.mode is LockMode.SHARED
        assert session.has_pending_changes
        session.flush()
        session.close()

    def test_rollback_failure(self, seeded: DocumentStore, persistence: RecordingPersistence) -> None:
        session = seeded.open_session("sampledb")
        session.store({"bar": "new-c"}, "foo/c")
        session.store({"bar": "new-d"}, "foo/d")
        persistence.fail_on = ("write", 2)

        def failing_delete(database: str, doc_id: str) -> None:
            raise PersistenceError(f"injected delete failure: {doc_id}")

        with patch.object(persistence, "delete", side_effect=failing_delete):
            with pytest.raises(UnrecoverableCommitError, match="rolled back"):
                session.commit()

        session.flush()
        session.close()

    def test_lock_failure_propagates(self, store: DocumentStore) -> None:
        session = store.open_session("sampledb")
        session.store({"bar": "one"}, "foo/a")
        with patch.object(session._mutex, "lock_exclusive", side_effect=LockError("unable to lock the database")):
            with pytest.raises(LockError):
                session.commit()
        assert session.has_pending_changes
        session.flush()
        session.close()


def test_session_type(store: DocumentStore) -> None:
    session = store.open_session("sampledb")
    assert isinstance(session, DocumentSession)
    session.close()
