#!/usr/bin/env python3
"""Example: Quickstart — jsondoc

Minimal working example: store two documents, commit, then load and
delete them in a second session.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install jsondoc
"""
from __future__ import annotations

import tempfile

from pydantic import BaseModel

import jsondoc
from jsondoc import DocumentStore, FilePersistence, JsonSerializer


class Foo(BaseModel):
    bar: str


def main() -> None:
    print(f"jsondoc version: {jsondoc.__version__}")

    with tempfile.TemporaryDirectory() as tmpdir:
        store = DocumentStore(FilePersistence(tmpdir), JsonSerializer(types=[Foo]))

        # Step 1: Buffer two stores and commit them together
        with store.open_session("sampledb") as session:
            session.store(Foo(bar="one"), "foo/a")
            session.store(Foo(bar="two"), "foo/b")
            print(f"Pending changes before commit: {session.has_pending_changes}")

        # Step 2: Load in a fresh session; repeated loads share one instance
        with store.open_session("sampledb") as session:
            a = session.load("foo/a")
            print(f"Loaded foo/a: bar={a.bar!r}  same instance: {session.load('foo/a') is a}")
            print(f"Id of loaded object: {session.get_id(a)}")

            # Step 3: Queue a delete; it is applied when the block exits
            session.delete("foo/b")
            print(f"foo/b exists after delete(): {session.exists('foo/b')}")

        with store.open_session("sampledb") as session:
            print(f"foo/b exists after commit: {session.exists('foo/b')}")


if __name__ == "__main__":
    main()
