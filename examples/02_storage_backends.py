#!/usr/bin/env python3
"""Example: Storage Backends

Runs the same unit of work against the in-memory and filesystem
persistence layers, then shows a configured YAML store.

Usage:
    python examples/02_storage_backends.py

Requirements:
    pip install jsondoc
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import jsondoc
from jsondoc import DocumentStore, StoreConfig, open_store


def demo_store(label: str, store: DocumentStore) -> None:
    with store.open_session("inventory") as session:
        session.store({"sku": "A-1", "qty": 3}, "items/a1")
        session.store({"sku": "B-2", "qty": 0}, "items/b2")
    with store.open_session("inventory") as session:
        session.delete("items/b2")
    with store.open_session("inventory") as session:
        print(
            f"  [{label}] items/a1={session.load('items/a1')}  "
            f"items/b2 exists={session.exists('items/b2')}"
        )


def main() -> None:
    print(f"jsondoc version: {jsondoc.__version__}")

    print("\nIn-memory persistence:")
    demo_store("memory", open_store())

    with tempfile.TemporaryDirectory() as tmpdir:
        print("\nFilesystem persistence:")
        demo_store("filesystem", open_store(Path(tmpdir) / "json"))
        files = sorted(p.name for p in (Path(tmpdir) / "json" / "inventory" / "items").iterdir())
        print(f"  Files written: {files}")

        print("\nConfigured YAML store:")
        config = StoreConfig(root=Path(tmpdir) / "yaml", format="yaml", extension=".yaml", file_mode=0o600)
        demo_store("yaml", DocumentStore.from_config(config))
        print((Path(tmpdir) / "yaml" / "inventory" / "items" / "a1.yaml").read_text(), end="")


if __name__ == "__main__":
    main()
