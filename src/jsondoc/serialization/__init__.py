"""Serialization subpackage.

Public surface
--------------
- Serializer      — abstract base class
- JsonSerializer  — JSON documents (default)
- YamlSerializer  — YAML documents
- make_serializer — build a serializer by format name
"""
from __future__ import annotations

from typing import Literal

from jsondoc.serialization.serializer import (
    TYPE_KEY,
    JsonSerializer,
    Serializer,
    YamlSerializer,
)


def make_serializer(format: Literal["json", "yaml"] = "json") -> Serializer:
    """Return a serializer for ``format`` (``"json"`` or ``"yaml"``)."""
    if format == "yaml":
        return YamlSerializer()
    if format == "json":
        return JsonSerializer()
    raise ValueError(f"unknown serialization format: {format!r}")


__all__ = [
    "TYPE_KEY",
    "JsonSerializer",
    "Serializer",
    "YamlSerializer",
    "make_serializer",
]
