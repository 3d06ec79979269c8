"""Store configuration.

``StoreConfig`` collects every knob of a file-backed store in one validated
model.  It can be built in code, from a mapping, or from a YAML file::

    root: /var/lib/jsondoc
    format: json
    dir_mode: 0o750
    file_mode: 0o640

Classes
-------
- StoreConfig  — validated configuration for ``DocumentStore.from_config``
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator


class StoreConfig(BaseModel):
    """Configuration for a file-backed ``DocumentStore``.

    Parameters
    ----------
    root:
        Root directory of the store.
    format:
        Document serialization format, ``"json"`` (default) or ``"yaml"``.
    extension:
        Document file suffix.  Defaults to ``".json"``.
    staging_extension:
        Suffix of staging copies written during commit.
    lock_name:
        File name of the per-database lock file.
    dir_mode:
        Permission bits for created directories.
    file_mode:
        Permission bits for written documents.
    fsync:
        Flush written documents to disk before returning.
    """

    root: Path
    format: Literal["json", "yaml"] = "json"
    extension: str = ".json"
    staging_extension: str = ".tmp"
    lock_name: str = ".lock"
    dir_mode: int = Field(default=0o755, ge=0, le=0o7777)
    file_mode: int = Field(default=0o644, ge=0, le=0o7777)
    fsync: bool = True

    @field_validator("extension", "staging_extension")
    @classmethod
    def _dotted_suffix(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2 or "/" in value:
            raise ValueError(f"suffix must start with '.' and name a file extension, got {value!r}")
        return value

    @field_validator("lock_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or "/" in value or value in (".", ".."):
            raise ValueError(f"lock_name must be a plain file name, got {value!r}")
        return value

    @field_validator("dir_mode", "file_mode", mode="before")
    @classmethod
    def _octal_string(cls, value: object) -> object:
        # YAML 1.1 parses 0755 as an int but leaves "0o755" as a string.
        if isinstance(value, str):
            return int(value, 8)
        return value

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: object) -> StoreConfig:
        """Load a configuration file, applying ``overrides`` on top.

        ``None`` overrides are ignored so optional CLI flags can be passed
        straight through.  A relative ``root`` is resolved against the
        directory containing the file.
        """
        config_path = Path(path)
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"configuration file must contain a mapping: {config_path}")
        data.update({key: value for key, value in overrides.items() if value is not None})
        if "root" in data and not Path(str(data["root"])).is_absolute():
            data["root"] = config_path.parent / str(data["root"])
        return cls.model_validate(data)
