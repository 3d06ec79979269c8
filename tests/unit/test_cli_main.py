"""Unit tests for jsondoc.cli.main.

Uses Click's test runner (CliRunner) against a store rooted in pytest's
tmp_path, so nothing outside the test directory is touched.
"""
from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from jsondoc.cli.main import _make_store, cli
from jsondoc.serialization import JsonSerializer, YamlSerializer
from jsondoc.storage.filesystem import FilePersistence


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def root(tmp_path: Path) -> Path:
    return tmp_path / "store"


def _invoke(runner: CliRunner, root: Path, *args: str):
    return runner.invoke(cli, ["--root", str(root), *args])


# ---------------------------------------------------------------------------
# _make_store factory
# ---------------------------------------------------------------------------


class TestMakeStore:
    def test_root_only(self, root: Path) -> None:
        store = _make_store(str(root), None, None)
        assert isinstance(store.persistence, FilePersistence)
        assert isinstance(store.serializer, JsonSerializer)

    def test_format_override(self, root: Path) -> None:
        store = _make_store(str(root), None, "yaml")
        assert isinstance(store.serializer, YamlSerializer)

    def test_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "jsondoc.yaml"
        config_file.write_text("root: data\nformat: yaml\n")
        store = _make_store(None, str(config_file), None)
        assert store.persistence.root == tmp_path / "data"
        assert isinstance(store.serializer, YamlSerializer)

    def test_missing_root_exits(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            _make_store(None, None, None)
        assert excinfo.value.code == 1


# ---------------------------------------------------------------------------
# Root group / version
# ---------------------------------------------------------------------------


class TestCliGroup:
    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("get", "put", "delete", "exists", "version"):
            assert command in result.output

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "jsondoc" in result.output
        assert "0.1.0" in result.output

    def test_no_root(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["get", "sampledb", "foo/a"], env={"JSONDOC_ROOT": None})
        assert result.exit_code == 1
        assert "No store root given" in result.output

    def test_root_from_environment(self, runner: CliRunner, root: Path) -> None:
        result = runner.invoke(cli, ["put", "sampledb", "foo/a", '{"bar": "one"}'], env={"JSONDOC_ROOT": str(root)})
        assert result.exit_code == 0
        assert (root / "sampledb" / "foo" / "a.json").is_file()

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "jsondoc.yaml"
        config_file.write_text("root: data\nfile_mode: 99999\n")
        result = runner.invoke(cli, ["--config", str(config_file), "exists", "sampledb", "foo/a"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_malformed_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "jsondoc.yaml"
        config_file.write_text("root: [unclosed\n")
        result = runner.invoke(cli, ["--config", str(config_file), "exists", "sampledb", "foo/a"])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# put / get / exists / delete
# ---------------------------------------------------------------------------


class TestCliDocuments:
    def test_put_then_get(self, runner: CliRunner, root: Path) -> None:
        result = _invoke(runner, root, "put", "sampledb", "foo/a", '{"bar": "one"}')
        assert result.exit_code == 0
        assert "Stored: sampledb/foo/a" in result.output

        result = _invoke(runner, root, "get", "sampledb", "foo/a")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"bar": "one"}

    def test_put_from_file(self, runner: CliRunner, root: Path, tmp_path: Path) -> None:
        value_file = tmp_path / "value.json"
        value_file.write_text('{"bar": "from-file"}')
        result = _invoke(runner, root, "put", "sampledb", "foo/a", "--file", str(value_file))
        assert result.exit_code == 0
        assert json.loads((root / "sampledb" / "foo" / "a.json").read_text()) == {"bar": "from-file"}

    def test_put_requires_exactly_one_source(self, runner: CliRunner, root: Path, tmp_path: Path) -> None:
        result = _invoke(runner, root, "put", "sampledb", "foo/a")
        assert result.exit_code == 1
        assert "exactly one" in result.output

        value_file = tmp_path / "value.json"
        value_file.write_text("{}")
        result = _invoke(runner, root, "put", "sampledb", "foo/a", "{}", "--file", str(value_file))
        assert result.exit_code == 1

    def test_put_invalid_json(self, runner: CliRunner, root: Path) -> None:
        result = _invoke(runner, root, "put", "sampledb", "foo/a", "{not json")
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_put_invalid_id(self, runner: CliRunner, root: Path) -> None:
        result = _invoke(runner, root, "put", "sampledb", "foo/../a", "{}")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_put_yaml_format(self, runner: CliRunner, root: Path) -> None:
        result = runner.invoke(cli, ["--root", str(root), "--format", "yaml", "put", "sampledb", "a", '{"bar": "one"}'])
        assert result.exit_code == 0
        assert (root / "sampledb" / "a.json").read_text().strip() == "bar: one"

    def test_get_missing(self, runner: CliRunner, root: Path) -> None:
        result = _invoke(runner, root, "get", "sampledb", "foo/missing")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_exists(self, runner: CliRunner, root: Path) -> None:
        _invoke(runner, root, "put", "sampledb", "foo/a", "1")
        result = _invoke(runner, root, "exists", "sampledb", "foo/a")
        assert result.exit_code == 0
        assert "yes" in result.output

        result = _invoke(runner, root, "exists", "sampledb", "foo/b")
        assert result.exit_code == 1
        assert "no" in result.output

    def test_delete(self, runner: CliRunner, root: Path) -> None:
        _invoke(runner, root, "put", "sampledb", "foo/a", '"text"')
        result = _invoke(runner, root, "delete", "sampledb", "foo/a")
        assert result.exit_code == 0
        assert "Deleted: sampledb/foo/a" in result.output
        assert not (root / "sampledb" / "foo" / "a.json").exists()

    def test_delete_missing(self, runner: CliRunner, root: Path) -> None:
        result = _invoke(runner, root, "delete", "sampledb", "foo/missing")
        assert result.exit_code == 1
