"""CLI entry point for jsondoc.

Invoked as::

    jsondoc [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m jsondoc.cli.main

Commands
--------
- version  — Show version information
- get      — Load and print a document
- put      — Store a JSON value as a document
- delete   — Delete a document
- exists   — Report whether a document exists
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from rich.console import Console

from jsondoc.config import StoreConfig
from jsondoc.errors import DocumentError
from jsondoc.store import DocumentStore

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Store factory
# ---------------------------------------------------------------------------


def _make_store(root: str | None, config_path: str | None, format: str | None) -> DocumentStore:
    """Build the store described by the global CLI options.

    Parameters
    ----------
    root:
        Store root directory; overrides the config file's ``root``.
    config_path:
        Optional YAML configuration file.
    format:
        Serialization format; overrides the config file's ``format``.

    Returns
    -------
    DocumentStore
        A configured file-backed store.
    """
    try:
        if config_path:
            config = StoreConfig.from_yaml(config_path, root=root, format=format)
        else:
            if not root:
                err_console.print("[red]No store root given:[/red] pass --root or set JSONDOC_ROOT")
                sys.exit(1)
            config = StoreConfig(root=Path(root), format=format or "json")
    except (OSError, ValueError, yaml.YAMLError) as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(1)
    return DocumentStore.from_config(config)


def _to_plain(obj: Any) -> Any:
    """Return a JSON-compatible view of a loaded document."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return obj


def _fail(exc: DocumentError) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {exc}")
    sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="jsondoc")
@click.option(
    "--root",
    envvar="JSONDOC_ROOT",
    default=None,
    help="Root directory of the document store.  [env: JSONDOC_ROOT]",
)
@click.option("--config", "config_path", default=None, help="YAML configuration file.")
@click.option(
    "--format",
    default=None,
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    help="Document serialization format (default: json).",
)
@click.pass_context
def cli(ctx: click.Context, root: str | None, config_path: str | None, format: str | None) -> None:
    """Transactional file-backed document store."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["config_path"] = config_path
    ctx.obj["format"] = format.lower() if format else None


def _store_from(ctx: click.Context) -> DocumentStore:
    return _make_store(ctx.obj["root"], ctx.obj["config_path"], ctx.obj["format"])


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from jsondoc import __version__

    console.print(f"[bold]jsondoc[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


@cli.command(name="get")
@click.argument("database")
@click.argument("doc_id")
@click.pass_context
def get_command(ctx: click.Context, database: str, doc_id: str) -> None:
    """Print document DOC_ID from DATABASE as JSON."""
    store = _store_from(ctx)
    try:
        with store.open_session(database) as session:
            document = session.load(doc_id)
    except DocumentError as exc:
        _fail(exc)
    console.print_json(json.dumps(_to_plain(document), default=str))


# ---------------------------------------------------------------------------
# put
# ---------------------------------------------------------------------------


@cli.command(name="put")
@click.argument("database")
@click.argument("doc_id")
@click.argument("value", required=False)
@click.option(
    "--file",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the JSON value from a file instead of VALUE.",
)
@click.pass_context
def put_command(
    ctx: click.Context,
    database: str,
    doc_id: str,
    value: str | None,
    file_path: Path | None,
) -> None:
    """Store the JSON VALUE as document DOC_ID in DATABASE."""
    if (value is None) == (file_path is None):
        err_console.print("[red]Error:[/red] pass exactly one of VALUE or --file")
        sys.exit(1)
    raw = file_path.read_text(encoding="utf-8") if file_path is not None else value
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON:[/red] {exc}")
        sys.exit(1)

    store = _store_from(ctx)
    try:
        with store.open_session(database) as session:
            session.store(document, doc_id)
    except DocumentError as exc:
        _fail(exc)
    console.print(f"[green]Stored:[/green] {database}/{doc_id}")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


@cli.command(name="delete")
@click.argument("database")
@click.argument("doc_id")
@click.pass_context
def delete_command(ctx: click.Context, database: str, doc_id: str) -> None:
    """Delete document DOC_ID from DATABASE."""
    store = _store_from(ctx)
    try:
        with store.open_session(database) as session:
            session.delete(doc_id)
    except DocumentError as exc:
        _fail(exc)
    console.print(f"[green]Deleted:[/green] {database}/{doc_id}")


# ---------------------------------------------------------------------------
# exists
# ---------------------------------------------------------------------------


@cli.command(name="exists")
@click.argument("database")
@click.argument("doc_id")
@click.pass_context
def exists_command(ctx: click.Context, database: str, doc_id: str) -> None:
    """Report whether DOC_ID exists in DATABASE (exit status 1 if not)."""
    store = _store_from(ctx)
    try:
        with store.open_session(database) as session:
            found = session.exists(doc_id)
    except DocumentError as exc:
        _fail(exc)
    if found:
        console.print(f"[green]yes[/green] {database}/{doc_id}")
        return
    console.print(f"[yellow]no[/yellow] {database}/{doc_id}")
    sys.exit(1)


if __name__ == "__main__":
    cli()
