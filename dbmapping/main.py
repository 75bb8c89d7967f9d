from __future__ import annotations

import importlib
import json
import sys
from typing import Any

import psycopg
import typer
from rich import box
from rich.console import Console
from rich.table import Table

from dbmapping.config import get_settings
from dbmapping.domain.models import PK_MARKER, FlatRecord
from dbmapping.errors import DBMappingError
from dbmapping.infrastructure.db_factory import get_sync_connection
from dbmapping.marshaling import marshal
from dbmapping.utils.logging import configure_logging

app = typer.Typer(help="dbmapping CLI: marshal records into flat, storable mappings.")


def _load_target(target: str) -> Any:
    """
    Resolve ``module.path:attribute`` into a record instance.

    A callable attribute is invoked without arguments (e.g. a factory function).
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise typer.BadParameter("Expected 'module.path:attribute'.", param_hint="TARGET")

    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        raise typer.BadParameter(f"Cannot import module '{module_name}'.", param_hint="TARGET") from exc
    try:
        value = getattr(module, attr)
    except AttributeError as exc:
        raise typer.BadParameter(f"{module_name} has no attribute '{attr}'.") from exc
    return value() if callable(value) else value


def _render_table(doc: FlatRecord) -> None:
    console = Console()
    table = Table(
        title="Flat record",
        box=box.ROUNDED,
        caption=f"Primary key: {doc.primary_key}",
    )
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Value", style="green")

    for key, value in doc.items():
        if key == PK_MARKER:
            continue
        style = "bold" if key == doc.primary_key else ""
        table.add_row(key, type(value).__name__, repr(value), style=style)

    console.print(table)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"statement_timeout_ms={settings.db_statement_timeout_ms} log_level={settings.log_level}"
    )


@app.command()
def ping() -> None:
    """
    Check that the configured database is reachable.
    """
    settings = get_settings()
    try:
        with get_sync_connection() as conn:
            server_version = conn.execute("SHOW server_version").fetchone()[0]
    except psycopg.Error as exc:
        typer.echo(f"Cannot reach {settings.db_host}:{settings.db_port}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"PostgreSQL {server_version} at {settings.db_host}:{settings.db_port}/{settings.db_name}")


@app.command("marshal")
def marshal_command(
    target: str = typer.Argument(
        ...,
        help="Record to marshal, as 'module.path:attribute' (instance or zero-arg factory).",
    ),
    table: bool = typer.Option(
        False,
        "--table",
        "-t",
        help="Render the flat record as a table instead of JSON.",
    ),
) -> None:
    """
    Marshal a record and print the resulting flat record.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    record = _load_target(target)
    try:
        doc = marshal(record)
    except DBMappingError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if table:
        _render_table(doc)
        return
    typer.echo(json.dumps(doc, indent=2, default=str))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
