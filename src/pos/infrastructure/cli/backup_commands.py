"""CLI commands for whole-store backup and restore."""

from __future__ import annotations

import click

from pos.application.store import PosStore
from pos.domain.exceptions import DomainException


@click.command("export")
@click.option(
    "--output", type=click.File("w", encoding="utf-8"), default="-",
    help="File to write (default: stdout).",
)
@click.pass_obj
def backup_export(store: PosStore, output) -> None:
    """Write items, sales and settings as one JSON document."""
    output.write(store.export_all() + "\n")


@click.command("import")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.pass_obj
def backup_import(store: PosStore, source) -> None:
    """Restore items, sales and settings from a backup document."""
    try:
        store.import_all(source.read())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Imported {len(store.get_items())} items and "
        f"{len(store.get_transactions())} sales."
    )
