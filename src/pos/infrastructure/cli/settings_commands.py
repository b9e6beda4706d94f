"""CLI commands for store settings."""

from __future__ import annotations

import click

from pos.application.store import PosStore
from pos.domain.exceptions import DomainException


@click.command("show")
@click.pass_obj
def settings_show(store: PosStore) -> None:
    """Show current settings."""
    settings = store.get_settings()
    click.echo(f"Tax rate: {settings.tax_rate * 100:.2f}%")


@click.command("tax")
@click.option("--rate", required=True, help="Tax rate as a fraction, e.g. 0.08.")
@click.pass_obj
def settings_tax(store: PosStore, rate: str) -> None:
    """Set the sales tax rate."""
    try:
        store.set_tax_rate(rate)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Tax rate set to {store.get_settings().tax_rate * 100:.2f}%")
