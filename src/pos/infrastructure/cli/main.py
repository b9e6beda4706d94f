from pathlib import Path

import click

from pos.infrastructure import bootstrap
from pos.infrastructure.cli.backup_commands import backup_export, backup_import
from pos.infrastructure.cli.cart_commands import (
    cart_add,
    cart_clear,
    cart_qty,
    cart_remove,
    cart_show,
)
from pos.infrastructure.cli.item_commands import (
    item_add,
    item_delete,
    item_list,
    item_update,
)
from pos.infrastructure.cli.report_commands import report_csv, report_show
from pos.infrastructure.cli.sale_commands import sale_complete, sale_list
from pos.infrastructure.cli.settings_commands import settings_show, settings_tax
from pos.infrastructure.log_config import configure_logging


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help=f"Where state is kept (default: ${bootstrap.DATA_DIR_ENV} or ./data).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log store activity.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """POS: point-of-sale catalog, cart and sales"""
    configure_logging("DEBUG" if verbose else bootstrap.log_level())
    ctx.obj = bootstrap.pos_store(data_dir)


@cli.group()
def item() -> None:
    """Manage catalog items."""


@cli.group()
def cart() -> None:
    """Build the current sale."""


@cli.group()
def sale() -> None:
    """Complete and review sales."""


@cli.group()
def settings() -> None:
    """View and change store settings."""


@cli.group()
def backup() -> None:
    """Export and restore the whole store."""


@cli.group()
def report() -> None:
    """Sales reports."""


# Register subcommands
item.add_command(item_add)
item.add_command(item_delete)
item.add_command(item_list)
item.add_command(item_update)
cart.add_command(cart_add)
cart.add_command(cart_clear)
cart.add_command(cart_qty)
cart.add_command(cart_remove)
cart.add_command(cart_show)
sale.add_command(sale_complete)
sale.add_command(sale_list)
settings.add_command(settings_show)
settings.add_command(settings_tax)
backup.add_command(backup_export)
backup.add_command(backup_import)
report.add_command(report_csv)
report.add_command(report_show)
