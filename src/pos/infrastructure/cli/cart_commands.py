"""CLI commands for the current cart.

Lines are numbered from 1 on screen; the store indexes them from 0.
"""

from __future__ import annotations

import click

from pos.application.store import PosStore
from pos.domain.exceptions import DomainException, EntityNotFoundError
from pos.domain.model.cart import LineItem


@click.command("add")
@click.option("--item", "item_id", required=True, help="Item ID.")
@click.option("--qty", type=int, default=1, show_default=True, help="Quantity.")
@click.option("--size", default=None, help="Size label (defaults to the first size).")
@click.pass_obj
def cart_add(store: PosStore, item_id: str, qty: int, size: str | None) -> None:
    """Ring up an item at its current price."""
    try:
        item = store.get_item(item_id)
        if item is None:
            raise EntityNotFoundError(f"Item with ID '{item_id}' not found")
        line = LineItem.from_item(item, qty=qty, size=size)
        store.add_to_cart(line)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    label = f"{line.name} ({line.size})" if line.size else line.name
    click.echo(f"Added {qty} x {label} at {line.unit_price}")


@click.command("show")
@click.pass_obj
def cart_show(store: PosStore) -> None:
    """Show the lines in the cart."""
    lines = store.get_cart()

    if not lines:
        click.echo("Cart is empty.")
        return

    click.echo(f"  {'#':>3} {'Item':<20} {'Size':<6} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*58}")
    for n, line in enumerate(lines, start=1):
        click.echo(
            f"  {n:>3} {line.name:<20} {line.size or '':<6} {line.qty:>5} "
            f"{str(line.unit_price):>10} {str(line.line_total):>10}"
        )
    click.echo(f"  {'-'*58}")
    click.echo(f"  {'Subtotal':<36} {str(store.get_cart_subtotal()):>21}")


@click.command("qty")
@click.option("--line", "line_no", required=True, type=int, help="Line number.")
@click.option("--qty", required=True, type=int, help="New quantity; 0 removes the line.")
@click.pass_obj
def cart_qty(store: PosStore, line_no: int, qty: int) -> None:
    """Change the quantity of a cart line."""
    if not 1 <= line_no <= len(store.get_cart()):
        raise click.ClickException(f"No cart line {line_no}")
    store.set_cart_qty(line_no - 1, qty)
    click.echo(f"Line {line_no} removed." if qty <= 0 else f"Line {line_no} set to {qty}.")


@click.command("remove")
@click.option("--line", "line_no", required=True, type=int, help="Line number.")
@click.pass_obj
def cart_remove(store: PosStore, line_no: int) -> None:
    """Remove a line from the cart."""
    if not 1 <= line_no <= len(store.get_cart()):
        raise click.ClickException(f"No cart line {line_no}")
    store.remove_cart_line(line_no - 1)
    click.echo(f"Line {line_no} removed.")


@click.command("clear")
@click.pass_obj
def cart_clear(store: PosStore) -> None:
    """Empty the cart."""
    store.clear_cart()
    click.echo("Cart cleared.")
