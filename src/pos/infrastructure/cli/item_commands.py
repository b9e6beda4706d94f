"""CLI commands for the catalog."""

from __future__ import annotations

from typing import Any

import click

from pos.application.store import PosStore
from pos.domain.exceptions import DomainException, EntityNotFoundError
from pos.domain.model.item import SizeStock


def _parse_sizes(raw: tuple[str, ...]) -> list[SizeStock]:
    """Parse ('S:4', 'M:10') into SizeStock entries."""
    sizes: list[SizeStock] = []
    for pair in raw:
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid size format '{pair}'. Expected 'Size:Stock'."
            )
        label, stock_str = pair.rsplit(":", 1)
        try:
            stock = int(stock_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid stock '{stock_str}' for size '{label}'."
            )
        sizes.append(SizeStock(size=label.strip(), stock=stock))
    return sizes


@click.command("add")
@click.option("--name", required=True, help="Item name.")
@click.option("--price", required=True, help="Customer price (e.g. 15.00).")
@click.option("--cost", default="0", show_default=True, help="Our cost per unit.")
@click.option("--vendor", default=None, help="Vendor label.")
@click.option("--image-url", default=None, help="Image reference.")
@click.option("--size", "sizes", multiple=True, help="Size and stock as 'M:5'; repeatable.")
@click.option("--tag", "tags", multiple=True, help="Tag; repeatable.")
@click.option("--low-stock", type=int, default=None, help="Low-stock threshold (default 3).")
@click.pass_obj
def item_add(
    store: PosStore,
    name: str,
    price: str,
    cost: str,
    vendor: str | None,
    image_url: str | None,
    sizes: tuple[str, ...],
    tags: tuple[str, ...],
    low_stock: int | None,
) -> None:
    """Add a new item to the catalog."""
    fields: dict[str, Any] = {"vendor": vendor, "image_url": image_url, "tags": list(tags)}
    if low_stock is not None:
        fields["low_stock_threshold"] = low_stock

    try:
        fields["sizes"] = _parse_sizes(sizes)
        store.add_item(name, price, cost, **fields)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    added = store.get_items()[-1]
    click.echo(f"Item {added.id} '{added.name}' added at {added.price}")


@click.command("list")
@click.pass_obj
def item_list(store: PosStore) -> None:
    """List all items in the catalog."""
    items = store.get_items()

    if not items:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<10} {'Name':<20} {'Price':>10} {'Cost':>10}  {'Sizes'}")
    click.echo("-" * 70)
    for it in items:
        sizes = ", ".join(f"{s.size}({s.stock})" for s in it.sizes) or "-"
        flag = "  LOW" if it.is_low_stock else ""
        click.echo(
            f"{it.id:<10} {it.name:<20} {str(it.price):>10} {str(it.cost):>10}  {sizes}{flag}"
        )


@click.command("update")
@click.option("--id", "item_id", required=True, help="Item ID.")
@click.option("--name", default=None, help="New name.")
@click.option("--price", default=None, help="New customer price.")
@click.option("--cost", default=None, help="New unit cost.")
@click.option("--vendor", default=None, help="New vendor label.")
@click.option("--size", "sizes", multiple=True, help="Replace sizes, 'M:5'; repeatable.")
@click.option("--tag", "tags", multiple=True, help="Replace tags; repeatable.")
@click.option("--low-stock", type=int, default=None, help="New low-stock threshold.")
@click.pass_obj
def item_update(
    store: PosStore,
    item_id: str,
    name: str | None,
    price: str | None,
    cost: str | None,
    vendor: str | None,
    sizes: tuple[str, ...],
    tags: tuple[str, ...],
    low_stock: int | None,
) -> None:
    """Change fields of an existing item.

    Carts and past sales keep the price they were rung up at.
    """
    patch: dict[str, Any] = {}
    for key, value in (("name", name), ("price", price), ("cost", cost), ("vendor", vendor)):
        if value is not None:
            patch[key] = value
    if sizes:
        try:
            patch["sizes"] = _parse_sizes(sizes)
        except DomainException as exc:
            raise click.ClickException(str(exc))
    if tags:
        patch["tags"] = list(tags)
    if low_stock is not None:
        patch["low_stock_threshold"] = low_stock
    if not patch:
        raise click.UsageError("Nothing to update.")

    try:
        if store.get_item(item_id) is None:
            raise EntityNotFoundError(f"Item with ID '{item_id}' not found")
        store.update_item(item_id, patch)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item_id} updated ({', '.join(sorted(patch))})")


@click.command("delete")
@click.option("--id", "item_id", required=True, help="Item ID.")
@click.pass_obj
def item_delete(store: PosStore, item_id: str) -> None:
    """Delete an item and any cart lines for it."""
    if store.get_item(item_id) is None:
        raise click.ClickException(f"Item with ID '{item_id}' not found")
    store.delete_item(item_id)
    click.echo(f"Item {item_id} deleted.")

