"""CLI commands for completing and reviewing sales."""

from __future__ import annotations

import click

from pos.application.dto import SaleOptions
from pos.application.store import PosStore
from pos.domain.exceptions import DomainException
from pos.domain.model.transaction import Discount, DiscountKind, Tender
from pos.domain.model.value_objects import Money, to_decimal


@click.command("complete")
@click.option(
    "--tender",
    type=click.Choice([t.value for t in Tender]),
    required=True,
    help="Payment method.",
)
@click.option("--paid", default=None, help="Cash handed over (defaults to exact total).")
@click.option("--percent-off", default=None, help="Whole-cart discount in percent.")
@click.option("--amount-off", default=None, help="Whole-cart discount in currency.")
@click.pass_obj
def sale_complete(
    store: PosStore,
    tender: str,
    paid: str | None,
    percent_off: str | None,
    amount_off: str | None,
) -> None:
    """Complete the sale for everything in the cart."""
    if percent_off is not None and amount_off is not None:
        raise click.UsageError("Use either --percent-off or --amount-off, not both.")
    if paid is not None and tender != Tender.CASH.value:
        raise click.UsageError("--paid only applies to cash sales.")

    try:
        discount = None
        if percent_off is not None:
            discount = Discount(DiscountKind.PERCENT, to_decimal(percent_off, "discount"))
        elif amount_off is not None:
            discount = Discount(DiscountKind.FIXED, to_decimal(amount_off, "discount"))
        options = SaleOptions(
            tender=Tender(tender),
            amount_paid=Money.of(paid) if paid is not None else None,
            discount=discount,
        )
        store.complete_sale(options)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    txn = store.get_transactions()[-1]
    click.echo(f"Sale {txn.id} complete ({txn.tender.value})")
    if txn.discount:
        click.echo(f"  {'Discount':<12} {str(txn.discount):>12}")
    click.echo(f"  {'Subtotal':<12} {str(txn.subtotal):>12}")
    click.echo(f"  {'Tax':<12} {str(txn.tax):>12}")
    click.echo(f"  {'Total':<12} {str(txn.total):>12}")
    if txn.change is not None:
        click.echo(f"  {'Paid':<12} {str(txn.amount_paid):>12}")
        click.echo(f"  {'Change due':<12} {str(txn.change):>12}")


@click.command("list")
@click.option("--limit", type=int, default=20, show_default=True, help="Most recent N sales.")
@click.pass_obj
def sale_list(store: PosStore, limit: int) -> None:
    """List recent sales, newest first."""
    txns = store.get_transactions()

    if not txns:
        click.echo("No sales recorded.")
        return

    click.echo(f"{'ID':<10} {'When':<17} {'Tender':<7} {'Lines':>5} {'Total':>10}")
    click.echo("-" * 53)
    for txn in reversed(txns[-limit:]):
        when = txn.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
        click.echo(
            f"{txn.id:<10} {when:<17} {txn.tender.value:<7} {len(txn.lines):>5} {str(txn.total):>10}"
        )
