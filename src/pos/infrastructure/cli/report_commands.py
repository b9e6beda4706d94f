"""CLI commands for sales reports."""

from __future__ import annotations

from pathlib import Path

import click

from pos.application.report_csv import report_filename, to_csv
from pos.application.reporting import PRESETS, SalesReport, build_report, preset_range
from pos.application.store import PosStore

_range_options = [
    click.option("--preset", type=click.Choice(PRESETS), default=None, help="Named date range."),
    click.option("--start", default=None, help="First day, YYYY-MM-DD (default today)."),
    click.option("--end", default=None, help="Last day, YYYY-MM-DD (default today)."),
]


def range_options(fn):
    for option in reversed(_range_options):
        fn = option(fn)
    return fn


def _report(store: PosStore, preset: str | None, start: str | None, end: str | None) -> SalesReport:
    if preset is not None:
        if start or end:
            raise click.UsageError("Use either --preset or --start/--end, not both.")
        first, last = preset_range(preset)
        return build_report(store.get_transactions(), first, last)
    return build_report(store.get_transactions(), start, end)


@click.command("show")
@range_options
@click.pass_obj
def report_show(store: PosStore, preset: str | None, start: str | None, end: str | None) -> None:
    """Summarise sales for a date range."""
    report = _report(store, preset, start, end)
    totals = report.totals

    click.echo(f"Sales {report.start} to {report.end}  ({totals.transaction_count} sales)")
    click.echo()
    for label, value in (
        ("Gross sales", totals.subtotal),
        ("Tax collected", totals.tax),
        ("Grand total", totals.total),
        ("  Cash", totals.cash_total),
        ("  Card", totals.card_total),
        ("COGS", totals.cogs),
        ("Profit", totals.profit),
    ):
        click.echo(f"  {label:<16} {value:>12.2f}")

    if not report.lines:
        click.echo()
        click.echo("No sales in this range.")
        return

    click.echo()
    click.echo("Top sellers (by revenue):")
    for rank, line in enumerate(report.top_sellers, start=1):
        label = f"{line.name} ({line.size})" if line.size else line.name
        click.echo(f"  {rank}. {label} - ${line.revenue:.2f}, {line.qty} sold")

    click.echo()
    click.echo(f"  {'Item':<20} {'Size':<6} {'Qty':>5} {'Revenue':>10} {'Cost':>10} {'Profit':>10}")
    click.echo(f"  {'-'*66}")
    for line in report.lines:
        click.echo(
            f"  {line.name:<20} {line.size or '':<6} {line.qty:>5} "
            f"{line.revenue:>10.2f} {line.cost:>10.2f} {line.profit:>10.2f}"
        )


@click.command("csv")
@range_options
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory for the CSV file.",
)
@click.pass_obj
def report_csv(
    store: PosStore,
    preset: str | None,
    start: str | None,
    end: str | None,
    output_dir: Path,
) -> None:
    """Write the per-item report as report_<start>_to_<end>.csv."""
    report = _report(store, preset, start, end)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(report.start, report.end)
    path.write_text(to_csv(report), encoding="utf-8")
    click.echo(f"Wrote {len(report.lines)} rows to {path}")
