"""Sales reporting over the transaction history (query only).

Everything here is a pure function of its arguments: transactions are
read, never modified, and the same inputs always give the same report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Iterable

from pos.domain.model.transaction import Tender, Transaction

TOP_SELLER_COUNT = 5

PRESETS = ("today", "yesterday", "last7", "month")

DateLike = date | datetime | str | None


@dataclass
class LineAggregate:
    """Sales of one (name, size) combination within the report range."""

    name: str
    size: str | None
    qty: int = 0
    revenue: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")

    @property
    def key(self) -> str:
        return f"{self.name}|{self.size or ''}"

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.cost


@dataclass
class ReportTotals:
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    cogs: Decimal = Decimal("0")
    cash_total: Decimal = Decimal("0")
    card_total: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def profit(self) -> Decimal:
        return self.subtotal - self.cogs


@dataclass
class SalesReport:
    start: date
    end: date
    totals: ReportTotals
    lines: list[LineAggregate] = field(default_factory=list)

    @property
    def top_sellers(self) -> list[LineAggregate]:
        return self.lines[:TOP_SELLER_COUNT]


def _today(tz: tzinfo | None) -> date:
    return datetime.now(tz).date() if tz else date.today()


def _bound(day: date, at: time, tz: tzinfo | None) -> datetime:
    # astimezone() on a naive value applies the local offset in force on that day
    if tz is None:
        return datetime.combine(day, at).astimezone()
    return datetime.combine(day, at, tzinfo=tz)


def parse_day(value: DateLike, tz: tzinfo | None = None) -> date:
    """Coerce a date, datetime or ``YYYY-MM-DD`` string; anything else is today."""
    if isinstance(value, datetime):
        return value.astimezone(tz).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    return _today(tz)


def preset_range(preset: str, today: date | None = None) -> tuple[date, date]:
    """Resolve a named range relative to ``today``.

    ``today``, ``yesterday``, ``last7`` (today and the six days before it)
    and ``month`` (first of the month through today).
    """
    today = today or _today(None)
    if preset == "today":
        return today, today
    if preset == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if preset == "last7":
        return today - timedelta(days=6), today
    if preset == "month":
        return today.replace(day=1), today
    raise ValueError(f"Unknown range preset: {preset!r}")


def _in_range(ts: datetime, start: datetime, end: datetime, tz: tzinfo | None) -> bool:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=tz) if tz else ts.astimezone()
    return start <= ts <= end


def build_report(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
    tz: tzinfo | None = None,
) -> SalesReport:
    """Aggregate the transactions that fall within ``[start, end]``.

    Both ends are whole days in ``tz`` (the local zone by default):
    from the first instant of ``start`` through the last instant of
    ``end``. Lines are grouped by (name, size) and sorted by revenue,
    highest first.
    """
    start_day = parse_day(start, tz)
    end_day = parse_day(end, tz)
    window_start = _bound(start_day, time.min, tz)
    window_end = _bound(end_day, time.max, tz)

    totals = ReportTotals()
    groups: dict[tuple[str, str], LineAggregate] = {}

    for txn in transactions:
        if not _in_range(txn.timestamp, window_start, window_end, tz):
            continue

        totals.transaction_count += 1
        totals.subtotal += txn.subtotal.amount
        totals.tax += txn.tax.amount
        totals.total += txn.total.amount
        if txn.tender is Tender.CASH:
            totals.cash_total += txn.total.amount
        else:
            totals.card_total += txn.total.amount

        for line in txn.lines:
            revenue = line.line_total.amount
            cost = line.line_cost.amount
            totals.cogs += cost

            key = (line.name, line.size or "")
            agg = groups.get(key)
            if agg is None:
                agg = groups[key] = LineAggregate(name=line.name, size=line.size)
            agg.qty += line.qty
            agg.revenue += revenue
            agg.cost += cost

    lines = sorted(groups.values(), key=lambda agg: agg.revenue, reverse=True)
    return SalesReport(start=start_day, end=end_day, totals=totals, lines=lines)
