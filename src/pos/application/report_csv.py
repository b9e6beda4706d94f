"""CSV export of a sales report."""

from __future__ import annotations

import csv
import io
from datetime import date
from decimal import Decimal

from pos.application.reporting import SalesReport

HEADER = ("Item", "Size", "Qty", "Revenue", "Cost", "Profit")


def _amount(value: Decimal) -> str:
    return f"{value:.2f}"


def to_csv(report: SalesReport) -> str:
    """Render the report lines as CSV with every value quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, doublequote=True, lineterminator="\n")
    writer.writerow(HEADER)
    for line in report.lines:
        writer.writerow((
            line.name,
            line.size or "",
            line.qty,
            _amount(line.revenue),
            _amount(line.cost),
            _amount(line.profit),
        ))
    return buffer.getvalue()


def report_filename(start: date, end: date) -> str:
    return f"report_{start.isoformat()}_to_{end.isoformat()}.csv"
