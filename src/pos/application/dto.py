"""Data Transfer Objects — plain containers that cross layer boundaries."""

from __future__ import annotations

from dataclasses import dataclass

from pos.domain.model.transaction import Discount, Tender
from pos.domain.model.value_objects import Money


@dataclass(frozen=True)
class SaleOptions:
    """Input: how the customer is paying for the current cart."""

    tender: Tender
    amount_paid: Money | None = None  # cash only; defaults to the exact total
    discount: Discount | None = None
