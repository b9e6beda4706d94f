"""Transaction aggregate — an append-only record of a completed sale.

A Transaction owns frozen copies of the cart lines it was built from and
the totals computed from them. Once created it is never changed.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pos.domain.exceptions import ValidationError
from pos.domain.model.cart import LineItem
from pos.domain.model.value_objects import Money, round2


class Tender(Enum):
    CASH = "cash"
    CARD = "card"


class DiscountKind(Enum):
    PERCENT = "percent"
    FIXED = "fixed"


@dataclass(frozen=True)
class Discount:
    """A whole-cart discount, either a percentage or a fixed amount."""

    kind: DiscountKind
    value: Decimal

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValidationError("Discount value cannot be negative")
        if self.kind is DiscountKind.PERCENT and self.value > 100:
            raise ValidationError("Percent discount cannot exceed 100")

    def amount_off(self, pre_discount_subtotal: Decimal) -> Decimal:
        if self.kind is DiscountKind.PERCENT:
            return pre_discount_subtotal * (self.value / Decimal("100"))
        return self.value

    def __str__(self) -> str:
        if self.kind is DiscountKind.PERCENT:
            return f"{self.value.normalize():f}% off"
        return f"${self.value:.2f} off"


@dataclass(frozen=True)
class Transaction:
    """A completed sale.

    Use ``Transaction.create()`` for new sales; it computes every total.
    The ``__init__`` is intentionally simple so the codec can reconstitute
    persisted transactions without recomputing them.
    """

    id: str
    timestamp: datetime
    subtotal: Money
    tax: Money
    total: Money
    tender: Tender
    lines: tuple[LineItem, ...]
    amount_paid: Money | None = None
    change: Money | None = None
    discount: Discount | None = None

    # --- Factory (used for NEW sales only) ------------------------------------

    @staticmethod
    def create(
        txn_id: str,
        lines: list[LineItem],
        tax_rate: Decimal,
        tender: Tender,
        amount_paid: Money | None = None,
        discount: Discount | None = None,
        timestamp: datetime | None = None,
    ) -> Transaction:
        """Price the given lines and build the sale record.

        For cash sales ``amount_paid`` defaults to the total and must
        cover it.
        """
        if not lines:
            raise ValidationError("Cannot complete a sale with an empty cart")

        pre_discount = sum((line.line_total.amount for line in lines), Decimal("0"))
        discount_amount = discount.amount_off(pre_discount) if discount else Decimal("0")
        subtotal = max(Decimal("0"), round2(pre_discount - discount_amount))
        tax = round2(subtotal * tax_rate)
        total = subtotal + tax

        paid: Money | None = None
        change: Money | None = None
        if tender is Tender.CASH:
            paid = amount_paid if amount_paid is not None else Money(total)
            if paid.amount < total:
                raise ValidationError(
                    f"Cash paid {paid} is less than total {Money(total)}"
                )
            change = Money(round2(paid.amount - total))

        return Transaction(
            id=txn_id,
            timestamp=timestamp or datetime.now(timezone.utc),
            subtotal=Money(subtotal),
            tax=Money(tax),
            total=Money(total),
            tender=tender,
            lines=tuple(deepcopy(lines)),
            amount_paid=paid,
            change=change,
            discount=discount,
        )

    # --- Computed properties --------------------------------------------------

    @property
    def cost_of_goods(self) -> Money:
        result = Money.zero()
        for line in self.lines:
            result = result + line.line_cost
        return result
