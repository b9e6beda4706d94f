"""Cart aggregate — the in-progress, uncommitted lines of the current sale.

Lines are snapshots: name, price, cost and image are copied from the
catalog when the line is created and never re-read afterwards.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass

from pos.domain.exceptions import ValidationError
from pos.domain.model.item import Item
from pos.domain.model.value_objects import Money


@dataclass
class LineItem:
    """Captures an item's price and cost at the time it was rung up."""

    item_id: str
    name: str
    unit_price: Money  # snapshot
    unit_cost: Money  # snapshot
    qty: int
    size: str | None = None
    image_url: str | None = None

    @property
    def merge_key(self) -> tuple[str, str, Money]:
        return (self.item_id, self.size or "", self.unit_price)

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.qty

    @property
    def line_cost(self) -> Money:
        return self.unit_cost * self.qty

    @staticmethod
    def from_item(item: Item, qty: int = 1, size: str | None = None) -> LineItem:
        """Build a snapshot line for ``item``.

        Sized items default to their first size when none is given.
        """
        if item.sizes:
            if size is None:
                size = item.sizes[0].size
            elif item.find_size(size) is None:
                raise ValidationError(f"Item '{item.name}' has no size {size!r}")
        else:
            size = None
        return LineItem(
            item_id=item.id,
            name=item.name,
            unit_price=item.price,
            unit_cost=item.cost,
            qty=qty,
            size=size,
            image_url=item.image_url,
        )


def _check_qty(qty: int) -> None:
    if not isinstance(qty, int) or isinstance(qty, bool):
        raise ValidationError(f"Quantity must be an integer, got {type(qty).__name__}")


class Cart:
    """Ordered list of LineItems with merge-on-add semantics.

    Invariants:
    - every line has a positive quantity
    - no two lines share a ``merge_key``
    """

    def __init__(self, lines: list[LineItem] | None = None) -> None:
        self._lines: list[LineItem] = []
        for line in lines or []:
            self.add(line)

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return bool(self._lines)

    @property
    def lines(self) -> list[LineItem]:
        """Independent copies of the current lines."""
        return deepcopy(self._lines)

    @property
    def subtotal(self) -> Money:
        """Pre-discount, pre-tax total of the cart."""
        result = Money.zero()
        for line in self._lines:
            result = result + line.line_total
        return result

    # --- Mutations ------------------------------------------------------------

    def add(self, line: LineItem) -> None:
        """Add a line, folding it into an existing line with the same key."""
        _check_qty(line.qty)
        if line.qty <= 0:
            raise ValidationError("Quantity must be positive")
        for existing in self._lines:
            if existing.merge_key == line.merge_key:
                existing.qty += line.qty
                return
        self._lines.append(deepcopy(line))

    def set_qty(self, index: int, qty: int) -> bool:
        """Set a line's quantity; zero or less removes the line.

        Returns False when ``index`` is out of range.
        """
        _check_qty(qty)
        if not 0 <= index < len(self._lines):
            return False
        if qty <= 0:
            del self._lines[index]
        else:
            self._lines[index].qty = qty
        return True

    def remove(self, index: int) -> bool:
        if not 0 <= index < len(self._lines):
            return False
        del self._lines[index]
        return True

    def remove_item(self, item_id: str) -> int:
        """Drop every line referencing ``item_id``; returns how many went."""
        before = len(self._lines)
        self._lines = [line for line in self._lines if line.item_id != item_id]
        return before - len(self._lines)

    def clear(self) -> None:
        self._lines = []
