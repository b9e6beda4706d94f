"""Item aggregate — a sellable catalog entry and its per-size stock.

Items live independently of carts and transactions. Cart and transaction
lines copy what they need from an item at the moment it is added, so
editing or deleting an item never changes what was already rung up.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from pos.domain.exceptions import ValidationError
from pos.domain.model.value_objects import Money

DEFAULT_LOW_STOCK_THRESHOLD = 3


@dataclass
class SizeStock:
    """Stock count for one size variant.

    Invariant: ``stock`` is never negative.
    """

    size: str
    stock: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.stock, int) or isinstance(self.stock, bool):
            raise ValidationError(
                f"Stock must be an integer, got {type(self.stock).__name__}"
            )
        if self.stock < 0:
            raise ValidationError(f"Stock for size {self.size!r} cannot be negative")

    def decrement(self, quantity: int) -> None:
        """Remove sold units. Never goes below zero and never fails."""
        self.stock = max(0, self.stock - quantity)


@dataclass
class Item:
    """A product in the catalog.

    This is an aggregate root: stock lives on its ``sizes`` and is only
    changed through the item. Kept as a mutable dataclass because price,
    cost and stock edits are legitimate mutations.
    """

    id: str
    name: str
    price: Money
    cost: Money
    vendor: str | None = None
    image_url: str | None = None
    sizes: list[SizeStock] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(item_id: str, name: str, price: Money, cost: Money, **extra: Any) -> Item:
        """Create a new catalog item, enforcing the basic invariants."""
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        item = Item(id=item_id, name=name.strip(), price=price, cost=cost)
        if extra:
            item.apply_patch(extra)
        return item

    # --- Mutations ------------------------------------------------------------

    def apply_patch(self, patch: Mapping[str, Any]) -> None:
        """Merge a partial update onto this item.

        Only known fields may be patched and ``id`` is immutable.
        """
        allowed = {f.name for f in fields(self)} - {"id"}
        unknown = set(patch) - allowed
        if "id" in unknown:
            raise ValidationError("Item id cannot be changed")
        if unknown:
            raise ValidationError(f"Unknown item field(s): {', '.join(sorted(unknown))}")

        if "name" in patch and not str(patch["name"] or "").strip():
            raise ValidationError("Item name is required")
        for key in ("price", "cost"):
            if key in patch and not isinstance(patch[key], Money):
                raise ValidationError(f"Item {key} must be Money")
        if "low_stock_threshold" in patch:
            threshold = patch["low_stock_threshold"]
            if not isinstance(threshold, int) or isinstance(threshold, bool):
                raise ValidationError("Low-stock threshold must be an integer")
        for key in ("vendor", "image_url"):
            if patch.get(key) is not None and not isinstance(patch[key], str):
                raise ValidationError(f"Item {key} must be a string")
        sizes = patch.get("sizes") or []
        if not all(isinstance(s, SizeStock) for s in sizes):
            raise ValidationError("Item sizes must be SizeStock entries")
        tags = patch.get("tags") or []
        if not all(isinstance(t, str) for t in tags):
            raise ValidationError("Item tags must be strings")

        for key, value in patch.items():
            if key == "sizes":
                # fresh copies, re-validated, so callers keep no handle on stock
                value = [SizeStock(s.size, s.stock) for s in sizes]
            elif key == "tags":
                value = list(tags)
            setattr(self, key, value)

    def sell(self, size: str, quantity: int) -> None:
        """Deduct sold units from the given size. Unknown sizes are ignored."""
        stock = self.find_size(size)
        if stock is not None:
            stock.decrement(quantity)

    # --- Queries --------------------------------------------------------------

    def find_size(self, size: str) -> SizeStock | None:
        for stock in self.sizes:
            if stock.size == size:
                return stock
        return None

    @property
    def total_stock(self) -> int | None:
        """Units on hand across all sizes, or None for unsized items."""
        if not self.sizes:
            return None
        return sum(s.stock for s in self.sizes)

    @property
    def is_low_stock(self) -> bool:
        return any(s.stock <= self.low_stock_threshold for s in self.sizes)
