"""Wire codec between domain objects and their JSON shapes.

The JSON layout is shared by the persisted blobs and the backup export.
Field names are camelCase, currency is a JSON number and optional fields
are omitted when empty.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, TypeVar

from pos.domain.exceptions import DomainException, ImportFormatError
from pos.domain.model.cart import LineItem
from pos.domain.model.item import DEFAULT_LOW_STOCK_THRESHOLD, Item, SizeStock
from pos.domain.model.settings import Settings
from pos.domain.model.transaction import Discount, DiscountKind, Tender, Transaction
from pos.domain.model.value_objects import Money, to_decimal

T = TypeVar("T")


def _num(value: Decimal) -> float | int:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _money(raw: Any) -> Money:
    return Money(to_decimal(raw))


def _opt_str(raw: dict, key: str) -> str | None:
    value = raw.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value


def _int(raw: Any, what: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TypeError(f"{what} must be an integer")
    if isinstance(raw, float) and (not math.isfinite(raw) or not raw.is_integer()):
        raise TypeError(f"{what} must be an integer")
    return int(raw)


# --- Items -------------------------------------------------------------------


def item_to_raw(item: Item) -> dict:
    raw: dict[str, Any] = {
        "id": item.id,
        "name": item.name,
        "price": _num(item.price.amount),
        "cost": _num(item.cost.amount),
    }
    if item.vendor:
        raw["vendor"] = item.vendor
    if item.image_url:
        raw["imageUrl"] = item.image_url
    if item.sizes:
        raw["sizes"] = [{"size": s.size, "stock": s.stock} for s in item.sizes]
    if item.tags:
        raw["tags"] = list(item.tags)
    raw["lowStockThreshold"] = item.low_stock_threshold
    return raw


def item_from_raw(raw: dict) -> Item:
    threshold = raw.get("lowStockThreshold")
    tags = raw.get("tags") or []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise TypeError("tags must be a list of strings")
    return Item(
        id=str(raw["id"]),
        name=str(raw["name"]),
        price=_money(raw["price"]),
        cost=_money(raw.get("cost", 0)),
        vendor=_opt_str(raw, "vendor"),
        image_url=_opt_str(raw, "imageUrl"),
        sizes=[
            SizeStock(size=str(s["size"]), stock=_int(s.get("stock", 0), "stock"))
            for s in raw.get("sizes") or []
        ],
        tags=list(tags),
        low_stock_threshold=(
            DEFAULT_LOW_STOCK_THRESHOLD if threshold is None
            else _int(threshold, "lowStockThreshold")
        ),
    )


# --- Lines -------------------------------------------------------------------


def line_to_raw(line: LineItem) -> dict:
    raw: dict[str, Any] = {
        "itemId": line.item_id,
        "name": line.name,
        "qty": line.qty,
        "unitPrice": _num(line.unit_price.amount),
        "unitCost": _num(line.unit_cost.amount),
    }
    if line.size:
        raw["size"] = line.size
    if line.image_url:
        raw["imageUrl"] = line.image_url
    return raw


def line_from_raw(raw: dict) -> LineItem:
    qty = _int(raw["qty"], "qty")
    if qty <= 0:
        raise ValueError(f"qty must be positive, got {qty}")
    return LineItem(
        item_id=str(raw["itemId"]),
        name=str(raw["name"]),
        unit_price=_money(raw["unitPrice"]),
        unit_cost=_money(raw.get("unitCost", 0)),
        qty=qty,
        size=_opt_str(raw, "size"),
        image_url=_opt_str(raw, "imageUrl"),
    )


# --- Transactions ------------------------------------------------------------


def transaction_to_raw(txn: Transaction) -> dict:
    raw: dict[str, Any] = {
        "id": txn.id,
        "timestamp": txn.timestamp.isoformat(),
        "subtotal": _num(txn.subtotal.amount),
        "tax": _num(txn.tax.amount),
        "total": _num(txn.total.amount),
        "tender": txn.tender.value,
    }
    if txn.amount_paid is not None:
        raw["amountPaid"] = _num(txn.amount_paid.amount)
    if txn.change is not None:
        raw["change"] = _num(txn.change.amount)
    raw["lines"] = [line_to_raw(line) for line in txn.lines]
    raw["discount"] = (
        {"type": txn.discount.kind.value, "value": _num(txn.discount.value)}
        if txn.discount else None
    )
    return raw


def _parse_timestamp(value: str) -> datetime:
    # JavaScript ISO strings end in "Z", which older fromisoformat rejects.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def transaction_from_raw(raw: dict) -> Transaction:
    discount_raw = raw.get("discount")
    discount = None
    if discount_raw:
        discount = Discount(
            kind=DiscountKind(discount_raw["type"]),
            value=to_decimal(discount_raw["value"]),
        )
    paid = raw.get("amountPaid")
    change = raw.get("change")
    return Transaction(
        id=str(raw["id"]),
        timestamp=_parse_timestamp(raw["timestamp"]),
        subtotal=_money(raw["subtotal"]),
        tax=_money(raw.get("tax", 0)),
        total=_money(raw["total"]),
        tender=Tender(raw["tender"]),
        lines=tuple(line_from_raw(line) for line in raw.get("lines") or []),
        amount_paid=_money(paid) if paid is not None else None,
        change=_money(change) if change is not None else None,
        discount=discount,
    )


# --- Settings ----------------------------------------------------------------


def settings_to_raw(settings: Settings) -> dict:
    return {"taxRate": _num(settings.tax_rate)}


def settings_from_raw(raw: dict) -> Settings:
    rate = to_decimal(raw.get("taxRate", 0), "tax rate")
    if rate < 0:
        raise ValueError(f"taxRate cannot be negative, got {rate}")
    return Settings(tax_rate=rate)


# --- Collections -------------------------------------------------------------


def decode(raw: Any, decoder: Callable[[dict], T], what: str) -> T:
    """Run ``decoder`` on one JSON object, normalising shape errors."""
    if not isinstance(raw, dict):
        raise ImportFormatError(f"{what} must be a JSON object")
    try:
        return decoder(raw)
    except (KeyError, TypeError, ValueError, AttributeError, DomainException) as exc:
        raise ImportFormatError(f"Malformed {what}: {exc}") from exc


def decode_list(raw: Any, decoder: Callable[[dict], T], what: str) -> list[T]:
    if not isinstance(raw, list):
        raise ImportFormatError(f"{what} must be a JSON array")
    return [decode(entry, decoder, what) for entry in raw]
