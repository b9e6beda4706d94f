"""The point-of-sale store, sole owner of catalog, cart, settings and sales.

Consumers never touch the collections directly. Queries hand out deep
copies; mutators return None and announce changes on the ``items``,
``cart`` and ``settings`` topics once the new state has been written.
Consumers re-query after being notified.
"""

from __future__ import annotations

import json
import secrets
import string
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

import structlog

from pos.application import codec
from pos.application.dto import SaleOptions
from pos.application.notifier import Listener, Notifier, Unsubscribe
from pos.application.persistence import (
    CART_KEY,
    ITEMS_KEY,
    SETTINGS_KEY,
    TRANSACTIONS_KEY,
    PersistenceAdapter,
)
from pos.domain.exceptions import ImportFormatError, StorageError
from pos.domain.model.cart import Cart, LineItem
from pos.domain.model.item import Item
from pos.domain.model.settings import Settings
from pos.domain.model.transaction import Transaction
from pos.domain.model.value_objects import Money, to_decimal
from pos.domain.repository.blob_store import BlobStore

log = structlog.get_logger(__name__)

ITEMS_TOPIC = "items"
CART_TOPIC = "cart"
SETTINGS_TOPIC = "settings"

_ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 8


def new_id() -> str:
    """Random 8-character lowercase alphanumeric identifier."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PosStore:
    """Domain store for a single point-of-sale terminal.

    Construct one per application (or per test) with the blob store it
    should persist to. ``id_factory`` and ``clock`` exist so tests can pin
    identifiers and timestamps.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._persistence = PersistenceAdapter(blob_store)
        self._notifier = Notifier()
        self._new_id = id_factory
        self._clock = clock

        self._items: list[Item] = self._persistence.load(
            ITEMS_KEY, lambda raw: codec.decode_list(raw, codec.item_from_raw, "item"), list
        )
        self._cart = Cart(self._persistence.load(
            CART_KEY, lambda raw: codec.decode_list(raw, codec.line_from_raw, "cart line"), list
        ))
        self._transactions: list[Transaction] = self._persistence.load(
            TRANSACTIONS_KEY,
            lambda raw: codec.decode_list(raw, codec.transaction_from_raw, "transaction"),
            list,
        )
        self._settings: Settings = self._persistence.load(
            SETTINGS_KEY, lambda raw: codec.decode(raw, codec.settings_from_raw, "settings"), Settings
        )
        self._last_deleted: Item | None = None

    # --- Queries --------------------------------------------------------------

    def get_items(self) -> list[Item]:
        return deepcopy(self._items)

    def get_item(self, item_id: str) -> Item | None:
        item = self._find_item(item_id)
        return deepcopy(item) if item is not None else None

    def get_cart(self) -> list[LineItem]:
        return self._cart.lines

    def get_cart_subtotal(self) -> Money:
        return self._cart.subtotal

    def get_transactions(self) -> list[Transaction]:
        return deepcopy(self._transactions)

    def get_settings(self) -> Settings:
        return deepcopy(self._settings)

    @property
    def can_undo(self) -> bool:
        return self._last_deleted is not None

    @property
    def last_persist_error(self) -> StorageError | None:
        """The most recent write failure, cleared by the next good write."""
        return self._persistence.last_error

    # --- Subscriptions --------------------------------------------------------

    def subscribe_items(self, listener: Listener) -> Unsubscribe:
        return self._notifier.subscribe(ITEMS_TOPIC, listener)

    def subscribe_cart(self, listener: Listener) -> Unsubscribe:
        return self._notifier.subscribe(CART_TOPIC, listener)

    def subscribe_settings(self, listener: Listener) -> Unsubscribe:
        return self._notifier.subscribe(SETTINGS_TOPIC, listener)

    # --- Catalog --------------------------------------------------------------

    def add_item(
        self,
        name: str,
        price: Money | str | int | float,
        cost: Money | str | int | float = 0,
        **fields: Any,
    ) -> None:
        """Add a catalog item under a fresh identifier.

        Extra keyword fields: vendor, image_url, sizes, tags and
        low_stock_threshold (defaults to 3).
        """
        item = Item.create(self._new_id(), name, _as_money(price), _as_money(cost), **fields)
        self._items.append(item)
        self._commit_items()
        log.info("item.added", item_id=item.id, name=item.name)
        self._notifier.publish(ITEMS_TOPIC)

    def update_item(self, item_id: str, patch: Mapping[str, Any]) -> None:
        item = self._find_item(item_id)
        if item is None:
            log.debug("item.update_ignored", item_id=item_id)
            return
        patch = dict(patch)
        for key in ("price", "cost"):
            if key in patch:
                patch[key] = _as_money(patch[key])
        item.apply_patch(patch)
        self._commit_items()
        log.info("item.updated", item_id=item_id, fields=sorted(patch))
        self._notifier.publish(ITEMS_TOPIC)

    def delete_item(self, item_id: str) -> None:
        """Remove an item and any cart lines for it; keep it for undo."""
        item = self._find_item(item_id)
        if item is None:
            log.debug("item.delete_ignored", item_id=item_id)
            return
        self._items.remove(item)
        self._last_deleted = item
        purged = self._cart.remove_item(item_id)
        self._commit_items()
        self._commit_cart()
        log.info("item.deleted", item_id=item_id, cart_lines_removed=purged)
        self._notifier.publish(ITEMS_TOPIC)
        self._notifier.publish(CART_TOPIC)

    def undo_delete(self) -> None:
        """Restore the most recently deleted item, appended to the catalog."""
        if self._last_deleted is None:
            return
        item, self._last_deleted = self._last_deleted, None
        self._items.append(item)
        self._commit_items()
        log.info("item.restored", item_id=item.id)
        self._notifier.publish(ITEMS_TOPIC)

    # --- Cart -----------------------------------------------------------------

    def add_to_cart(self, line: LineItem) -> None:
        self._cart.add(line)
        self._commit_cart()
        self._notifier.publish(CART_TOPIC)

    def set_cart_qty(self, index: int, qty: int) -> None:
        if not self._cart.set_qty(index, qty):
            log.debug("cart.index_out_of_range", index=index)
            return
        self._commit_cart()
        self._notifier.publish(CART_TOPIC)

    def remove_cart_line(self, index: int) -> None:
        if not self._cart.remove(index):
            log.debug("cart.index_out_of_range", index=index)
            return
        self._commit_cart()
        self._notifier.publish(CART_TOPIC)

    def clear_cart(self) -> None:
        self._cart.clear()
        self._commit_cart()
        self._notifier.publish(CART_TOPIC)

    # --- Settings -------------------------------------------------------------

    def set_tax_rate(self, rate: Any) -> None:
        """Set the tax rate as a fraction; negatives are stored as zero."""
        self._settings.set_tax_rate(to_decimal(rate, "tax rate"))
        self._persistence.save(SETTINGS_KEY, codec.settings_to_raw(self._settings))
        log.info("settings.tax_rate", tax_rate=str(self._settings.tax_rate))
        self._notifier.publish(SETTINGS_TOPIC)

    # --- Sales ----------------------------------------------------------------

    def complete_sale(self, options: SaleOptions) -> None:
        """Ring up the cart as a transaction.

        Prices the cart at the current tax rate, deducts sold units from
        sized stock (never below zero), records the sale and empties the
        cart. Raises ValidationError, before changing anything, when the
        cart is empty or cash paid is short of the total.
        """
        txn = Transaction.create(
            txn_id=self._new_id(),
            lines=self._cart.lines,
            tax_rate=self._settings.tax_rate,
            tender=options.tender,
            amount_paid=options.amount_paid,
            discount=options.discount,
            timestamp=self._clock(),
        )

        for line in txn.lines:
            if not line.size:
                continue
            item = self._find_item(line.item_id)
            if item is not None:
                item.sell(line.size, line.qty)

        self._transactions.append(txn)
        self._persistence.save(
            TRANSACTIONS_KEY, [codec.transaction_to_raw(t) for t in self._transactions]
        )
        self._commit_items()
        log.info(
            "sale.completed",
            txn_id=txn.id,
            tender=txn.tender.value,
            total=str(txn.total.amount),
            lines=len(txn.lines),
        )
        self._notifier.publish(ITEMS_TOPIC)
        self.clear_cart()

    # --- Backup ---------------------------------------------------------------

    def export_all(self) -> str:
        """Serialize catalog, sales history and settings as one JSON document."""
        payload = {
            "items": [codec.item_to_raw(i) for i in self._items],
            "transactions": [codec.transaction_to_raw(t) for t in self._transactions],
            "settings": codec.settings_to_raw(self._settings),
        }
        return json.dumps(payload, indent=2)

    def import_all(self, text: str) -> None:
        """Replace state from an ``export_all`` document.

        Only the sections present in the document are replaced. The whole
        document is decoded before anything changes, so a malformed one
        raises ImportFormatError and leaves the store untouched.
        """
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise ImportFormatError(f"Backup is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ImportFormatError("Backup must be a JSON object")

        items = transactions = settings = None
        if "items" in payload:
            items = codec.decode_list(payload["items"], codec.item_from_raw, "item")
        if "transactions" in payload:
            transactions = codec.decode_list(
                payload["transactions"], codec.transaction_from_raw, "transaction"
            )
        if "settings" in payload:
            settings = codec.decode(payload["settings"], codec.settings_from_raw, "settings")

        if items is not None:
            self._items = items
            self._commit_items()
        if transactions is not None:
            self._transactions = transactions
            self._persistence.save(
                TRANSACTIONS_KEY, [codec.transaction_to_raw(t) for t in self._transactions]
            )
        if settings is not None:
            self._settings = settings
            self._persistence.save(SETTINGS_KEY, codec.settings_to_raw(self._settings))

        log.info(
            "backup.imported",
            items=len(self._items),
            transactions=len(self._transactions),
        )
        self._notifier.publish(ITEMS_TOPIC)
        self._notifier.publish(SETTINGS_TOPIC)

    # --- Internal helpers -----------------------------------------------------

    def _find_item(self, item_id: str) -> Item | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _commit_items(self) -> None:
        self._persistence.save(ITEMS_KEY, [codec.item_to_raw(i) for i in self._items])

    def _commit_cart(self) -> None:
        self._persistence.save(CART_KEY, [codec.line_to_raw(line) for line in self._cart.lines])


def _as_money(value: Money | str | int | float) -> Money:
    return value if isinstance(value, Money) else Money.of(value)
