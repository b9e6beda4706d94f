"""Integration tests for PosStore against an in-memory blob store."""

import json
from decimal import Decimal

import pytest

from pos.application.dto import SaleOptions
from pos.application.store import PosStore, new_id
from pos.domain.exceptions import ValidationError
from pos.domain.model.cart import LineItem
from pos.domain.model.item import SizeStock
from pos.domain.model.transaction import Discount, DiscountKind, Tender
from pos.domain.model.value_objects import Money
from tests.fakes import FakeBlobStore, FakeClock, SequentialIds


def _setup() -> tuple[PosStore, FakeBlobStore]:
    blobs = FakeBlobStore()
    store = PosStore(blobs, id_factory=SequentialIds(), clock=FakeClock())
    return store, blobs


def _line(store: PosStore, item_id: str, qty: int = 1, size: str | None = None) -> LineItem:
    return LineItem.from_item(store.get_item(item_id), qty=qty, size=size)


def _stocked_store() -> PosStore:
    store, _ = _setup()
    store.add_item("Item A", "10", "4", sizes=[SizeStock("M", 5), SizeStock("L", 2)])  # id1
    store.add_item("Item B", "5", "2")  # id2
    return store


class TestIdentifiers:

    def test_new_id_shape(self):
        ident = new_id()
        assert len(ident) == 8
        assert ident.isalnum() and ident == ident.lower()

    def test_new_ids_differ(self):
        assert len({new_id() for _ in range(200)}) == 200


class TestQueries:

    def test_empty_store(self):
        store, _ = _setup()
        assert store.get_items() == []
        assert store.get_cart() == []
        assert store.get_transactions() == []
        assert store.get_settings().tax_rate == Decimal("0")

    def test_items_are_defensive_copies(self):
        store = _stocked_store()
        items = store.get_items()
        items[0].name = "Hacked"
        items[0].sizes[0].stock = 999
        items.clear()
        fresh = store.get_items()
        assert fresh[0].name == "Item A"
        assert fresh[0].sizes[0].stock == 5

    def test_cart_is_defensive_copy(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id2"))
        store.get_cart()[0].qty = 40
        assert store.get_cart()[0].qty == 1

    def test_settings_is_defensive_copy(self):
        store, _ = _setup()
        store.get_settings().tax_rate = Decimal("0.5")
        assert store.get_settings().tax_rate == Decimal("0")


class TestSubscriptions:

    def test_listeners_called_in_registration_order(self):
        store, _ = _setup()
        calls = []
        store.subscribe_items(lambda: calls.append("first"))
        store.subscribe_items(lambda: calls.append("second"))
        store.add_item("X", "1")
        assert calls == ["first", "second"]

    def test_topics_are_independent(self):
        store, _ = _setup()
        calls = []
        store.subscribe_cart(lambda: calls.append("cart"))
        store.subscribe_settings(lambda: calls.append("settings"))
        store.add_item("X", "1")
        assert calls == []
        store.set_tax_rate("0.05")
        assert calls == ["settings"]

    def test_unsubscribe_removes_only_that_listener(self):
        store, _ = _setup()
        calls = []

        def listener():
            calls.append("dup")

        unsubscribe = store.subscribe_items(listener)
        store.subscribe_items(listener)
        unsubscribe()
        unsubscribe()
        store.add_item("X", "1")
        assert calls == ["dup"]

    def test_listener_sees_persisted_state(self):
        store, blobs = _setup()
        seen = []
        store.subscribe_items(lambda: seen.append(json.loads(blobs.blobs["items"])[0]["name"]))
        store.add_item("Persisted", "1")
        assert seen == ["Persisted"]

    def test_not_found_does_not_notify(self):
        store, _ = _setup()
        calls = []
        store.subscribe_items(lambda: calls.append("items"))
        store.subscribe_cart(lambda: calls.append("cart"))
        store.update_item("missing", {"name": "X"})
        store.delete_item("missing")
        store.undo_delete()
        store.set_cart_qty(3, 1)
        store.remove_cart_line(0)
        assert calls == []


class TestCatalog:

    def test_add_item_defaults(self):
        store, _ = _setup()
        store.add_item("Tee", "10.00", "4.00", vendor="SanMar", tags=["summer"])
        item = store.get_items()[0]
        assert item.id == "id1"
        assert item.price == Money.of("10")
        assert item.cost == Money.of("4")
        assert item.low_stock_threshold == 3
        assert item.tags == ["summer"]

    def test_update_item_merges_patch(self):
        store = _stocked_store()
        store.update_item("id2", {"price": "6.50", "vendor": "Acme"})
        item = store.get_item("id2")
        assert item.price == Money.of("6.50")
        assert item.vendor == "Acme"
        assert item.name == "Item B"

    def test_caller_size_objects_are_not_shared(self):
        store, _ = _setup()
        added = SizeStock("M", 5)
        store.add_item("Tee", "10", sizes=[added])
        added.stock = -3
        assert store.get_items()[0].sizes[0].stock == 5

        patched = SizeStock("L", 2)
        store.update_item("id1", {"sizes": [patched]})
        patched.stock = -1
        assert store.get_item("id1").sizes[0].stock == 2

    def test_malformed_sizes_patch_leaves_store_usable(self):
        store, blobs = _setup()
        store.add_item("Tee", "10", sizes=[SizeStock("M", 5)])
        with pytest.raises(ValidationError):
            store.update_item("id1", {"sizes": [{"size": "M", "stock": 5}]})
        assert store.get_item("id1").sizes == [SizeStock("M", 5)]
        store.add_item("Other", "1")
        assert [i["name"] for i in json.loads(blobs.blobs["items"])] == ["Tee", "Other"]

    def test_update_does_not_touch_cart_snapshot(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id2"))
        store.update_item("id2", {"price": "99"})
        assert store.get_cart()[0].unit_price == Money.of("5")

    def test_delete_removes_item_and_its_cart_lines(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id1", size="M"))
        store.add_to_cart(_line(store, "id2"))
        store.add_to_cart(_line(store, "id1", size="L"))
        store.delete_item("id1")
        assert [i.id for i in store.get_items()] == ["id2"]
        assert [l.item_id for l in store.get_cart()] == ["id2"]

    def test_delete_notifies_items_and_cart(self):
        store = _stocked_store()
        calls = []
        store.subscribe_items(lambda: calls.append("items"))
        store.subscribe_cart(lambda: calls.append("cart"))
        store.delete_item("id1")
        assert calls == ["items", "cart"]

    def test_delete_keeps_past_transactions(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id2"))
        store.complete_sale(SaleOptions(Tender.CARD))
        store.delete_item("id2")
        assert store.get_transactions()[0].lines[0].name == "Item B"

    def test_undo_restores_all_fields(self):
        store = _stocked_store()
        original = store.get_item("id1")
        store.delete_item("id1")
        assert store.can_undo
        store.undo_delete()
        assert store.get_item("id1") == original
        assert not store.can_undo

    def test_undo_appends_at_end(self):
        store = _stocked_store()
        store.delete_item("id1")
        store.undo_delete()
        assert [i.id for i in store.get_items()] == ["id2", "id1"]

    def test_second_delete_overwrites_undo_slot(self):
        store = _stocked_store()
        store.delete_item("id1")
        store.delete_item("id2")
        store.undo_delete()
        assert [i.id for i in store.get_items()] == ["id2"]
        store.undo_delete()
        assert [i.id for i in store.get_items()] == ["id2"]


class TestCart:

    def test_add_to_cart_merges(self):
        store = _stocked_store()
        for qty in (1, 2, 4):
            store.add_to_cart(_line(store, "id1", qty=qty, size="M"))
        cart = store.get_cart()
        assert len(cart) == 1
        assert cart[0].qty == 7

    def test_set_qty_zero_removes(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id2"))
        store.set_cart_qty(0, 0)
        assert store.get_cart() == []

    def test_set_qty(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id2"))
        store.set_cart_qty(0, 3)
        assert store.get_cart()[0].qty == 3

    def test_remove_and_clear(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id1"))
        store.add_to_cart(_line(store, "id2"))
        store.remove_cart_line(0)
        assert [l.item_id for l in store.get_cart()] == ["id2"]
        store.clear_cart()
        assert store.get_cart() == []

    def test_subtotal_preview(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id1", qty=2))
        store.add_to_cart(_line(store, "id2"))
        assert store.get_cart_subtotal() == Money.of("25")


class TestSettings:

    def test_set_tax_rate(self):
        store, _ = _setup()
        store.set_tax_rate(0.08)
        assert store.get_settings().tax_rate == Decimal("0.08")

    def test_negative_rate_clamped(self):
        store, _ = _setup()
        store.set_tax_rate("-0.2")
        assert store.get_settings().tax_rate == Decimal("0")

    def test_non_numeric_rate_rejected(self):
        store, _ = _setup()
        with pytest.raises(ValidationError):
            store.set_tax_rate("eight percent")


class TestCompleteSale:

    def _cart_store(self) -> PosStore:
        store = _stocked_store()
        store.set_tax_rate("0.08")
        store.add_to_cart(_line(store, "id1", qty=2, size="M"))
        store.add_to_cart(_line(store, "id2"))
        return store

    def test_cash_sale_example(self):
        store = self._cart_store()
        store.complete_sale(SaleOptions(Tender.CASH, amount_paid=Money.of("30")))
        txn = store.get_transactions()[0]
        assert txn.subtotal == Money.of("25.00")
        assert txn.tax == Money.of("2.00")
        assert txn.total == Money.of("27.00")
        assert txn.change == Money.of("3.00")
        assert txn.id == "id3"
        assert store.get_cart() == []

    def test_percent_discount_example(self):
        store = self._cart_store()
        store.complete_sale(
            SaleOptions(Tender.CARD, discount=Discount(DiscountKind.PERCENT, Decimal("10")))
        )
        txn = store.get_transactions()[0]
        assert (txn.subtotal, txn.tax, txn.total) == (
            Money.of("22.50"), Money.of("1.80"), Money.of("24.30"),
        )

    def test_uses_tax_rate_at_time_of_sale(self):
        store = self._cart_store()
        store.complete_sale(SaleOptions(Tender.CARD))
        store.set_tax_rate("0.5")
        assert store.get_transactions()[0].tax == Money.of("2.00")

    def test_decrements_sized_stock(self):
        store = self._cart_store()
        store.complete_sale(SaleOptions(Tender.CARD))
        assert store.get_item("id1").find_size("M").stock == 3
        assert store.get_item("id1").find_size("L").stock == 2

    def test_overselling_clamps_stock_at_zero(self):
        store = _stocked_store()
        store.add_to_cart(_line(store, "id1", qty=7, size="M"))
        store.complete_sale(SaleOptions(Tender.CARD))
        assert store.get_item("id1").find_size("M").stock == 0
        assert len(store.get_transactions()) == 1

    def test_sale_of_deleted_item_still_recorded(self):
        store = self._cart_store()
        line = _line(store, "id2")
        store.delete_item("id2")
        store.add_to_cart(line)
        store.complete_sale(SaleOptions(Tender.CARD))
        assert len(store.get_transactions()[0].lines) == 2

    def test_notifies_items_then_cart(self):
        store = self._cart_store()
        calls = []
        store.subscribe_items(lambda: calls.append("items"))
        store.subscribe_cart(lambda: calls.append("cart"))
        store.complete_sale(SaleOptions(Tender.CARD))
        assert calls == ["items", "cart"]

    def test_underpayment_changes_nothing(self):
        store = self._cart_store()
        with pytest.raises(ValidationError, match="less than total"):
            store.complete_sale(SaleOptions(Tender.CASH, amount_paid=Money.of("20")))
        assert store.get_transactions() == []
        assert len(store.get_cart()) == 2
        assert store.get_item("id1").find_size("M").stock == 5

    def test_empty_cart_rejected(self):
        store, _ = _setup()
        with pytest.raises(ValidationError, match="empty cart"):
            store.complete_sale(SaleOptions(Tender.CARD))

    def test_transactions_are_append_only_snapshots(self):
        store = self._cart_store()
        store.complete_sale(SaleOptions(Tender.CARD))
        store.update_item("id1", {"price": "50"})
        store.add_to_cart(_line(store, "id1", size="M"))
        store.complete_sale(SaleOptions(Tender.CARD))
        first, second = store.get_transactions()
        assert first.lines[0].unit_price == Money.of("10")
        assert second.lines[0].unit_price == Money.of("50")


class TestReload:

    def test_state_survives_new_store_instance(self):
        blobs = FakeBlobStore()
        store = PosStore(blobs, id_factory=SequentialIds(), clock=FakeClock())
        store.add_item("Tee", "10", "4", sizes=[SizeStock("M", 5)], tags=["new"])
        store.set_tax_rate("0.08")
        store.add_to_cart(_line(store, "id1", qty=2, size="M"))
        store.complete_sale(SaleOptions(Tender.CASH, amount_paid=Money.of("25")))
        store.add_to_cart(_line(store, "id1", size="M"))

        reloaded = PosStore(blobs)
        assert reloaded.get_items() == store.get_items()
        assert reloaded.get_cart() == store.get_cart()
        assert reloaded.get_transactions() == store.get_transactions()
        assert reloaded.get_settings() == store.get_settings()

    def test_undo_slot_is_not_persisted(self):
        blobs = FakeBlobStore()
        store = PosStore(blobs)
        store.add_item("Tee", "10")
        store.delete_item(store.get_items()[0].id)
        assert not PosStore(blobs).can_undo
