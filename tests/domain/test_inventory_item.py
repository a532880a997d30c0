"""Domain tests for the InventoryItem aggregate."""

import pytest
from marketplace.errors import InsufficientStock, ProductUnavailable
from marketplace.inventory.events import (
    InventoryItemRegistered,
    LowStockDetected,
    StockReleased,
    StockReserved,
)
from marketplace.inventory.item import InventoryItem, ProductStatus
from protean.exceptions import ValidationError


def _make_item(**overrides):
    defaults = {
        "product_id": "prod-001",
        "vendor_id": "vendor-001",
        "name": "Desk Lamp",
        "price": 24.5,
        "stock_quantity": 20,
    }
    defaults.update(overrides)
    item = InventoryItem.register(**defaults)
    item._events.clear()
    return item


class TestRegistration:
    def test_register_uses_product_id_as_identity(self):
        item = InventoryItem.register(product_id="prod-009", vendor_id="v-1", name="Mug", price=8.0)
        assert item.id == "prod-009"
        assert item.status == ProductStatus.ACTIVE.value
        assert item.sold_count == 0

    def test_register_raises_event(self):
        item = InventoryItem.register(product_id="prod-009", vendor_id="v-1", name="Mug", price=8.0)
        assert isinstance(item._events[0], InventoryItemRegistered)


class TestEnsurePurchasable:
    def test_passes_within_stock(self):
        _make_item(stock_quantity=5).ensure_purchasable(5)

    def test_insufficient_stock_carries_available(self):
        item = _make_item(stock_quantity=3)
        with pytest.raises(InsufficientStock) as exc:
            item.ensure_purchasable(5)
        assert exc.value.available == 3
        assert exc.value.requested == 5

    @pytest.mark.parametrize("status", ["DRAFT", "INACTIVE", "OUT_OF_STOCK", "DISCONTINUED"])
    def test_only_active_products_are_purchasable(self, status):
        item = _make_item(status=status)
        with pytest.raises(ProductUnavailable):
            item.ensure_purchasable(1)

    def test_insufficient_stock_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            _make_item(stock_quantity=0).ensure_purchasable(1)


class TestReserveAndRelease:
    def test_reserve_moves_stock_to_sold(self):
        item = _make_item(stock_quantity=20)
        item.reserve(3, order_id="ord-1")
        assert item.stock_quantity == 17
        assert item.sold_count == 3
        assert isinstance(item._events[0], StockReserved)

    def test_reserve_more_than_available_changes_nothing(self):
        item = _make_item(stock_quantity=2)
        with pytest.raises(InsufficientStock):
            item.reserve(3, order_id="ord-1")
        assert item.stock_quantity == 2
        assert item.sold_count == 0

    def test_release_is_exact_inverse_of_reserve(self):
        item = _make_item(stock_quantity=20)
        item.reserve(4, order_id="ord-1")
        item.release(4, order_id="ord-1")
        assert item.stock_quantity == 20
        assert item.sold_count == 0
        assert isinstance(item._events[-1], StockReleased)

    def test_low_stock_detected_at_threshold(self):
        item = _make_item(stock_quantity=12)
        item.reserve(2, order_id="ord-1")
        assert item.is_low_stock
        assert any(isinstance(e, LowStockDetected) for e in item._events)

    def test_no_low_stock_event_above_threshold(self):
        item = _make_item(stock_quantity=50)
        item.reserve(1, order_id="ord-1")
        assert not any(isinstance(e, LowStockDetected) for e in item._events)


class TestDetails:
    def test_receive_stock(self):
        item = _make_item(stock_quantity=1)
        item.receive_stock(9)
        assert item.stock_quantity == 10

    def test_update_price_and_status(self):
        item = _make_item()
        item.update_details(price=19.999, status="INACTIVE")
        assert item.price == 20.0
        assert item.status == ProductStatus.INACTIVE.value
        assert not item.is_purchasable

    def test_unknown_status_rejected(self):
        item = _make_item()
        with pytest.raises(ValidationError):
            item.update_details(status="GONE")
