"""Domain tests for the Order aggregate and its transition tables."""

import json

import pytest
from marketplace.errors import InvalidState
from marketplace.order.events import (
    ItemFulfillmentUpdated,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
    OrderStatusChanged,
)
from marketplace.order.order import (
    Address,
    FulfillmentStatus,
    Order,
    OrderStatus,
    can_fulfill,
    can_transition,
    parse_fulfillment_status,
    parse_order_status,
)
from marketplace.order.snapshots import items_by_vendor
from protean.exceptions import ValidationError


def _address():
    return Address(
        full_name="Asha Rao",
        email="asha@example.com",
        street="123 Main St",
        city="Springfield",
        postal_code="62701",
        country="US",
    )


def _line(product_id="prod-x", vendor_id="vendor-001", quantity=1, unit_price=10.0):
    return {
        "product_id": product_id,
        "vendor_id": vendor_id,
        "product_name": f"Product {product_id}",
        "product_sku": f"SKU-{product_id}",
        "product_image": None,
        "quantity": quantity,
        "unit_price": unit_price,
    }


def _place(lines=None, **kwargs):
    return Order.place(
        user_id="user-001",
        order_number="ORD-20240101000000-ABCDEF12",
        lines=lines or [_line(quantity=2), _line("prod-y", "vendor-002", 1, 25.0)],
        shipping_address=_address(),
        **kwargs,
    )


class TestPlacement:
    def test_totals_are_computed_from_items(self):
        order = _place()
        assert order.subtotal == 45.0
        assert order.total_amount == 45.0
        assert order.status == OrderStatus.PENDING.value

    def test_item_totals(self):
        order = _place()
        totals = sorted(item.total_price for item in order.items)
        assert totals == [20.0, 25.0]

    def test_every_item_starts_pending(self):
        order = _place()
        assert {item.fulfillment_status for item in order.items} == {FulfillmentStatus.PENDING.value}

    def test_discount_shipping_and_tax(self):
        order = _place(discount_amount=5.0, shipping_amount=4.99, tax_amount=1.01)
        assert order.total_amount == 46.0

    def test_discount_is_clamped_to_subtotal(self):
        order = _place(lines=[_line(unit_price=10.0)], discount_amount=25.0)
        assert order.discount_amount == 10.0
        assert order.total_amount == 0.0

    def test_billing_defaults_to_shipping(self):
        order = _place()
        assert order.billing_address == order.shipping_address

    def test_placed_event_carries_snapshot(self):
        order = _place()
        event = order._events[-1]
        assert isinstance(event, OrderPlaced)
        snapshot = json.loads(event.snapshot)
        assert snapshot["order_number"] == order.order_number
        assert len(snapshot["items"]) == 2

    def test_vendor_ids(self):
        assert _place().vendor_ids == ["vendor-001", "vendor-002"]

    def test_items_by_vendor(self):
        order = _place(lines=[_line("a", "v1"), _line("b", "v2"), _line("c", "v1")])
        snapshot = json.loads(order._events[-1].snapshot)
        grouped = items_by_vendor(snapshot)
        assert [item["product_id"] for item in grouped["v1"]] == ["a", "c"]
        assert [item["product_id"] for item in grouped["v2"]] == ["b"]


class TestTransitionTables:
    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.PENDING),
            (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.RETURNED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.SHIPPED),
            (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.RETURNED),
            (OrderStatus.CANCELLED, OrderStatus.PENDING),
        ],
    )
    def test_disallowed(self, current, target):
        assert not can_transition(current, target)

    def test_terminal_statuses_have_no_exits(self):
        for status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED, OrderStatus.RETURNED):
            assert not any(can_transition(status, target) for target in OrderStatus)

    def test_fulfillment_table(self):
        assert can_fulfill(FulfillmentStatus.PENDING, FulfillmentStatus.PROCESSING)
        assert can_fulfill(FulfillmentStatus.DELIVERED, FulfillmentStatus.RETURNED)
        assert not can_fulfill(FulfillmentStatus.PENDING, FulfillmentStatus.SHIPPED)
        assert not can_fulfill(FulfillmentStatus.CANCELLED, FulfillmentStatus.PENDING)


class TestStatusParsing:
    @pytest.mark.parametrize("value", ["shipped", "SHIPPED", " Shipped "])
    def test_case_insensitive(self, value):
        assert parse_order_status(value) == OrderStatus.SHIPPED

    def test_unknown_order_status(self):
        with pytest.raises(ValidationError):
            parse_order_status("LOST")

    def test_fulfillment_status(self):
        assert parse_fulfillment_status("delivered") == FulfillmentStatus.DELIVERED
        with pytest.raises(ValidationError):
            parse_fulfillment_status("teleported")


class TestPaymentDrivenMoves:
    def test_confirm_then_process(self):
        order = _place()
        order.confirm_payment_started("pay-1")
        assert order.status == OrderStatus.CONFIRMED.value
        order.start_processing("pay-1")
        assert order.status == OrderStatus.PROCESSING.value

    def test_failed_payment_returns_order_to_pending(self):
        order = _place()
        order.confirm_payment_started("pay-1")
        order.await_payment("pay-1", reason="Card declined")
        assert order.status == OrderStatus.PENDING.value

    def test_payment_cannot_start_twice(self):
        order = _place()
        order.confirm_payment_started("pay-1")
        with pytest.raises(InvalidState):
            order.confirm_payment_started("pay-1")


class TestCancellation:
    @pytest.mark.parametrize("confirm", [False, True])
    def test_pending_and_confirmed_orders_cancel(self, confirm):
        order = _place()
        if confirm:
            order.confirm_payment_started("pay-1")
        order.cancel(cancelled_by="user-001")
        assert order.status == OrderStatus.CANCELLED.value
        assert {item.fulfillment_status for item in order.items} == {FulfillmentStatus.CANCELLED.value}
        assert isinstance(order._events[-1], OrderCancelled)

    def test_processing_order_cannot_cancel(self):
        order = _place()
        order.confirm_payment_started("pay-1")
        order.start_processing("pay-1")
        with pytest.raises(InvalidState):
            order.cancel(cancelled_by="user-001")
        assert order.status == OrderStatus.PROCESSING.value

    def test_cancel_twice_fails(self):
        order = _place()
        order.cancel(cancelled_by="user-001")
        with pytest.raises(InvalidState):
            order.cancel(cancelled_by="user-001")


class TestAdministrativeStatus:
    def test_set_status_records_previous(self):
        order = _place()
        order.set_status(OrderStatus.SHIPPED)
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert event.previous_status == "PENDING"
        assert event.status == "SHIPPED"

    def test_delivered_raises_delivery_event_once(self):
        order = _place()
        order.set_status(OrderStatus.DELIVERED)
        order.set_status(OrderStatus.DELIVERED)
        delivered = [e for e in order._events if isinstance(e, OrderDelivered)]
        assert len(delivered) == 1

    def test_tracking(self):
        order = _place()
        order.update_tracking("1Z999", "UPS")
        order.update_tracking("1Z998")
        assert order.tracking_number == "1Z998"
        assert order.shipping_carrier == "UPS"


class TestItemFulfillment:
    def test_legal_move(self):
        order = _place()
        item = order.items[0]
        order.update_item_fulfillment(item.id, FulfillmentStatus.PROCESSING)
        assert item.fulfillment_status == FulfillmentStatus.PROCESSING.value
        assert isinstance(order._events[-1], ItemFulfillmentUpdated)

    def test_illegal_move(self):
        order = _place()
        with pytest.raises(InvalidState):
            order.update_item_fulfillment(order.items[0].id, FulfillmentStatus.DELIVERED)

    def test_unknown_item(self):
        order = _place()
        with pytest.raises(ValidationError):
            order.update_item_fulfillment("missing", FulfillmentStatus.PROCESSING)
