"""Order aggregate — the record of a completed checkout.

Items snapshot the catalog at purchase time (name, sku, image, vendor, price)
and are immutable apart from their fulfillment status. Totals are computed
once from the items when the order is placed.

Status moves are described by explicit transition tables. Cancellation and the
payment-driven moves are enforced against the order table; administrators may
set any known status, and the table only tells them whether the move is
unusual.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidState, OrderNotFound
from marketplace.order.events import (
    ItemFulfillmentUpdated,
    OrderAwaitingPayment,
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPlaced,
    OrderProcessing,
    OrderStatusChanged,
    TrackingUpdated,
)
from marketplace.order.snapshots import order_snapshot


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"
    RETURNED = "RETURNED"


class FulfillmentStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.REFUNDED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
    OrderStatus.RETURNED: set(),
}

FULFILLMENT_TRANSITIONS = {
    FulfillmentStatus.PENDING: {FulfillmentStatus.PROCESSING, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PROCESSING: {FulfillmentStatus.SHIPPED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.SHIPPED: {FulfillmentStatus.DELIVERED, FulfillmentStatus.RETURNED},
    FulfillmentStatus.DELIVERED: {FulfillmentStatus.RETURNED},
    FulfillmentStatus.CANCELLED: set(),
    FulfillmentStatus.RETURNED: set(),
}

CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS[current]


def can_fulfill(current: FulfillmentStatus, target: FulfillmentStatus) -> bool:
    return target in FULFILLMENT_TRANSITIONS[current]


def parse_order_status(value) -> OrderStatus:
    """Case-insensitive lookup of an order status name."""
    try:
        return OrderStatus[str(value).strip().upper()]
    except KeyError:
        raise ValidationError({"status": [f"Unknown order status: {value}"]}) from None


def parse_fulfillment_status(value) -> FulfillmentStatus:
    try:
        return FulfillmentStatus[str(value).strip().upper()]
    except KeyError:
        raise ValidationError({"status": [f"Unknown fulfillment status: {value}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class Address:
    full_name = String(max_length=200)
    phone = String(max_length=30)
    email = String(max_length=254)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    product_name = String(required=True, max_length=200)
    product_sku = String(max_length=100)
    product_image = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total_price = Float(required=True)
    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.PENDING.value)

    @staticmethod
    def price_for(unit_price, quantity, discount_amount=0.0, tax_amount=0.0) -> float:
        return round(unit_price * quantity - discount_amount + tax_amount, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    user_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total_amount = Float(default=0.0)
    coupon_code = String(max_length=50)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    notes = Text()
    tracking_number = String(max_length=100)
    shipping_carrier = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        order_number,
        lines,
        shipping_address,
        billing_address=None,
        notes=None,
        coupon_code=None,
        discount_amount=0.0,
        shipping_amount=0.0,
        tax_amount=0.0,
    ):
        """Create a PENDING order from snapshotted line dicts.

        Each line carries product_id, vendor_id, product_name, product_sku,
        product_image, quantity and unit_price.
        """
        now = datetime.now(UTC)
        order = cls(
            user_id=user_id,
            order_number=order_number,
            status=OrderStatus.PENDING.value,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            notes=notes,
            coupon_code=coupon_code,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderItem(
                    product_id=line["product_id"],
                    vendor_id=line["vendor_id"],
                    product_name=line["product_name"],
                    product_sku=line.get("product_sku"),
                    product_image=line.get("product_image"),
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                    total_price=OrderItem.price_for(line["unit_price"], line["quantity"]),
                    fulfillment_status=FulfillmentStatus.PENDING.value,
                )
            )
        order._calculate_totals(shipping_amount, tax_amount, discount_amount)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(order.user_id),
                total_amount=order.total_amount,
                snapshot=json.dumps(order_snapshot(order)),
                placed_at=now,
            )
        )
        return order

    def _calculate_totals(self, shipping_amount, tax_amount, discount_amount):
        self.subtotal = round(sum(item.total_price for item in self.items), 2)
        self.shipping_amount = round(shipping_amount or 0.0, 2)
        self.tax_amount = round(tax_amount or 0.0, 2)
        # A coupon never takes the order below zero
        self.discount_amount = round(min(discount_amount or 0.0, self.subtotal), 2)
        self.total_amount = round(
            self.subtotal + self.shipping_amount + self.tax_amount - self.discount_amount,
            2,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def item(self, item_id):
        return next((i for i in self.items if str(i.id) == str(item_id)), None)

    @property
    def vendor_ids(self) -> list[str]:
        return sorted({str(item.vendor_id) for item in self.items})

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _transition(self, target: OrderStatus):
        current = OrderStatus(self.status)
        if not can_transition(current, target):
            raise InvalidState({"status": [f"Cannot transition from {current.value} to {target.value}"]})
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def confirm_payment_started(self, payment_id):
        """PENDING -> CONFIRMED when a payment is initiated."""
        if self.status != OrderStatus.PENDING.value:
            raise InvalidState({"status": [f"Payment can only be started for a PENDING order, not {self.status}"]})
        self._transition(OrderStatus.CONFIRMED)
        self.raise_(OrderConfirmed(order_id=str(self.id), payment_id=str(payment_id)))

    def start_processing(self, payment_id):
        """CONFIRMED -> PROCESSING when the payment completes."""
        self._transition(OrderStatus.PROCESSING)
        self.raise_(OrderProcessing(order_id=str(self.id), payment_id=str(payment_id)))

    def await_payment(self, payment_id, reason=None):
        """CONFIRMED -> PENDING when the payment fails."""
        self._transition(OrderStatus.PENDING)
        self.raise_(OrderAwaitingPayment(order_id=str(self.id), payment_id=str(payment_id), reason=reason))

    def cancel(self, cancelled_by):
        """Cancel the order and every item. Stock is released by the caller."""
        current = OrderStatus(self.status)
        if current not in CANCELLABLE_STATUSES:
            raise InvalidState({"status": [f"Order cannot be cancelled in status {current.value}"]})

        for item in self.items:
            item.fulfillment_status = FulfillmentStatus.CANCELLED.value
        self._transition(OrderStatus.CANCELLED)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                cancelled_by=str(cancelled_by),
                cancelled_at=self.updated_at,
            )
        )

    def set_status(self, target: OrderStatus):
        """Administrative status change; not checked against the table."""
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                status=target.value,
            )
        )
        if target == OrderStatus.DELIVERED and previous != OrderStatus.DELIVERED.value:
            self.raise_(
                OrderDelivered(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    user_id=str(self.user_id),
                    snapshot=json.dumps(order_snapshot(self)),
                    delivered_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Shipping details
    # -------------------------------------------------------------------
    def update_tracking(self, tracking_number, shipping_carrier=None):
        self.tracking_number = tracking_number
        if shipping_carrier is not None:
            self.shipping_carrier = shipping_carrier
        self.updated_at = datetime.now(UTC)
        self.raise_(
            TrackingUpdated(
                order_id=str(self.id),
                tracking_number=tracking_number,
                shipping_carrier=self.shipping_carrier,
            )
        )

    def update_item_fulfillment(self, item_id, target: FulfillmentStatus):
        item = self.item(item_id)
        if item is None:
            raise ValidationError({"item_id": [f"Item {item_id} is not part of order {self.order_number}"]})

        current = FulfillmentStatus(item.fulfillment_status)
        if not can_fulfill(current, target):
            raise InvalidState({"fulfillment_status": [f"Cannot transition from {current.value} to {target.value}"]})

        item.fulfillment_status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            ItemFulfillmentUpdated(
                order_id=str(self.id),
                item_id=str(item.id),
                previous_status=current.value,
                status=target.value,
            )
        )


@marketplace.repository(part_of=Order)
class OrderRepository:
    def by_number(self, order_number) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return self.get(orders[0].id) if orders else None

    def page(self, user_id=None, status=None, page=0, size=20):
        """Newest-first page of orders, optionally for one user and/or one status."""
        filters = {}
        if user_id is not None:
            filters["user_id"] = str(user_id)
        if status is not None:
            filters["status"] = status

        return self._dao.query.filter(**filters).order_by("-created_at").offset(page * size).limit(size).all()


def load_order(order_id) -> Order:
    """Fetch an order, translating a miss into ``OrderNotFound``."""
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise OrderNotFound(order_id) from exc
