"""Domain events for the Order aggregate.

``OrderPlaced`` and ``OrderDelivered`` carry a JSON snapshot of the order so
that notification handlers never need to read the order back.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    total_amount = Float(required=True)
    snapshot = Text(required=True)  # JSON order snapshot
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderConfirmed:
    """A payment was started for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class OrderProcessing:
    """The order's payment completed."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class OrderAwaitingPayment:
    """The order's payment failed and the order is open for a retry."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier(required=True)
    reason = String()


@marketplace.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    """An administrator moved the order to another status."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    snapshot = Text(required=True)  # JSON order snapshot
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class TrackingUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    shipping_carrier = String()


@marketplace.event(part_of="Order")
class ItemFulfillmentUpdated:
    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
