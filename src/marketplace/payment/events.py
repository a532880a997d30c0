"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentInitiated:
    """The first payment attempt for an order was started."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    payment_method = String(required=True)
    provider = String()


@marketplace.event(part_of="Payment")
class PaymentRetried:
    """A failed or cancelled payment was reset for another attempt."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    payment_method = String(required=True)
    provider = String()


@marketplace.event(part_of="Payment")
class PaymentCompleted:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String()
    failure_reason = String()


@marketplace.event(part_of="Payment")
class PaymentCancelled:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String()
