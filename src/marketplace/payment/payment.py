"""Payment aggregate — the single money record for an order.

There is at most one payment per order. A failed or cancelled payment is
reset and reused for the next attempt instead of creating another row, so
the payment id stays stable across retries. The gateway is simulated: a
confirmation carries the transaction id and the raw gateway response.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidState, PaymentNotFound
from marketplace.payment.events import (
    PaymentCancelled,
    PaymentCompleted,
    PaymentFailed,
    PaymentInitiated,
    PaymentRetried,
)

DEFAULT_CURRENCY = "USD"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class PaymentMethod(Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    UPI = "UPI"
    NET_BANKING = "NET_BANKING"
    WALLET = "WALLET"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"


PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.PROCESSING,
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.PROCESSING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED},
    PaymentStatus.PARTIALLY_REFUNDED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING},
    PaymentStatus.CANCELLED: {PaymentStatus.PENDING},
    PaymentStatus.REFUNDED: set(),
}

RETRYABLE_STATUSES = {PaymentStatus.FAILED, PaymentStatus.CANCELLED}


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in PAYMENT_TRANSITIONS[current]


def default_currency() -> str:
    return current_domain.config.get("custom", {}).get("default_currency", DEFAULT_CURRENCY)


@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String(max_length=100)
    payment_method = String(required=True, choices=PaymentMethod)
    provider = String(max_length=50)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default=DEFAULT_CURRENCY)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    paid_at = DateTime()
    refunded_at = DateTime()
    refund_amount = Float()
    refund_reason = Text()
    failure_reason = Text()
    gateway_response = Text()  # Raw JSON from the gateway
    card_last_four = String(max_length=4)
    card_brand = String(max_length=30)
    billing_email = String(max_length=254)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def card_last_four_has_four_digits(self):
        if self.card_last_four and not (len(self.card_last_four) == 4 and self.card_last_four.isdigit()):
            raise ValidationError({"card_last_four": ["Card last four must be exactly 4 digits"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def initiate(
        cls,
        order_id,
        user_id,
        amount,
        payment_method,
        provider=None,
        currency=DEFAULT_CURRENCY,
        card_last_four=None,
        card_brand=None,
        billing_email=None,
    ):
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            user_id=user_id,
            amount=round(amount, 2),
            currency=currency,
            payment_method=payment_method,
            provider=provider,
            card_last_four=card_last_four,
            card_brand=card_brand,
            billing_email=billing_email,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                amount=payment.amount,
                currency=currency,
                payment_method=payment_method,
                provider=provider,
            )
        )
        return payment

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.COMPLETED.value

    @property
    def is_refunded(self) -> bool:
        return self.status in (PaymentStatus.REFUNDED.value, PaymentStatus.PARTIALLY_REFUNDED.value)

    @property
    def is_retryable(self) -> bool:
        return PaymentStatus(self.status) in RETRYABLE_STATUSES

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _transition(self, target: PaymentStatus):
        current = PaymentStatus(self.status)
        if not can_transition(current, target):
            raise InvalidState({"status": [f"Cannot transition payment from {current.value} to {target.value}"]})
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def _ensure_pending(self):
        if self.status != PaymentStatus.PENDING.value:
            raise InvalidState({"status": [f"Payment is {self.status}, expected PENDING"]})

    def retry(
        self,
        amount,
        payment_method,
        provider=None,
        card_last_four=None,
        card_brand=None,
        billing_email=None,
    ):
        """Reset a failed or cancelled payment for another attempt."""
        self._transition(PaymentStatus.PENDING)
        self.amount = round(amount, 2)
        self.payment_method = payment_method
        self.provider = provider
        self.card_last_four = card_last_four
        self.card_brand = card_brand
        self.billing_email = billing_email
        self.transaction_id = None
        self.failure_reason = None
        self.gateway_response = None

        self.raise_(
            PaymentRetried(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                amount=self.amount,
                payment_method=payment_method,
                provider=provider,
            )
        )

    def complete(self, transaction_id, gateway_response=None):
        self._ensure_pending()
        self._transition(PaymentStatus.COMPLETED)
        self.transaction_id = transaction_id
        self.gateway_response = gateway_response
        self.paid_at = self.updated_at

        self.raise_(
            PaymentCompleted(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                amount=self.amount,
                paid_at=self.paid_at,
            )
        )

    def fail(self, transaction_id, failure_reason, gateway_response=None):
        self._ensure_pending()
        self._transition(PaymentStatus.FAILED)
        self.transaction_id = transaction_id
        self.failure_reason = failure_reason
        self.gateway_response = gateway_response

        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                failure_reason=failure_reason,
            )
        )

    def cancel(self, reason=None):
        self._ensure_pending()
        self._transition(PaymentStatus.CANCELLED)
        self.failure_reason = reason

        self.raise_(PaymentCancelled(payment_id=str(self.id), order_id=str(self.order_id), reason=reason))


@marketplace.repository(part_of=Payment)
class PaymentRepository:
    def for_order(self, order_id) -> Payment | None:
        payments = self._dao.query.filter(order_id=str(order_id)).all().items
        return self.get(payments[0].id) if payments else None

    def by_transaction(self, transaction_id) -> Payment | None:
        payments = self._dao.query.filter(transaction_id=str(transaction_id)).all().items
        return self.get(payments[0].id) if payments else None


def load_payment(payment_id) -> Payment:
    try:
        return current_domain.repository_for(Payment).get(str(payment_id))
    except ObjectNotFoundError as exc:
        raise PaymentNotFound(payment_id) from exc
