"""Payment initiation — start or retry the payment for a PENDING order."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidState, NotOwner, PaymentAlreadyInProgress
from marketplace.order.order import Order, OrderStatus, load_order
from marketplace.payment.payment import Payment, PaymentMethod, default_currency

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Payment")
class InitiatePayment:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    payment_method = String(required=True, choices=PaymentMethod)
    provider = String(max_length=50)
    card_last_four = String(max_length=4)
    card_brand = String(max_length=30)
    billing_email = String(max_length=254)


@marketplace.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        order = load_order(command.order_id)
        if not order.is_owned_by(command.user_id):
            raise NotOwner("order", command.order_id)

        payment_repo = current_domain.repository_for(Payment)
        payment = payment_repo.for_order(order.id)
        if payment is not None and not payment.is_retryable:
            raise PaymentAlreadyInProgress(order.id, payment.status)

        if order.status != OrderStatus.PENDING.value:
            raise InvalidState({"status": [f"Payment can only be started for a PENDING order, not {order.status}"]})

        card = {
            "card_last_four": command.card_last_four,
            "card_brand": command.card_brand,
            "billing_email": command.billing_email or (order.billing_address.email if order.billing_address else None),
        }
        if payment is None:
            payment = Payment.initiate(
                order_id=order.id,
                user_id=order.user_id,
                amount=order.total_amount,
                payment_method=command.payment_method,
                provider=command.provider,
                currency=default_currency(),
                **card,
            )
            retried = False
        else:
            payment.retry(
                amount=order.total_amount,
                payment_method=command.payment_method,
                provider=command.provider,
                **card,
            )
            retried = True

        order.confirm_payment_started(payment.id)

        payment_repo.add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "payment_initiated",
            payment_id=str(payment.id),
            order_id=str(order.id),
            amount=payment.amount,
            retry=retried,
        )
        return str(payment.id)
