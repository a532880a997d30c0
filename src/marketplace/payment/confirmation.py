"""Gateway callback — settle a PENDING payment and move the order with it.

Success moves a CONFIRMED order to PROCESSING; failure puts it back to
PENDING so the buyer can retry. An order an administrator has already moved
on keeps its status while the payment still settles. Payment and order are
written in the same unit of work.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import Conflict, InvalidState
from marketplace.order.order import Order, OrderStatus, load_order
from marketplace.payment.payment import Payment, PaymentStatus, load_payment

logger = structlog.get_logger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"


@marketplace.command(part_of="Payment")
class ConfirmPayment:
    payment_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=100)
    success = Boolean(required=True)
    failure_reason = String(max_length=500)
    gateway_response = Text()  # Raw JSON from the gateway


@marketplace.command_handler(part_of=Payment)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        payment_repo = current_domain.repository_for(Payment)
        payment = load_payment(command.payment_id)
        if payment.status != PaymentStatus.PENDING.value:
            raise InvalidState({"status": [f"Payment is {payment.status}, expected PENDING"]})

        owner = payment_repo.by_transaction(command.transaction_id)
        if owner is not None and str(owner.id) != str(payment.id):
            raise Conflict({"transaction_id": [f"Transaction {command.transaction_id} is already recorded"]})

        order = load_order(payment.order_id)
        # The order follows the payment only while it is still awaiting it
        follows_payment = order.status == OrderStatus.CONFIRMED.value
        if not follows_payment:
            logger.warning(
                "payment_settled_outside_confirmed_order",
                payment_id=str(payment.id),
                order_id=str(order.id),
                order_status=order.status,
                success=command.success,
            )

        if command.success:
            if follows_payment:
                order.start_processing(payment.id)
            payment.complete(command.transaction_id, command.gateway_response)
        else:
            reason = command.failure_reason or DEFAULT_FAILURE_REASON
            if follows_payment:
                order.await_payment(payment.id, reason)
            payment.fail(command.transaction_id, reason, command.gateway_response)

        payment_repo.add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "payment_confirmed",
            payment_id=str(payment.id),
            order_id=str(order.id),
            status=payment.status,
            transaction_id=command.transaction_id,
        )
        return str(payment.id)
