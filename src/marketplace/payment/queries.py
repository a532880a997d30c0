"""Read side for payments."""

from protean.utils.globals import current_domain

from marketplace.errors import NotOwner, PaymentNotFound
from marketplace.order.order import load_order
from marketplace.payment.payment import Payment
from marketplace.payment.snapshots import payment_snapshot


def get_payment_by_order(user_id, order_id, admin=False) -> dict:
    order = load_order(order_id)
    if not admin and not order.is_owned_by(user_id):
        raise NotOwner("order", order_id)

    payment = current_domain.repository_for(Payment).for_order(order.id)
    if payment is None:
        raise PaymentNotFound(f"for order {order_id}")
    return payment_snapshot(payment)


def get_payment_by_transaction(transaction_id) -> dict:
    payment = current_domain.repository_for(Payment).by_transaction(transaction_id)
    if payment is None:
        raise PaymentNotFound(f"with transaction {transaction_id}")
    return payment_snapshot(payment)
