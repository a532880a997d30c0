"""Order cancellation by its owner — the inverse of checkout.

Allowed while the order is PENDING or CONFIRMED. Stock and sold counts go back
to their values before placement, every item is cancelled, and a payment still
waiting for the gateway is cancelled with the order.
"""

from collections import defaultdict

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import NotOwner
from marketplace.inventory.item import InventoryItem
from marketplace.inventory.management import load_inventory_item
from marketplace.order.order import Order, load_order
from marketplace.payment.payment import Payment, PaymentStatus

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        if not order.is_owned_by(command.user_id):
            raise NotOwner("order", command.order_id)

        quantities = defaultdict(int)
        for item in order.items:
            quantities[str(item.product_id)] += item.quantity
        inventory = {product_id: load_inventory_item(product_id) for product_id in quantities}

        order.cancel(cancelled_by=command.user_id)

        inventory_repo = current_domain.repository_for(InventoryItem)
        for product_id, quantity in quantities.items():
            inventory[product_id].release(quantity, order_id=order.id)
            inventory_repo.add(inventory[product_id])

        payment_repo = current_domain.repository_for(Payment)
        payment = payment_repo.for_order(order.id)
        if payment is not None and payment.status == PaymentStatus.PENDING.value:
            payment.cancel(reason="Order cancelled")
            payment_repo.add(payment)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            released_products=len(quantities),
        )
        return str(order.id)
