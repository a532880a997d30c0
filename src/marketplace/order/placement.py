"""Checkout — turn the user's cart into an order.

Every cart line is re-validated against the inventory ledger before anything
is touched. Stock reservation, the new order and the emptied cart are then
written in the handler's unit of work, so they commit together or not at all.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.customer import ensure_user_exists
from marketplace.domain import marketplace
from marketplace.errors import EmptyCart
from marketplace.inventory.item import InventoryItem
from marketplace.inventory.management import load_inventory_item
from marketplace.order.numbering import generate_order_number
from marketplace.order.order import Address, Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON address
    billing_address = Text()  # JSON address, defaults to shipping
    notes = Text()


def _address(payload):
    return Address(**json.loads(payload)) if payload else None


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        ensure_user_exists(command.user_id)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_user(command.user_id)
        if cart is None or cart.is_empty:
            raise EmptyCart(command.user_id)

        shipping_address = _address(command.shipping_address)
        billing_address = _address(command.billing_address)

        # Validate every line first; the first failure aborts the checkout
        lines = []
        reservations = []
        for cart_line in cart.lines:
            item = load_inventory_item(cart_line.product_id)
            item.ensure_purchasable(cart_line.quantity)
            reservations.append((item, cart_line.quantity))
            lines.append(
                {
                    "product_id": str(item.id),
                    "vendor_id": str(item.vendor_id),
                    "product_name": item.name,
                    "product_sku": item.sku,
                    "product_image": item.image_url,
                    "quantity": cart_line.quantity,
                    "unit_price": cart_line.unit_price,
                }
            )

        order = Order.place(
            user_id=command.user_id,
            order_number=generate_order_number(),
            lines=lines,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=command.notes,
            coupon_code=cart.coupon_code,
            discount_amount=cart.discount_amount,
        )

        inventory_repo = current_domain.repository_for(InventoryItem)
        for item, quantity in reservations:
            item.reserve(quantity, order_id=order.id)
            inventory_repo.add(item)

        current_domain.repository_for(Order).add(order)

        cart.clear()
        cart_repo.add(cart)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            total_amount=order.total_amount,
            vendors=len(order.vendor_ids),
        )
        return str(order.id)
