"""Marketplace operations exposed to the HTTP layer and other collaborators.

Each operation holds the resource locks it needs for the whole command,
processes the command synchronously (one unit of work) and returns a
flattened snapshot. Lock keys are always taken owner first (cart or order),
then stock keys.
"""

import json

from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.items import (
    AddToCart,
    ApplyCartCoupon,
    ClearCart,
    OpenCart,
    RemoveFromCart,
    UpdateCartLine,
)
from marketplace.cart.snapshots import cart_snapshot
from marketplace.inventory.management import (
    RegisterInventoryItem,
    RestockInventoryItem,
    UpdateInventoryItem,
    load_inventory_item,
)
from marketplace.order import queries as order_queries
from marketplace.order.administration import UpdateItemFulfillment, UpdateOrderStatus, UpdateTracking
from marketplace.order.cancellation import CancelOrder
from marketplace.order.order import Order, load_order
from marketplace.order.placement import PlaceOrder
from marketplace.order.snapshots import order_snapshot
from marketplace.payment import queries as payment_queries
from marketplace.payment.confirmation import ConfirmPayment
from marketplace.payment.initiation import InitiatePayment
from marketplace.payment.payment import load_payment
from marketplace.payment.simulation import simulated_failure, simulated_success
from marketplace.payment.snapshots import payment_snapshot
from marketplace.utils.locks import cart_key, hold, order_key, stock_key


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _cart(user_id) -> dict:
    return cart_snapshot(current_domain.repository_for(Cart).for_user(user_id))


def _order(order_id) -> dict:
    return order_snapshot(current_domain.repository_for(Order).get(order_id))


def _payment(payment_id) -> dict:
    return payment_snapshot(load_payment(payment_id))


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
def get_cart(user_id) -> dict:
    with hold(cart_key(user_id)):
        _process(OpenCart(user_id=user_id))
        return _cart(user_id)


def add_to_cart(user_id, product_id, quantity) -> dict:
    with hold(cart_key(user_id)):
        _process(AddToCart(user_id=user_id, product_id=product_id, quantity=quantity))
        return _cart(user_id)


def update_cart_item(user_id, product_id, quantity) -> dict:
    with hold(cart_key(user_id)):
        _process(UpdateCartLine(user_id=user_id, product_id=product_id, quantity=quantity))
        return _cart(user_id)


def remove_from_cart(user_id, product_id) -> dict:
    with hold(cart_key(user_id)):
        _process(RemoveFromCart(user_id=user_id, product_id=product_id))
        return _cart(user_id)


def clear_cart(user_id) -> dict:
    with hold(cart_key(user_id)):
        _process(ClearCart(user_id=user_id))
        return _cart(user_id)


def apply_cart_coupon(user_id, coupon_code, discount_amount) -> dict:
    with hold(cart_key(user_id)):
        _process(ApplyCartCoupon(user_id=user_id, coupon_code=coupon_code, discount_amount=discount_amount))
        return _cart(user_id)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def place_order(user_id, shipping_address: dict, billing_address: dict | None = None, notes=None) -> dict:
    with hold(cart_key(user_id)):
        cart = current_domain.repository_for(Cart).for_user(user_id)
        product_ids = [line.product_id for line in cart.lines] if cart else []

        with hold(*(stock_key(product_id) for product_id in product_ids)):
            order_id = _process(
                PlaceOrder(
                    user_id=user_id,
                    shipping_address=json.dumps(shipping_address),
                    billing_address=json.dumps(billing_address) if billing_address else None,
                    notes=notes,
                )
            )
    return _order(order_id)


def cancel_order(user_id, order_id) -> dict:
    with hold(order_key(order_id)):
        order = load_order(order_id)
        product_ids = [item.product_id for item in order.items]

        with hold(*(stock_key(product_id) for product_id in product_ids)):
            _process(CancelOrder(user_id=user_id, order_id=order_id))
    return _order(order_id)


def get_order(user_id, order_id, admin=False) -> dict:
    return order_queries.get_order(user_id, order_id, admin=admin)


def get_order_by_number(user_id, order_number, admin=False) -> dict:
    return order_queries.get_order_by_number(user_id, order_number, admin=admin)


def list_orders(user_id=None, status=None, page=0, size=None) -> dict:
    return order_queries.list_orders(user_id=user_id, status=status, page=page, size=size)


def update_order_status(order_id, status) -> dict:
    with hold(order_key(order_id)):
        _process(UpdateOrderStatus(order_id=order_id, status=status))
    return _order(order_id)


def update_tracking(order_id, tracking_number, shipping_carrier=None) -> dict:
    with hold(order_key(order_id)):
        _process(UpdateTracking(order_id=order_id, tracking_number=tracking_number, shipping_carrier=shipping_carrier))
    return _order(order_id)


def update_item_fulfillment(order_id, item_id, status) -> dict:
    with hold(order_key(order_id)):
        _process(UpdateItemFulfillment(order_id=order_id, item_id=item_id, status=status))
    return _order(order_id)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
def initiate_payment(
    user_id,
    order_id,
    payment_method,
    provider=None,
    card_last_four=None,
    card_brand=None,
    billing_email=None,
) -> dict:
    with hold(order_key(order_id)):
        payment_id = _process(
            InitiatePayment(
                user_id=user_id,
                order_id=order_id,
                payment_method=payment_method,
                provider=provider,
                card_last_four=card_last_four,
                card_brand=card_brand,
                billing_email=billing_email,
            )
        )
    return _payment(payment_id)


def _settle(command) -> dict:
    payment = load_payment(command.payment_id)
    with hold(order_key(payment.order_id)):
        _process(command)
    return _payment(command.payment_id)


def confirm_payment(payment_id, transaction_id, success, failure_reason=None, gateway_response=None) -> dict:
    return _settle(
        ConfirmPayment(
            payment_id=payment_id,
            transaction_id=transaction_id,
            success=success,
            failure_reason=failure_reason,
            gateway_response=json.dumps(gateway_response) if isinstance(gateway_response, dict) else gateway_response,
        )
    )


def simulate_payment_success(payment_id) -> dict:
    return _settle(simulated_success(payment_id))


def simulate_payment_failure(payment_id, reason=None) -> dict:
    return _settle(simulated_failure(payment_id, reason))


def get_payment_by_order(user_id, order_id, admin=False) -> dict:
    return payment_queries.get_payment_by_order(user_id, order_id, admin=admin)


def get_payment_by_transaction(transaction_id) -> dict:
    return payment_queries.get_payment_by_transaction(transaction_id)


# ---------------------------------------------------------------------------
# Inventory administration
# ---------------------------------------------------------------------------
def _inventory(product_id) -> dict:
    item = load_inventory_item(product_id)
    return {
        "id": str(item.id),
        "vendor_id": str(item.vendor_id),
        "name": item.name,
        "sku": item.sku,
        "image_url": item.image_url,
        "price": item.price,
        "stock_quantity": item.stock_quantity,
        "sold_count": item.sold_count,
        "low_stock_threshold": item.low_stock_threshold,
        "low_stock": item.is_low_stock,
        "status": item.status,
    }


def register_inventory_item(**fields) -> dict:
    with hold(stock_key(fields["product_id"])):
        product_id = _process(RegisterInventoryItem(**fields))
    return _inventory(product_id)


def restock_inventory_item(product_id, quantity) -> dict:
    with hold(stock_key(product_id)):
        _process(RestockInventoryItem(product_id=product_id, quantity=quantity))
    return _inventory(product_id)


def update_inventory_item(product_id, **changes) -> dict:
    with hold(stock_key(product_id)):
        _process(UpdateInventoryItem(product_id=product_id, **changes))
    return _inventory(product_id)


def get_inventory_item(product_id) -> dict:
    return _inventory(product_id)
