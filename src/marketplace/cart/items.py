"""Cart management — commands and handler.

Adds and quantity changes re-check the product against the inventory ledger
and refresh the line's price to the live price.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.customer import ensure_user_exists
from marketplace.domain import marketplace
from marketplace.errors import CartLineNotFound
from marketplace.inventory.management import load_inventory_item


@marketplace.command(part_of="Cart")
class OpenCart:
    user_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartLine:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ApplyCartCoupon:
    user_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)
    discount_amount = Float(required=True, min_value=0.0)


def _cart_for(user_id) -> Cart:
    """Load the user's cart, opening a fresh one when none exists."""
    ensure_user_exists(user_id)
    cart = current_domain.repository_for(Cart).for_user(user_id)
    return cart if cart is not None else Cart.open(user_id=user_id)


@marketplace.command_handler(part_of=Cart)
class CartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            ensure_user_exists(command.user_id)
            cart = Cart.open(user_id=command.user_id)
            repo.add(cart)
        return str(cart.id)

    @handle(AddToCart)
    def add_to_cart(self, command):
        cart = _cart_for(command.user_id)
        item = load_inventory_item(command.product_id)
        item.ensure_purchasable(cart.quantity_of(command.product_id) + command.quantity)

        cart.add_line(command.product_id, command.quantity, item.price)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(UpdateCartLine)
    def update_cart_line(self, command):
        cart = _cart_for(command.user_id)
        if cart.line_for(command.product_id) is None:
            raise CartLineNotFound(command.product_id)

        item = load_inventory_item(command.product_id)
        item.ensure_purchasable(command.quantity)

        cart.set_line_quantity(command.product_id, command.quantity, item.price)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = _cart_for(command.user_id)
        cart.remove_line(command.product_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = _cart_for(command.user_id)
        cart.clear()
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ApplyCartCoupon)
    def apply_coupon(self, command):
        cart = _cart_for(command.user_id)
        cart.apply_coupon(command.coupon_code, command.discount_amount)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
