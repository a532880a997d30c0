"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartOpened:
    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartLineAdded:
    """A product was added to the cart, or its quantity merged into an existing line."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity_added = Integer(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)


@marketplace.event(part_of="Cart")
class CartLineUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)


@marketplace.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartCleared:
    """All lines, the coupon and the discount were removed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartCouponApplied:
    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = String(required=True)
    discount_amount = Float(required=True)
