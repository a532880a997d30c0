"""Cart aggregate — a user's mutable list of products before checkout.

One cart per user, created on first access. Lines hold the unit price seen at
their last add or update; checkout copies that price into the order. Placing
an order clears the cart rather than deleting it.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import (
    CartCleared,
    CartCouponApplied,
    CartLineAdded,
    CartLineRemoved,
    CartLineUpdated,
    CartOpened,
)
from marketplace.domain import marketplace
from marketplace.errors import CartLineNotFound


@marketplace.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    added_at = DateTime()

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


@marketplace.aggregate
class Cart:
    user_id = Identifier(required=True)
    lines = HasMany(CartLine)
    coupon_code = String(max_length=50)
    discount_amount = Float(default=0.0, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(line.product_id) for line in self.lines]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"lines": ["A product can appear only once in a cart"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, user_id):
        now = datetime.now(UTC)
        cart = cls(user_id=user_id, discount_amount=0.0, created_at=now, updated_at=now)
        cart.raise_(CartOpened(cart_id=str(cart.id), user_id=str(user_id)))
        return cart

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> float:
        return round(sum(line.line_total for line in self.lines), 2)

    @property
    def total(self) -> float:
        return round(max(self.subtotal - (self.discount_amount or 0.0), 0.0), 2)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def quantity_of(self, product_id) -> int:
        line = self.line_for(product_id)
        return line.quantity if line else 0

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(self, product_id, quantity, unit_price):
        """Add ``quantity`` of a product, merging into an existing line.

        The line's price is refreshed to ``unit_price`` either way.
        """
        existing = self.line_for(product_id)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            existing.unit_price = round(unit_price, 2)
            line = existing
        else:
            line = CartLine(
                product_id=product_id,
                quantity=quantity,
                unit_price=round(unit_price, 2),
                added_at=now,
            )
            self.add_lines(line)

        self.updated_at = now
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                quantity_added=quantity,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
        )

    def set_line_quantity(self, product_id, quantity, unit_price):
        line = self.line_for(product_id)
        if line is None:
            raise CartLineNotFound(product_id)

        previous_quantity = line.quantity
        line.quantity = quantity
        line.unit_price = round(unit_price, 2)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                quantity=quantity,
                unit_price=line.unit_price,
            )
        )

    def remove_line(self, product_id):
        line = self.line_for(product_id)
        if line is None:
            raise CartLineNotFound(product_id)

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=str(product_id)))

    def clear(self):
        """Drop every line and reset the coupon and discount."""
        for line in list(self.lines):
            self.remove_lines(line)
        self.coupon_code = None
        self.discount_amount = 0.0
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id)))

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def apply_coupon(self, coupon_code, discount_amount):
        if self.is_empty:
            raise ValidationError({"coupon_code": ["Cannot apply a coupon to an empty cart"]})

        self.coupon_code = coupon_code
        self.discount_amount = round(discount_amount, 2)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                coupon_code=coupon_code,
                discount_amount=self.discount_amount,
            )
        )


@marketplace.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        """The user's cart, or None when it has not been opened yet."""
        carts = self._dao.query.filter(user_id=str(user_id)).all().items
        return self.get(carts[0].id) if carts else None
