"""Flattened, JSON-ready views of a cart.

Lines are enriched with the live inventory record so callers can show
availability next to the captured price.
"""

from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.inventory.item import InventoryItem


def _line_snapshot(line, item: InventoryItem | None) -> dict:
    snapshot = {
        "id": str(line.id),
        "product_id": str(line.product_id),
        "quantity": line.quantity,
        "unit_price": line.unit_price,
        "line_total": line.line_total,
        "added_at": line.added_at.isoformat() if line.added_at else None,
        "product_name": None,
        "vendor_id": None,
        "image_url": None,
        "current_price": None,
        "available_stock": 0,
        "in_stock": False,
    }
    if item is not None:
        snapshot.update(
            product_name=item.name,
            vendor_id=str(item.vendor_id),
            image_url=item.image_url,
            current_price=item.price,
            available_stock=item.stock_quantity,
            in_stock=item.is_purchasable and item.stock_quantity >= line.quantity,
        )
    return snapshot


def cart_snapshot(cart: Cart) -> dict:
    items = {}
    if cart.lines:
        product_ids = [str(line.product_id) for line in cart.lines]
        found = current_domain.repository_for(InventoryItem)._dao.query.filter(id__in=product_ids).all().items
        items = {str(item.id): item for item in found}

    return {
        "id": str(cart.id),
        "user_id": str(cart.user_id),
        "lines": [_line_snapshot(line, items.get(str(line.product_id))) for line in cart.lines],
        "coupon_code": cart.coupon_code,
        "discount_amount": cart.discount_amount or 0.0,
        "subtotal": cart.subtotal,
        "total": cart.total,
        "total_items": cart.total_items,
        "unique_items": len(cart.lines),
        "updated_at": cart.updated_at.isoformat() if cart.updated_at else None,
    }
