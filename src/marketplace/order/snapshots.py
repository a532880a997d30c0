"""Flattened, JSON-ready views of orders."""


def _iso(value):
    return value.isoformat() if value else None


def address_snapshot(address) -> dict | None:
    if address is None:
        return None
    return {
        "full_name": address.full_name,
        "phone": address.phone,
        "email": address.email,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "postal_code": address.postal_code,
        "country": address.country,
    }


def order_item_snapshot(item) -> dict:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "vendor_id": str(item.vendor_id),
        "product_name": item.product_name,
        "product_sku": item.product_sku,
        "product_image": item.product_image,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "discount_amount": item.discount_amount,
        "tax_amount": item.tax_amount,
        "total_price": item.total_price,
        "fulfillment_status": item.fulfillment_status,
    }


def order_snapshot(order) -> dict:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "user_id": str(order.user_id),
        "status": order.status,
        "items": [order_item_snapshot(item) for item in order.items],
        "subtotal": order.subtotal,
        "shipping_amount": order.shipping_amount,
        "tax_amount": order.tax_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "coupon_code": order.coupon_code,
        "shipping_address": address_snapshot(order.shipping_address),
        "billing_address": address_snapshot(order.billing_address),
        "notes": order.notes,
        "tracking_number": order.tracking_number,
        "shipping_carrier": order.shipping_carrier,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def items_by_vendor(snapshot: dict) -> dict[str, list[dict]]:
    """Group a snapshot's items by vendor id, keeping their order."""
    grouped: dict[str, list[dict]] = {}
    for item in snapshot["items"]:
        grouped.setdefault(item["vendor_id"], []).append(item)
    return grouped
