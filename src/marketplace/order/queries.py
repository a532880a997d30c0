"""Read side for orders: single lookups with ownership checks, and paging."""

from protean.utils.globals import current_domain

from marketplace.errors import NotOwner, OrderNotFound
from marketplace.order.order import Order, load_order, parse_order_status
from marketplace.order.snapshots import order_snapshot

DEFAULT_PAGE_SIZE = 20


def _visible(order: Order, user_id, admin: bool) -> Order:
    if not admin and not order.is_owned_by(user_id):
        raise NotOwner("order", order.id)
    return order


def get_order(user_id, order_id, admin=False) -> dict:
    return order_snapshot(_visible(load_order(order_id), user_id, admin))


def get_order_by_number(user_id, order_number, admin=False) -> dict:
    order = current_domain.repository_for(Order).by_number(order_number)
    if order is None:
        raise OrderNotFound(order_number)
    return order_snapshot(_visible(order, user_id, admin))


def list_orders(user_id=None, status=None, page=0, size=None) -> dict:
    """A newest-first page of orders.

    ``user_id=None`` lists every user's orders (admin view). ``status`` is
    matched case-insensitively against the order statuses.
    """
    size = size or current_domain.config.get("custom", {}).get("page_size", DEFAULT_PAGE_SIZE)
    status_value = parse_order_status(status).value if status else None

    results = current_domain.repository_for(Order).page(user_id=user_id, status=status_value, page=page, size=size)
    return {
        "items": [order_snapshot(order) for order in results.items],
        "page": page,
        "size": size,
        "total": results.total,
    }
