"""Marketplace API package."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import (
    admin_order_router,
    cart_router,
    inventory_router,
    order_router,
    payment_router,
)

__all__ = [
    "admin_order_router",
    "cart_router",
    "inventory_router",
    "order_router",
    "payment_router",
    "register_error_handlers",
]
