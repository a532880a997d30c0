"""Order notifications — reacts to order events after they are committed.

OrderPlaced notifies the buyer and then each vendor with only their own
items; OrderDelivered notifies the buyer. A failing channel is logged and
never reaches the order workflow.
"""

import json

import structlog
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notification import get_notifier
from marketplace.order.events import OrderDelivered, OrderPlaced
from marketplace.order.order import Order
from marketplace.order.snapshots import items_by_vendor

logger = structlog.get_logger(__name__)


@marketplace.event_handler(part_of=Order)
class OrderNotificationsHandler:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        order = json.loads(event.snapshot)
        notifier = get_notifier()

        self._dispatch("order_confirmed", order, notifier.order_confirmed, order)
        for vendor_id, items in items_by_vendor(order).items():
            self._dispatch("vendor_notified", order, notifier.vendor_notified, order, vendor_id, items)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        order = json.loads(event.snapshot)
        self._dispatch("order_delivered", order, get_notifier().order_delivered, order)

    @staticmethod
    def _dispatch(kind, order, send, *args) -> None:
        try:
            send(*args)
        except Exception:
            logger.exception("notification_failed", kind=kind, order_number=order["order_number"])
