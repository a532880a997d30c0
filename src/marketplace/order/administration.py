"""Administrative order changes — status, tracking, per-item fulfillment."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import (
    Order,
    OrderStatus,
    can_transition,
    load_order,
    parse_fulfillment_status,
    parse_order_status,
)

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)


@marketplace.command(part_of="Order")
class UpdateTracking:
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=100)
    shipping_carrier = String(max_length=100)


@marketplace.command(part_of="Order")
class UpdateItemFulfillment:
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    status = String(required=True, max_length=30)


@marketplace.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        target = parse_order_status(command.status)
        order = load_order(command.order_id)

        current = OrderStatus(order.status)
        if not can_transition(current, target):
            logger.warning(
                "order_status_outside_transition_table",
                order_id=str(order.id),
                current_status=current.value,
                requested_status=target.value,
            )

        order.set_status(target)
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    @handle(UpdateTracking)
    def update_tracking(self, command):
        order = load_order(command.order_id)
        order.update_tracking(command.tracking_number, command.shipping_carrier)
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    @handle(UpdateItemFulfillment)
    def update_item_fulfillment(self, command):
        target = parse_fulfillment_status(command.status)
        order = load_order(command.order_id)
        order.update_item_fulfillment(command.item_id, target)
        current_domain.repository_for(Order).add(order)
        return str(order.id)
