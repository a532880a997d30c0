"""Inventory administration — register products, restock, edit details."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import Conflict, ProductNotFound
from marketplace.inventory.item import InventoryItem, ProductStatus


@marketplace.command(part_of="InventoryItem")
class RegisterInventoryItem:
    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    sku = String(max_length=100)
    image_url = String(max_length=500)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    low_stock_threshold = Integer(default=10, min_value=0)


@marketplace.command(part_of="InventoryItem")
class RestockInventoryItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="InventoryItem")
class UpdateInventoryItem:
    product_id = Identifier(required=True)
    name = String(max_length=200)
    price = Float(min_value=0.0)
    status = String(choices=ProductStatus)
    sku = String(max_length=100)
    image_url = String(max_length=500)


def load_inventory_item(product_id) -> InventoryItem:
    """Fetch an inventory item, translating a miss into ``ProductNotFound``."""
    try:
        return current_domain.repository_for(InventoryItem).get(str(product_id))
    except ObjectNotFoundError as exc:
        raise ProductNotFound(product_id) from exc


@marketplace.command_handler(part_of=InventoryItem)
class InventoryManagementHandler:
    @handle(RegisterInventoryItem)
    def register(self, command):
        repo = current_domain.repository_for(InventoryItem)
        if repo._dao.query.filter(id=str(command.product_id)).all().items:
            raise Conflict({"product_id": [f"Product {command.product_id} is already registered"]})

        item = InventoryItem.register(
            product_id=command.product_id,
            vendor_id=command.vendor_id,
            name=command.name,
            price=command.price,
            stock_quantity=command.stock_quantity,
            sku=command.sku,
            image_url=command.image_url,
            status=command.status,
            low_stock_threshold=command.low_stock_threshold,
        )
        repo.add(item)
        return str(item.id)

    @handle(RestockInventoryItem)
    def restock(self, command):
        item = load_inventory_item(command.product_id)
        item.receive_stock(command.quantity)
        current_domain.repository_for(InventoryItem).add(item)
        return str(item.id)

    @handle(UpdateInventoryItem)
    def update(self, command):
        item = load_inventory_item(command.product_id)
        item.update_details(
            name=command.name,
            price=command.price,
            status=command.status,
            sku=command.sku,
            image_url=command.image_url,
        )
        current_domain.repository_for(InventoryItem).add(item)
        return str(item.id)
