"""Domain events for the InventoryItem aggregate."""

from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="InventoryItem")
class InventoryItemRegistered:
    """A product became known to the inventory ledger."""

    __version__ = 1

    product_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    stock_quantity = Integer(required=True)
    status = String(required=True)


@marketplace.event(part_of="InventoryItem")
class StockReserved:
    """Stock was taken for an order and counted as sold."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_quantity = Integer(required=True)


@marketplace.event(part_of="InventoryItem")
class StockReleased:
    """Stock taken for an order was given back."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_quantity = Integer(required=True)


@marketplace.event(part_of="InventoryItem")
class StockReceived:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_quantity = Integer(required=True)


@marketplace.event(part_of="InventoryItem")
class InventoryDetailsUpdated:
    """Price, status or catalog fields changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String()
    price = Float()
    status = String()


@marketplace.event(part_of="InventoryItem")
class LowStockDetected:
    __version__ = 1

    product_id = Identifier(required=True)
    stock_quantity = Integer(required=True)
    threshold = Integer(required=True)
