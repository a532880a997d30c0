"""InventoryItem aggregate — live price, stock and sold count per product.

The catalog owns product content; the ledger keeps the subset checkout needs:
price, vendor, purchasable status and the stock counters. ``reserve`` and
``release`` are exact inverses so that cancelling an order restores the
counters to their values before placement.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, ProductUnavailable
from marketplace.inventory.events import (
    InventoryDetailsUpdated,
    InventoryItemRegistered,
    LowStockDetected,
    StockReceived,
    StockReleased,
    StockReserved,
)


class ProductStatus(Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"


@marketplace.aggregate
class InventoryItem:
    name = String(required=True, max_length=200)
    sku = String(max_length=100)
    image_url = String(max_length=500)
    vendor_id = Identifier(required=True)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)
    sold_count = Integer(default=0, min_value=0)
    low_stock_threshold = Integer(default=10, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.DRAFT.value)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        product_id,
        vendor_id,
        name,
        price,
        stock_quantity=0,
        sku=None,
        image_url=None,
        status=ProductStatus.ACTIVE.value,
        low_stock_threshold=10,
    ):
        now = datetime.now(UTC)
        item = cls(
            id=product_id,
            vendor_id=vendor_id,
            name=name,
            sku=sku,
            image_url=image_url,
            price=round(price, 2),
            stock_quantity=stock_quantity,
            status=status,
            low_stock_threshold=low_stock_threshold,
            created_at=now,
            updated_at=now,
        )
        item.raise_(
            InventoryItemRegistered(
                product_id=str(item.id),
                vendor_id=str(vendor_id),
                name=name,
                price=item.price,
                stock_quantity=stock_quantity,
                status=item.status,
            )
        )
        return item

    @property
    def is_purchasable(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def ensure_purchasable(self, quantity):
        """Raise unless ``quantity`` units can be sold right now."""
        if not self.is_purchasable:
            raise ProductUnavailable(self.id, self.status)
        if self.stock_quantity < quantity:
            raise InsufficientStock(self.id, available=self.stock_quantity, requested=quantity)

    def reserve(self, quantity, order_id):
        """Take ``quantity`` units for an order and count them as sold."""
        self.ensure_purchasable(quantity)

        self.stock_quantity -= quantity
        self.sold_count += quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                stock_quantity=self.stock_quantity,
            )
        )
        if self.is_low_stock:
            self.raise_(
                LowStockDetected(
                    product_id=str(self.id),
                    stock_quantity=self.stock_quantity,
                    threshold=self.low_stock_threshold,
                )
            )

    def release(self, quantity, order_id):
        """Undo a reservation: stock back up, sold count back down."""
        self.stock_quantity += quantity
        self.sold_count = max(self.sold_count - quantity, 0)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                stock_quantity=self.stock_quantity,
            )
        )

    def receive_stock(self, quantity):
        self.stock_quantity += quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockReceived(
                product_id=str(self.id),
                quantity=quantity,
                stock_quantity=self.stock_quantity,
            )
        )

    # -------------------------------------------------------------------
    # Catalog details
    # -------------------------------------------------------------------
    def update_details(self, name=None, price=None, status=None, sku=None, image_url=None):
        if name is not None:
            self.name = name
        if price is not None:
            self.price = round(price, 2)
        if status is not None:
            self.status = status
        if sku is not None:
            self.sku = sku
        if image_url is not None:
            self.image_url = image_url
        self.updated_at = datetime.now(UTC)

        self.raise_(
            InventoryDetailsUpdated(
                product_id=str(self.id),
                name=self.name,
                price=self.price,
                status=self.status,
            )
        )
