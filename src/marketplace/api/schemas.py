"""Pydantic request/response schemas for the Marketplace API.

These are the external contracts; they are kept apart from the Protean
commands they are translated into.
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    email: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)

    model_config = {"json_schema_extra": {"examples": [{"product_id": "prod-001", "quantity": 2}]}}


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class ApplyCouponRequest(BaseModel):
    coupon_code: str = Field(min_length=1, max_length=50)
    discount_amount: float = Field(ge=0)


class CartLineResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    unit_price: float
    line_total: float
    added_at: str | None = None
    product_name: str | None = None
    vendor_id: str | None = None
    image_url: str | None = None
    current_price: float | None = None
    available_stock: int = 0
    in_stock: bool = False


class CartResponse(BaseModel):
    id: str
    user_id: str
    lines: list[CartLineResponse]
    coupon_code: str | None = None
    discount_amount: float = 0.0
    subtotal: float
    total: float
    total_items: int
    unique_items: int
    updated_at: str | None = None


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    notes: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str = Field(min_length=1)


class UpdateTrackingRequest(BaseModel):
    tracking_number: str = Field(min_length=1, max_length=100)
    shipping_carrier: str | None = None


class UpdateFulfillmentRequest(BaseModel):
    status: str = Field(min_length=1)


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    vendor_id: str
    product_name: str
    product_sku: str | None = None
    product_image: str | None = None
    quantity: int
    unit_price: float
    discount_amount: float | None = 0.0
    tax_amount: float | None = 0.0
    total_price: float
    fulfillment_status: str


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    status: str
    items: list[OrderItemResponse]
    subtotal: float
    shipping_amount: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    coupon_code: str | None = None
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    notes: str | None = None
    tracking_number: str | None = None
    shipping_carrier: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class OrderPageResponse(BaseModel):
    items: list[OrderResponse]
    page: int
    size: int
    total: int


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(BaseModel):
    order_id: str
    payment_method: str = "CREDIT_CARD"
    provider: str | None = None
    card_last_four: str | None = Field(default=None, min_length=4, max_length=4)
    card_brand: str | None = None
    billing_email: str | None = None


class ConfirmPaymentRequest(BaseModel):
    transaction_id: str = Field(min_length=1, max_length=100)
    success: bool
    failure_reason: str | None = None
    gateway_response: dict[str, Any] | None = None


class SimulateFailureRequest(BaseModel):
    reason: str | None = None


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    user_id: str
    transaction_id: str | None = None
    payment_method: str
    provider: str | None = None
    amount: float
    currency: str
    status: str
    paid_at: str | None = None
    refunded_at: str | None = None
    refund_amount: float | None = None
    refund_reason: str | None = None
    failure_reason: str | None = None
    gateway_response: dict[str, Any] | None = None
    card_last_four: str | None = None
    card_brand: str | None = None
    billing_email: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
class RegisterInventoryItemRequest(BaseModel):
    product_id: str
    vendor_id: str
    name: str = Field(min_length=1, max_length=200)
    price: float = Field(ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    sku: str | None = None
    image_url: str | None = None
    status: str = "ACTIVE"
    low_stock_threshold: int = Field(default=10, ge=0)


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)


class UpdateInventoryItemRequest(BaseModel):
    name: str | None = None
    price: float | None = Field(default=None, ge=0)
    status: str | None = None
    sku: str | None = None
    image_url: str | None = None


class InventoryItemResponse(BaseModel):
    id: str
    vendor_id: str
    name: str
    sku: str | None = None
    image_url: str | None = None
    price: float
    stock_quantity: int
    sold_count: int
    low_stock_threshold: int
    low_stock: bool
    status: str
