"""FastAPI routes for the Marketplace — cart, orders, payments, inventory.

Routes are plain functions: FastAPI runs them in its threadpool, so the
blocking services and their resource locks never hold up the event loop.
"""

import os

from fastapi import APIRouter, Depends, HTTPException, Query

from marketplace import services
from marketplace.api.dependencies import Principal, current_principal, require_admin
from marketplace.api.schemas import (
    AddCartItemRequest,
    ApplyCouponRequest,
    CartResponse,
    ConfirmPaymentRequest,
    InitiatePaymentRequest,
    InventoryItemResponse,
    OrderPageResponse,
    OrderResponse,
    PaymentResponse,
    PlaceOrderRequest,
    RegisterInventoryItemRequest,
    RestockRequest,
    SimulateFailureRequest,
    UpdateCartItemRequest,
    UpdateFulfillmentRequest,
    UpdateInventoryItemRequest,
    UpdateOrderStatusRequest,
    UpdateTrackingRequest,
)

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**services.get_cart(principal.user_id))


@cart_router.post("/items", response_model=CartResponse)
def add_to_cart(body: AddCartItemRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**services.add_to_cart(principal.user_id, body.product_id, body.quantity))


@cart_router.put("/items/{product_id}", response_model=CartResponse)
def update_cart_item(
    product_id: str,
    body: UpdateCartItemRequest,
    principal: Principal = Depends(current_principal),
) -> CartResponse:
    return CartResponse(**services.update_cart_item(principal.user_id, product_id, body.quantity))


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
def remove_from_cart(product_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**services.remove_from_cart(principal.user_id, product_id))


@cart_router.delete("", response_model=CartResponse)
def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**services.clear_cart(principal.user_id))


@cart_router.post("/coupon", response_model=CartResponse)
def apply_coupon(body: ApplyCouponRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    return CartResponse(**services.apply_cart_coupon(principal.user_id, body.coupon_code, body.discount_amount))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def place_order(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)) -> OrderResponse:
    order = services.place_order(
        principal.user_id,
        shipping_address=body.shipping_address.model_dump(),
        billing_address=body.billing_address.model_dump() if body.billing_address else None,
        notes=body.notes,
    )
    return OrderResponse(**order)


@order_router.get("", response_model=OrderPageResponse)
def list_my_orders(
    status: str | None = None,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1, le=100),
    principal: Principal = Depends(current_principal),
) -> OrderPageResponse:
    return OrderPageResponse(**services.list_orders(user_id=principal.user_id, status=status, page=page, size=size))


@order_router.get("/number/{order_number}", response_model=OrderResponse)
def get_order_by_number(order_number: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse(**services.get_order_by_number(principal.user_id, order_number, admin=principal.is_admin))


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse(**services.get_order(principal.user_id, order_id, admin=principal.is_admin))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return OrderResponse(**services.cancel_order(principal.user_id, order_id))


@order_router.get("/{order_id}/payment", response_model=PaymentResponse)
def get_order_payment(order_id: str, principal: Principal = Depends(current_principal)) -> PaymentResponse:
    return PaymentResponse(**services.get_payment_by_order(principal.user_id, order_id, admin=principal.is_admin))


# ---------------------------------------------------------------------------
# Admin Order Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


@admin_order_router.get("", response_model=OrderPageResponse)
def list_all_orders(
    status: str | None = None,
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1, le=100),
) -> OrderPageResponse:
    return OrderPageResponse(**services.list_orders(status=status, page=page, size=size))


@admin_order_router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    return OrderResponse(**services.update_order_status(order_id, body.status))


@admin_order_router.patch("/{order_id}/tracking", response_model=OrderResponse)
def update_tracking(order_id: str, body: UpdateTrackingRequest) -> OrderResponse:
    return OrderResponse(**services.update_tracking(order_id, body.tracking_number, body.shipping_carrier))


@admin_order_router.patch("/{order_id}/items/{item_id}/fulfillment", response_model=OrderResponse)
def update_item_fulfillment(order_id: str, item_id: str, body: UpdateFulfillmentRequest) -> OrderResponse:
    return OrderResponse(**services.update_item_fulfillment(order_id, item_id, body.status))


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _simulation_allowed() -> None:
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Payment simulation not available in production")


@payment_router.post("", status_code=201, response_model=PaymentResponse)
def initiate_payment(
    body: InitiatePaymentRequest,
    principal: Principal = Depends(current_principal),
) -> PaymentResponse:
    payment = services.initiate_payment(
        principal.user_id,
        body.order_id,
        payment_method=body.payment_method.upper(),
        provider=body.provider,
        card_last_four=body.card_last_four,
        card_brand=body.card_brand,
        billing_email=body.billing_email,
    )
    return PaymentResponse(**payment)


@payment_router.post("/{payment_id}/confirm", response_model=PaymentResponse)
def confirm_payment(
    payment_id: str,
    body: ConfirmPaymentRequest,
    principal: Principal = Depends(current_principal),
) -> PaymentResponse:
    payment = services.confirm_payment(
        payment_id,
        body.transaction_id,
        success=body.success,
        failure_reason=body.failure_reason,
        gateway_response=body.gateway_response,
    )
    return PaymentResponse(**payment)


@payment_router.post("/{payment_id}/simulate/success", response_model=PaymentResponse)
def simulate_success(payment_id: str, principal: Principal = Depends(current_principal)) -> PaymentResponse:
    _simulation_allowed()
    return PaymentResponse(**services.simulate_payment_success(payment_id))


@payment_router.post("/{payment_id}/simulate/failure", response_model=PaymentResponse)
def simulate_failure(
    payment_id: str,
    body: SimulateFailureRequest | None = None,
    principal: Principal = Depends(current_principal),
) -> PaymentResponse:
    _simulation_allowed()
    reason = body.reason if body else None
    return PaymentResponse(**services.simulate_payment_failure(payment_id, reason))


@payment_router.get("/transaction/{transaction_id}", response_model=PaymentResponse)
def get_payment_by_transaction(transaction_id: str, principal: Principal = Depends(require_admin)) -> PaymentResponse:
    return PaymentResponse(**services.get_payment_by_transaction(transaction_id))


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/admin/inventory", tags=["inventory"], dependencies=[Depends(require_admin)])


@inventory_router.post("", status_code=201, response_model=InventoryItemResponse)
def register_inventory_item(body: RegisterInventoryItemRequest) -> InventoryItemResponse:
    return InventoryItemResponse(**services.register_inventory_item(**body.model_dump()))


@inventory_router.get("/{product_id}", response_model=InventoryItemResponse)
def get_inventory_item(product_id: str) -> InventoryItemResponse:
    return InventoryItemResponse(**services.get_inventory_item(product_id))


@inventory_router.post("/{product_id}/restock", response_model=InventoryItemResponse)
def restock_inventory_item(product_id: str, body: RestockRequest) -> InventoryItemResponse:
    return InventoryItemResponse(**services.restock_inventory_item(product_id, body.quantity))


@inventory_router.patch("/{product_id}", response_model=InventoryItemResponse)
def update_inventory_item(product_id: str, body: UpdateInventoryItemRequest) -> InventoryItemResponse:
    return InventoryItemResponse(**services.update_inventory_item(product_id, **body.model_dump(exclude_unset=True)))
