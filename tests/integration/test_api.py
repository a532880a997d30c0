"""Integration tests for the marketplace HTTP routes."""

import inspect

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import (
    admin_order_router,
    cart_router,
    inventory_router,
    order_router,
    payment_router,
    register_error_handlers,
)

BUYER = {"X-User-Id": "user-001"}
OTHER = {"X-User-Id": "user-002"}
ADMIN = {"X-User-Id": "admin-001", "X-User-Roles": "admin"}


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (cart_router, order_router, admin_order_router, payment_router, inventory_router):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def stocked(client):
    for product_id, vendor_id, price, stock in (("prod-x", "vendor-001", 10.0, 5), ("prod-y", "vendor-002", 25.0, 3)):
        response = client.post(
            "/admin/inventory",
            json={
                "product_id": product_id,
                "vendor_id": vendor_id,
                "name": f"Product {product_id}",
                "price": price,
                "stock_quantity": stock,
            },
            headers=ADMIN,
        )
        assert response.status_code == 201


@pytest.fixture()
def placed_order(client, stocked, shipping_address):
    client.post("/cart/items", json={"product_id": "prod-x", "quantity": 2}, headers=BUYER)
    client.post("/cart/items", json={"product_id": "prod-y", "quantity": 1}, headers=BUYER)
    response = client.post("/orders", json={"shipping_address": shipping_address}, headers=BUYER)
    assert response.status_code == 201
    return response.json()


class TestRouteExecution:
    def test_routes_are_plain_functions(self):
        routers = (cart_router, order_router, admin_order_router, payment_router, inventory_router)
        endpoints = [route.endpoint for router in routers for route in router.routes]

        assert endpoints
        assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)


class TestAuthentication:
    def test_missing_user_header(self, client):
        assert client.get("/cart").status_code == 401

    def test_admin_routes_need_admin_role(self, client):
        assert client.get("/admin/orders", headers=BUYER).status_code == 403
        assert client.get("/admin/orders", headers=ADMIN).status_code == 200


class TestInventoryEndpoints:
    def test_register_twice_conflicts(self, client, stocked):
        response = client.post(
            "/admin/inventory",
            json={"product_id": "prod-x", "vendor_id": "vendor-001", "name": "Dup", "price": 1.0},
            headers=ADMIN,
        )
        assert response.status_code == 409

    def test_restock_and_update(self, client, stocked):
        response = client.post("/admin/inventory/prod-x/restock", json={"quantity": 5}, headers=ADMIN)
        assert response.json()["stock_quantity"] == 10

        response = client.patch("/admin/inventory/prod-x", json={"price": 12.0}, headers=ADMIN)
        assert response.json()["price"] == 12.0

    def test_unknown_product(self, client):
        assert client.get("/admin/inventory/nope", headers=ADMIN).status_code == 404


class TestCartEndpoints:
    def test_add_and_view(self, client, stocked):
        response = client.post("/cart/items", json={"product_id": "prod-x", "quantity": 2}, headers=BUYER)
        assert response.status_code == 200
        assert response.json()["subtotal"] == 20.0

        cart = client.get("/cart", headers=BUYER).json()
        assert cart["lines"][0]["product_id"] == "prod-x"

    def test_insufficient_stock_reports_available(self, client, stocked):
        response = client.post("/cart/items", json={"product_id": "prod-y", "quantity": 4}, headers=BUYER)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InsufficientStock"
        assert body["available"] == 3

    def test_unknown_product(self, client):
        response = client.post("/cart/items", json={"product_id": "nope", "quantity": 1}, headers=BUYER)
        assert response.status_code == 404

    def test_update_missing_line(self, client, stocked):
        response = client.put("/cart/items/prod-x", json={"quantity": 2}, headers=BUYER)
        assert response.status_code == 404

    def test_remove_and_clear(self, client, stocked):
        client.post("/cart/items", json={"product_id": "prod-x", "quantity": 1}, headers=BUYER)
        client.post("/cart/items", json={"product_id": "prod-y", "quantity": 1}, headers=BUYER)

        response = client.delete("/cart/items/prod-x", headers=BUYER)
        assert response.json()["unique_items"] == 1

        response = client.delete("/cart", headers=BUYER)
        assert response.json()["lines"] == []


class TestOrderEndpoints:
    def test_place_order(self, placed_order):
        assert placed_order["status"] == "PENDING"
        assert placed_order["total_amount"] == 45.0

    def test_empty_cart_is_bad_request(self, client, shipping_address):
        response = client.post("/orders", json={"shipping_address": shipping_address}, headers=BUYER)
        assert response.status_code == 400
        assert response.json()["error"] == "EmptyCart"

    def test_order_is_private(self, client, placed_order):
        assert client.get(f"/orders/{placed_order['id']}", headers=BUYER).status_code == 200
        assert client.get(f"/orders/{placed_order['id']}", headers=OTHER).status_code == 403
        assert client.get(f"/orders/{placed_order['id']}", headers=ADMIN).status_code == 200

    def test_by_number_and_list(self, client, placed_order):
        response = client.get(f"/orders/number/{placed_order['order_number']}", headers=BUYER)
        assert response.json()["id"] == placed_order["id"]

        page = client.get("/orders", headers=BUYER).json()
        assert page["total"] == 1
        assert client.get("/orders", headers=OTHER).json()["total"] == 0

    def test_cancel(self, client, placed_order):
        response = client.post(f"/orders/{placed_order['id']}/cancel", headers=BUYER)
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

        again = client.post(f"/orders/{placed_order['id']}/cancel", headers=BUYER)
        assert again.status_code == 409

    def test_unknown_order(self, client):
        assert client.get("/orders/missing", headers=BUYER).status_code == 404


class TestAdminOrderEndpoints:
    def test_status_tracking_and_fulfillment(self, client, placed_order):
        order_id = placed_order["id"]

        response = client.patch(f"/admin/orders/{order_id}/status", json={"status": "shipped"}, headers=ADMIN)
        assert response.json()["status"] == "SHIPPED"

        response = client.patch(
            f"/admin/orders/{order_id}/tracking",
            json={"tracking_number": "1Z999", "shipping_carrier": "UPS"},
            headers=ADMIN,
        )
        assert response.json()["tracking_number"] == "1Z999"

        item_id = placed_order["items"][0]["id"]
        response = client.patch(
            f"/admin/orders/{order_id}/items/{item_id}/fulfillment",
            json={"status": "PROCESSING"},
            headers=ADMIN,
        )
        assert response.status_code == 200

    def test_unknown_status_is_rejected(self, client, placed_order):
        response = client.patch(
            f"/admin/orders/{placed_order['id']}/status", json={"status": "LOST"}, headers=ADMIN
        )
        assert response.status_code == 400


class TestPaymentEndpoints:
    def test_pay_and_simulate_success(self, client, placed_order):
        response = client.post(
            "/payments",
            json={"order_id": placed_order["id"], "payment_method": "credit_card", "card_last_four": "4242"},
            headers=BUYER,
        )
        assert response.status_code == 201
        payment = response.json()
        assert payment["status"] == "PENDING"

        response = client.post(f"/payments/{payment['id']}/simulate/success", headers=BUYER)
        assert response.json()["status"] == "COMPLETED"

        order = client.get(f"/orders/{placed_order['id']}", headers=BUYER).json()
        assert order["status"] == "PROCESSING"

        by_order = client.get(f"/orders/{placed_order['id']}/payment", headers=BUYER).json()
        assert by_order["id"] == payment["id"]

    def test_duplicate_initiation_conflicts(self, client, placed_order):
        body = {"order_id": placed_order["id"], "payment_method": "CREDIT_CARD"}
        assert client.post("/payments", json=body, headers=BUYER).status_code == 201
        response = client.post("/payments", json=body, headers=BUYER)
        assert response.status_code == 409
        assert response.json()["error"] == "PaymentAlreadyInProgress"

    def test_confirm_and_lookup_by_transaction(self, client, placed_order):
        payment = client.post(
            "/payments", json={"order_id": placed_order["id"], "payment_method": "UPI"}, headers=BUYER
        ).json()

        response = client.post(
            f"/payments/{payment['id']}/confirm",
            json={"transaction_id": "TXN-7", "success": False, "failure_reason": "Declined"},
            headers=BUYER,
        )
        assert response.json()["status"] == "FAILED"

        assert client.get("/payments/transaction/TXN-7", headers=BUYER).status_code == 403
        response = client.get("/payments/transaction/TXN-7", headers=ADMIN)
        assert response.json()["failure_reason"] == "Declined"

    def test_simulation_disabled_in_production(self, client, placed_order, monkeypatch):
        payment = client.post(
            "/payments", json={"order_id": placed_order["id"], "payment_method": "UPI"}, headers=BUYER
        ).json()
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert client.post(f"/payments/{payment['id']}/simulate/success", headers=BUYER).status_code == 403
