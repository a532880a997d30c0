"""Shared BDD fixtures and step definitions for the marketplace workflow."""

import pytest
from marketplace import services
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def context():
    """Mutable scenario state: last order, payment and captured error."""
    return {"order": None, "payment": None, "first_payment_id": None, "error": None}


@pytest.fixture()
def attempt(context):
    """Run an operation, capturing a rejection for the Then steps."""

    def _attempt(operation, *args, **kwargs):
        context["error"] = None
        try:
            return operation(*args, **kwargs)
        except Exception as exc:
            context["error"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('product "{product_id}" from vendor "{vendor_id}" priced {price:f} with {stock:d} in stock'))
def _(product, product_id, vendor_id, price, stock):
    product(product_id, price=price, stock=stock, vendor_id=vendor_id)


@given(parsers.cfparse('product "{product_id}" is "{status}"'))
def _(product_id, status):
    services.update_inventory_item(product_id, status=status)


@given(parsers.cfparse('"{user_id}" has {quantity:d} of "{product_id}" in the cart'))
def _(user_id, quantity, product_id):
    services.add_to_cart(user_id, product_id, quantity)


@given(parsers.cfparse('"{user_id}" has checked out'))
def _(context, shipping_address, user_id):
    context["order"] = services.place_order(user_id, shipping_address)


@given(parsers.cfparse('"{user_id}" started a "{method}" payment'))
def _(context, user_id, method):
    context["payment"] = services.initiate_payment(user_id, context["order"]["id"], method)
    context["first_payment_id"] = context["payment"]["id"]


@given("the gateway accepts the payment")
@when("the gateway accepts the payment")
def _(context):
    context["payment"] = services.simulate_payment_success(context["payment"]["id"])


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request is rejected with "{error_name}"'))
def _(context, error_name):
    assert context["error"] is not None, "expected the request to be rejected"
    assert type(context["error"]).__name__ == error_name


@then(parsers.cfparse('the order is "{status}" with total {total:f}'))
def _(context, status, total):
    order = services.get_order(None, context["order"]["id"], admin=True)
    assert order["status"] == status
    assert order["total_amount"] == pytest.approx(total)


@then(parsers.cfparse('"{product_id}" has {stock:d} in stock and {sold:d} sold'))
def _(product_id, stock, sold):
    item = services.get_inventory_item(product_id)
    assert item["stock_quantity"] == stock
    assert item["sold_count"] == sold


@then(parsers.cfparse('the cart of "{user_id}" is empty'))
def _(user_id):
    assert services.get_cart(user_id)["lines"] == []


@then(parsers.cfparse('the cart of "{user_id}" holds {quantity:d} of "{product_id}"'))
def _(user_id, quantity, product_id):
    lines = {line["product_id"]: line["quantity"] for line in services.get_cart(user_id)["lines"]}
    assert lines[product_id] == quantity
