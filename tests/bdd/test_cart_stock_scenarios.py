"""BDD tests for stock checks on cart changes."""

from marketplace import services
from pytest_bdd import parsers, scenarios, when

scenarios("features/cart_stock.feature")


@when(parsers.cfparse('"{user_id}" adds {quantity:d} of "{product_id}" to the cart'))
def _(context, attempt, user_id, quantity, product_id):
    attempt(services.add_to_cart, user_id, product_id, quantity)
