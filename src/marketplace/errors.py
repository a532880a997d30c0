"""Marketplace error taxonomy.

Every error derives from a Protean exception so that command handlers roll
back their unit of work and the FastAPI integration can translate them.
Messages follow Protean's ``{"field": ["message"]}`` convention.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


# ---------------------------------------------------------------------------
# Missing resources
# ---------------------------------------------------------------------------
class NotFound(ObjectNotFoundError):
    resource = "resource"

    def __init__(self, identifier):
        self.identifier = str(identifier)
        self.messages = {self.resource: [f"{self.resource.capitalize()} {identifier} does not exist"]}
        super().__init__(self.messages)


class ProductNotFound(NotFound):
    resource = "product"


class OrderNotFound(NotFound):
    resource = "order"


class PaymentNotFound(NotFound):
    resource = "payment"


class UserNotFound(NotFound):
    resource = "user"


class CartLineNotFound(NotFound):
    resource = "product"

    def __init__(self, product_id):
        super().__init__(product_id)
        self.messages = {"product_id": [f"Product {product_id} not found in cart"]}


# ---------------------------------------------------------------------------
# Rule violations
# ---------------------------------------------------------------------------
class Conflict(ValidationError):
    pass


class PaymentAlreadyInProgress(Conflict):
    def __init__(self, order_id, status):
        self.order_id = str(order_id)
        self.status = status
        super().__init__({"payment": [f"Payment for order {order_id} is already {status}"]})


class InvalidState(ValidationError):
    pass


class EmptyCart(InvalidState):
    def __init__(self, user_id):
        self.user_id = str(user_id)
        super().__init__({"cart": ["Cart is empty"]})


class InsufficientStock(ValidationError):
    def __init__(self, product_id, available, requested):
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
        super().__init__(
            {"quantity": [f"Insufficient stock: {available} available, {requested} requested"]}
        )


class ProductUnavailable(ValidationError):
    def __init__(self, product_id, status):
        self.product_id = str(product_id)
        self.status = status
        super().__init__({"product_id": [f"Product {product_id} is not available for purchase ({status})"]})


class NotOwner(ValidationError):
    def __init__(self, resource, identifier):
        super().__init__({resource: [f"You do not have access to {resource} {identifier}"]})
