"""Marketplace bounded context — carts, inventory, orders and payments.

A single domain so that checkout, which touches the buyer's cart, every
product's stock and the new order, commits in one unit of work.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
