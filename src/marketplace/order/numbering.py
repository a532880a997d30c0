"""Order number generation.

Numbers look like ``ORD-20240131235959-1A2B3C4D``: the UTC placement time to
the second plus eight random hex digits. They are not checked against
existing orders before insertion.
"""

from datetime import UTC, datetime
from uuid import uuid4


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d%H%M%S}-{uuid4().hex[:8].upper()}"
