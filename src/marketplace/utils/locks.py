"""In-process resource locks held around a whole unit of work.

Stock checks and stock decrements happen in separate steps inside one unit of
work, so two checkouts could both pass the check before either commits. Every
service that mutates a cart, an order or a product's stock holds the matching
keyed lock for the full ``process`` call, commit included.

Acquisition order is owner key (``cart:`` or ``order:``) first, then all
``stock:`` keys in sorted order. Only one process is covered; several workers
sharing a database need row-level locks there.

A key's lock lives in the registry only while some thread holds or waits for
it, so the registry does not grow with the number of carts and orders seen.
"""

import threading
from contextlib import ExitStack, contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


_registry_guard = threading.Lock()
_locks: dict[str, _Entry] = {}


def _acquire(key: str) -> None:
    with _registry_guard:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = _Entry()
        entry.users += 1
    entry.lock.acquire()


def _release(key: str) -> None:
    with _registry_guard:
        entry = _locks[key]
        entry.lock.release()
        entry.users -= 1
        if entry.users == 0:
            del _locks[key]


@contextmanager
def hold(*keys: str):
    """Acquire the locks for ``keys`` in sorted order and release on exit."""
    with ExitStack() as stack:
        for key in sorted(set(keys)):
            _acquire(key)
            stack.callback(_release, key)
        yield


def held_keys() -> set[str]:
    """Keys currently held or waited on by some thread."""
    with _registry_guard:
        return set(_locks)


def cart_key(user_id) -> str:
    return f"cart:{user_id}"


def order_key(order_id) -> str:
    return f"order:{order_id}"


def stock_key(product_id) -> str:
    return f"stock:{product_id}"
