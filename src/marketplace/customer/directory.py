"""User directory port.

Users live in the identity service. The marketplace only needs to know
whether an id belongs to a registered user before it opens a cart or places
an order.
"""

from abc import ABC, abstractmethod


class UserDirectory(ABC):
    @abstractmethod
    def exists(self, user_id: str) -> bool:
        """Return True when ``user_id`` names a registered user."""


class TrustingDirectory(UserDirectory):
    """Accepts every id; the auth layer has already verified the caller."""

    def exists(self, user_id: str) -> bool:
        return bool(user_id)


class InMemoryDirectory(UserDirectory):
    """Knows a fixed set of users. Used in tests and local development."""

    def __init__(self, user_ids=()):
        self.user_ids: set[str] = {str(user_id) for user_id in user_ids}

    def register(self, user_id: str) -> None:
        self.user_ids.add(str(user_id))

    def exists(self, user_id: str) -> bool:
        return str(user_id) in self.user_ids
