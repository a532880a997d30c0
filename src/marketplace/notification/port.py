"""Notification port — outbound order notifications.

Rendering and delivery belong to the notification service. The marketplace
hands over flattened order snapshots.
"""

from abc import ABC, abstractmethod


class NotificationPort(ABC):
    @abstractmethod
    def order_confirmed(self, order: dict) -> None:
        """Tell the buyer their order was placed."""

    @abstractmethod
    def vendor_notified(self, order: dict, vendor_id: str, items: list[dict]) -> None:
        """Tell one vendor about the items of ``order`` they have to ship."""

    @abstractmethod
    def order_delivered(self, order: dict) -> None:
        """Tell the buyer their order arrived."""
