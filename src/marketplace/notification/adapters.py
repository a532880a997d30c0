"""Notification adapters: structured-log output and an in-memory recorder."""

import structlog

from marketplace.notification.port import NotificationPort

logger = structlog.get_logger(__name__)


class LogNotifier(NotificationPort):
    """Writes each notification as a log event. Default until a real channel is wired."""

    def order_confirmed(self, order: dict) -> None:
        logger.info(
            "notify_order_confirmed",
            order_number=order["order_number"],
            user_id=order["user_id"],
            total_amount=order["total_amount"],
        )

    def vendor_notified(self, order: dict, vendor_id: str, items: list[dict]) -> None:
        logger.info(
            "notify_vendor",
            order_number=order["order_number"],
            vendor_id=vendor_id,
            items=len(items),
        )

    def order_delivered(self, order: dict) -> None:
        logger.info("notify_order_delivered", order_number=order["order_number"], user_id=order["user_id"])


class RecordingNotifier(NotificationPort):
    """Records notifications in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True

    def configure(self, should_succeed: bool = True):
        self.should_succeed = should_succeed

    def _record(self, kind: str, order: dict, **extra) -> None:
        if not self.should_succeed:
            raise ConnectionError("Notification channel unavailable")
        self.sent.append({"kind": kind, "order_number": order["order_number"], "order": order, **extra})

    def order_confirmed(self, order: dict) -> None:
        self._record("order_confirmed", order)

    def vendor_notified(self, order: dict, vendor_id: str, items: list[dict]) -> None:
        self._record("vendor_notified", order, vendor_id=vendor_id, items=items)

    def order_delivered(self, order: dict) -> None:
        self._record("order_delivered", order)

    def of_kind(self, kind: str) -> list[dict]:
        return [record for record in self.sent if record["kind"] == kind]

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
