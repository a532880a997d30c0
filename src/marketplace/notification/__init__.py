"""Notifier factory.

Provides get_notifier() / set_notifier() to swap implementations:
- LogNotifier by default
- RecordingNotifier for tests
"""

from marketplace.notification.adapters import LogNotifier
from marketplace.notification.port import NotificationPort

_current_notifier: NotificationPort | None = None


def get_notifier() -> NotificationPort:
    global _current_notifier
    if _current_notifier is None:
        _current_notifier = LogNotifier()
    return _current_notifier


def set_notifier(notifier: NotificationPort) -> None:
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
