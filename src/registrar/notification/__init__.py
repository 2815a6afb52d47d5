"""Notification sender registry. Defaults to the in-memory fake."""

from registrar.notification.fake_sender import FakeNotificationSender
from registrar.notification.port import NotificationSender

_current_sender: NotificationSender | None = None


def get_sender() -> NotificationSender:
    global _current_sender
    if _current_sender is None:
        _current_sender = FakeNotificationSender()
    return _current_sender


def set_sender(sender: NotificationSender) -> None:
    global _current_sender
    _current_sender = sender


def reset_sender() -> None:
    global _current_sender
    _current_sender = None
