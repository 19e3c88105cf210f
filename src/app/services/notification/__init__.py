"""Notification delivery module."""

from app.services.notification.notifier import (
    LogNotifier,
    WebhookNotifier,
    get_notifier,
    notify_safely,
)

__all__ = [
    "LogNotifier",
    "WebhookNotifier",
    "get_notifier",
    "notify_safely",
]
