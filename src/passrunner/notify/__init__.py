"""Notification sinks for retrieval results."""

from .sink import (
    ConsoleNotifier,
    DesktopNotifier,
    NotificationSink,
    NullNotifier,
    build_notifier,
    format_copied_message,
    format_failure_message,
)

__all__ = [
    "ConsoleNotifier",
    "DesktopNotifier",
    "NotificationSink",
    "NullNotifier",
    "build_notifier",
    "format_copied_message",
    "format_failure_message",
]
