"""Admin notifications."""

from launchproxy.notifications.telegram import AdminNotifier, close_bot

__all__ = ["AdminNotifier", "close_bot"]
