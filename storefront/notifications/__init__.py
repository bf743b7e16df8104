"""Notifications module.

Provides:
- Notification persistence and unread counts
- Realtime delivery over Redis pub/sub and WebSockets
- Fire-and-forget dispatch for request handlers

Note: Routers are imported directly in main.py to avoid circular imports.
"""

from storefront.notifications.dispatcher import NotificationDispatcher
from storefront.notifications.models import (
    NOTIFICATIONS_TABLES_CQL,
    CommentReplyContext,
    Notification,
    NotificationType,
)
from storefront.notifications.service import NotificationService


__all__ = [
    "NOTIFICATIONS_TABLES_CQL",
    "CommentReplyContext",
    "Notification",
    "NotificationDispatcher",
    "NotificationService",
    "NotificationType",
]
