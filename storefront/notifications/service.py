# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Notification service layer.

Business logic for:
- Persisting notifications and tracking unread counts
- Pushing realtime events (Redis pub/sub, or in-process sockets without Redis)
- Listing notifications and marking them as read
"""

import json
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from storefront.core.logging import get_logger
from storefront.core.redis import notification_channel
from storefront.utils import utc_now

from .models import Notification, NotificationType
from .schemas import (
    NotificationListResponse,
    NotificationResponse,
    decode_cursor,
    encode_cursor,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

    from .websocket_router import ConnectionManager


logger = get_logger(__name__)

# Notifications scanned when resolving ids for mark-as-read
MARK_READ_SCAN_LIMIT = 1000


class NotificationService:
    """Service for notification management."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        connections: "ConnectionManager | None" = None,
    ):
        """Initialize with Cassandra session, optional Redis and socket registry."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.connections = connections
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_notification = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.notifications
            (user_id, created_at, notification_id, type, title, message, actor_id,
             actor_name, actor_avatar, reference_id, reference_type, link, metadata,
             is_read, read_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_notifications = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications
            WHERE user_id = ?
            LIMIT ?
        """)

        self._get_notifications_before = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.notifications
            WHERE user_id = ? AND created_at < ?
            LIMIT ?
        """)

        self._mark_read = self.session.prepare(f"""
            UPDATE {self.keyspace}.notifications
            SET is_read = true, read_at = ?
            WHERE user_id = ? AND created_at = ? AND notification_id = ?
        """)

        self._incr_unread = self.session.prepare(f"""
            UPDATE {self.keyspace}.notification_unread_counts
            SET count = count + 1
            WHERE user_id = ?
        """)

        self._decr_unread = self.session.prepare(f"""
            UPDATE {self.keyspace}.notification_unread_counts
            SET count = count - ?
            WHERE user_id = ?
        """)

        self._get_unread_count = self.session.prepare(f"""
            SELECT count FROM {self.keyspace}.notification_unread_counts
            WHERE user_id = ?
        """)

    # ==========================================================================
    # Creation and delivery
    # ==========================================================================

    async def create_notification(self, notification: Notification) -> Notification:
        """Persist a notification and bump the recipient's unread counter."""
        await self.session.aexecute(
            self._insert_notification,
            [
                notification.user_id,
                notification.created_at,
                notification.notification_id,
                notification.type.value,
                notification.title,
                notification.message,
                notification.actor_id,
                notification.actor_name,
                notification.actor_avatar,
                notification.reference_id,
                notification.reference_type,
                notification.link,
                notification.metadata,
                notification.is_read,
                notification.read_at,
            ],
        )
        await self.session.aexecute(self._incr_unread, [notification.user_id])

        logger.info(
            "notification_created",
            notification_id=str(notification.notification_id),
            recipient_id=str(notification.user_id),
            type=notification.type.value,
        )
        return notification

    async def notify_comment_reply(
        self, target_user_id: UUID, payload: dict[str, Any]
    ) -> None:
        """Push a reply event to the recipient's open sessions."""
        await self.publish(
            target_user_id,
            {"type": NotificationType.COMMENT_REPLY.value, "data": payload},
        )

    async def publish(self, user_id: UUID, message: dict[str, Any]) -> None:
        """Send a realtime message to one user.

        With Redis the message goes to the user's channel, where every API
        worker holding a socket for that user picks it up. Without Redis only
        sockets held by this process are reached.
        """
        if self.redis is not None:
            await self.redis.publish(
                notification_channel(str(user_id)), json.dumps(message)
            )
            return

        if self.connections is not None:
            await self.connections.send_to_user(str(user_id), message)
            return

        logger.debug("realtime_delivery_unavailable", user_id=str(user_id))

    # ==========================================================================
    # Reading
    # ==========================================================================

    async def get_notifications(
        self,
        user_id: UUID,
        limit: int = 20,
        cursor: str | None = None,
        unread_only: bool = False,
    ) -> NotificationListResponse:
        """Get notifications for a user, newest first.

        Raises:
            ValueError: If ``cursor`` is malformed.
        """
        before = decode_cursor(cursor) if cursor else None
        fetch_size = limit + 1
        notifications: list[Notification] = []

        # Filter before cutting the page; read older batches until it is full
        while True:
            batch = await self._fetch_batch(user_id, before, fetch_size)
            notifications.extend(
                n for n in batch if not (unread_only and n.is_read)
            )
            if len(notifications) > limit or len(batch) < fetch_size:
                break
            before = batch[-1].created_at

        has_more = len(notifications) > limit
        notifications = notifications[:limit]

        next_cursor = None
        if has_more and notifications:
            next_cursor = encode_cursor(notifications[-1].created_at)

        return NotificationListResponse(
            items=[NotificationResponse.from_notification(n) for n in notifications],
            unread_count=await self.get_unread_count(user_id),
            has_more=has_more,
            next_cursor=next_cursor,
        )

    async def _fetch_batch(
        self, user_id: UUID, before: datetime | None, size: int
    ) -> list[Notification]:
        if before is not None:
            rows = await self.session.aexecute(
                self._get_notifications_before, [user_id, before, size]
            )
        else:
            rows = await self.session.aexecute(self._get_notifications, [user_id, size])
        return [Notification.from_row(row) for row in rows]

    async def get_unread_count(self, user_id: UUID) -> int:
        result = await self.session.aexecute(self._get_unread_count, [user_id])
        row = result.one()
        return max(row.count, 0) if row and row.count else 0

    # ==========================================================================
    # Mark as Read
    # ==========================================================================

    async def mark_as_read(
        self,
        user_id: UUID,
        notification_ids: list[UUID] | None = None,
    ) -> int:
        """Mark notifications as read; all unread ones when ids are omitted.

        Returns count of notifications marked as read.
        """
        wanted = set(notification_ids) if notification_ids is not None else None
        now = utc_now()
        marked = 0

        rows = await self.session.aexecute(
            self._get_notifications, [user_id, MARK_READ_SCAN_LIMIT]
        )
        for row in rows:
            if row.is_read:
                continue
            if wanted is not None and row.notification_id not in wanted:
                continue
            await self.session.aexecute(
                self._mark_read,
                [now, user_id, row.created_at, row.notification_id],
            )
            marked += 1

        if marked:
            await self.session.aexecute(self._decr_unread, [marked, user_id])

        return marked
