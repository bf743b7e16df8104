"""Pydantic schemas for notifications."""

import base64
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from storefront.notifications.models import Notification, NotificationType


# ==============================================================================
# Response Schemas
# ==============================================================================


class NotificationActor(BaseModel):
    id: UUID
    name: str | None = None
    avatar: str | None = None


class NotificationResponse(BaseModel):
    """Single notification response."""

    id: UUID = Field(description="Notification ID")
    type: NotificationType = Field(description="Notification type")
    title: str = Field(description="Notification title")
    message: str = Field(description="Notification message")
    actor: NotificationActor | None = Field(
        None, description="User who triggered the notification"
    )
    reference_id: UUID | None = Field(None, description="Related entity ID")
    reference_type: str | None = Field(None, description="Related entity type")
    link: str | None = Field(None, description="Client route to open")
    metadata: dict[str, str] = Field(default_factory=dict)
    is_read: bool = Field(description="Whether notification was read")
    read_at: datetime | None = Field(None, description="When notification was read")
    created_at: datetime = Field(description="When notification was created")

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        actor = None
        if notification.actor_id:
            actor = NotificationActor(
                id=notification.actor_id,
                name=notification.actor_name,
                avatar=notification.actor_avatar,
            )

        return cls(
            id=notification.notification_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            actor=actor,
            reference_id=notification.reference_id,
            reference_type=notification.reference_type,
            link=notification.link,
            metadata=notification.metadata,
            is_read=notification.is_read,
            read_at=notification.read_at,
            created_at=notification.created_at,
        )


class NotificationListResponse(BaseModel):
    """Cursor-paginated notification list."""

    items: list[NotificationResponse] = Field(description="List of notifications")
    unread_count: int = Field(description="Unread notification count")
    has_more: bool = Field(description="Whether more notifications exist")
    next_cursor: str | None = Field(None, description="Cursor for next page")


class UnreadCountResponse(BaseModel):
    count: int = Field(description="Number of unread notifications")


class MarkReadResponse(BaseModel):
    marked_count: int = Field(description="Number of notifications marked as read")
    unread_count: int = Field(description="Remaining unread count")


# ==============================================================================
# Request Schemas
# ==============================================================================


class MarkReadRequest(BaseModel):
    notification_ids: list[UUID] = Field(
        min_length=1, description="Notification IDs to mark as read"
    )


# ==============================================================================
# Cursor Encoding/Decoding
# ==============================================================================


def encode_cursor(created_at: datetime) -> str:
    """Opaque cursor pointing just past ``created_at``."""
    return base64.urlsafe_b64encode(created_at.isoformat().encode()).decode()


def decode_cursor(cursor: str) -> datetime:
    """Decode pagination cursor.

    Raises:
        ValueError: If the cursor was not produced by ``encode_cursor``.
    """
    try:
        return datetime.fromisoformat(base64.urlsafe_b64decode(cursor.encode()).decode())
    except (ValueError, UnicodeDecodeError) as e:
        msg = f"Invalid cursor format: {e}"
        raise ValueError(msg) from e
