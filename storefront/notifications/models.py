"""Database models for user notifications.

Cassandra table definitions for:
- notifications: partitioned by recipient, newest first
- notification_unread_counts: counter per recipient

Notification types:
- COMMENT_REPLY: someone replied to the user's product comment
- SYSTEM: announcement written by other services
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from storefront.utils import ensure_utc_aware, utc_now


class NotificationType(str, Enum):
    """Types of notifications."""

    COMMENT_REPLY = "comment_reply"
    SYSTEM = "system"


COMMENT_REPLY_TITLE = "Someone replied to your comment"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

NOTIFICATION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notifications (
    user_id UUID,
    created_at TIMESTAMP,
    notification_id UUID,
    type TEXT,
    title TEXT,
    message TEXT,
    actor_id UUID,
    actor_name TEXT,
    actor_avatar TEXT,
    reference_id UUID,
    reference_type TEXT,
    link TEXT,
    metadata MAP<TEXT, TEXT>,
    is_read BOOLEAN,
    read_at TIMESTAMP,
    PRIMARY KEY ((user_id), created_at, notification_id)
) WITH CLUSTERING ORDER BY (created_at DESC, notification_id ASC)
"""

UNREAD_COUNT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notification_unread_counts (
    user_id UUID PRIMARY KEY,
    count COUNTER
)
"""

NOTIFICATIONS_TABLES_CQL = [
    NOTIFICATION_TABLE_CQL,
    UNREAD_COUNT_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Notification:
    """Notification entity with full details."""

    notification_id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    actor_id: UUID | None = None
    actor_name: str | None = None
    actor_avatar: str | None = None
    reference_id: UUID | None = None
    reference_type: str | None = None
    link: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: Any) -> "Notification":
        """Create Notification from Cassandra row."""
        return cls(
            notification_id=row.notification_id,
            user_id=row.user_id,
            type=NotificationType(row.type),
            title=row.title,
            message=row.message,
            actor_id=row.actor_id,
            actor_name=row.actor_name,
            actor_avatar=row.actor_avatar,
            reference_id=row.reference_id,
            reference_type=row.reference_type,
            link=row.link,
            metadata=dict(row.metadata or {}),
            is_read=row.is_read or False,
            read_at=ensure_utc_aware(row.read_at),
            created_at=ensure_utc_aware(row.created_at),
        )


@dataclass
class CommentReplyContext:
    """Everything needed to tell a comment author about a reply."""

    recipient_id: UUID
    actor_id: UUID
    actor_name: str
    actor_avatar: str | None
    reply_id: UUID
    reply_content: str
    parent_comment_id: UUID
    product_id: UUID
    product_name: str


# ==============================================================================
# Factory Functions
# ==============================================================================


def truncate_preview(text: str, length: int) -> str:
    """First ``length`` characters, with ``...`` appended when cut."""
    if len(text) > length:
        return f"{text[:length]}..."
    return text


def comment_link(product_id: UUID, comment_id: UUID) -> str:
    """Deep link to a comment thread on the product page."""
    return f"/products-detail/{product_id}?comment={comment_id}"


def create_comment_reply_notification(ctx: CommentReplyContext) -> Notification:
    """Create the stored notification for a reply."""
    return Notification(
        notification_id=uuid4(),
        user_id=ctx.recipient_id,
        type=NotificationType.COMMENT_REPLY,
        title=COMMENT_REPLY_TITLE,
        message=(
            f'{ctx.actor_name} replied to your comment on product "{ctx.product_name}"'
        ),
        actor_id=ctx.actor_id,
        actor_name=ctx.actor_name,
        actor_avatar=ctx.actor_avatar,
        reference_id=ctx.reply_id,
        reference_type="comment",
        link=comment_link(ctx.product_id, ctx.parent_comment_id),
        metadata={
            "comment_content": ctx.reply_content,
            "product_id": str(ctx.product_id),
            "product_name": ctx.product_name,
            "parent_comment_id": str(ctx.parent_comment_id),
        },
    )


def build_comment_reply_event(
    notification: Notification,
    ctx: CommentReplyContext,
    preview_length: int,
) -> dict[str, Any]:
    """Realtime payload pushed to the recipient's open sessions."""
    preview = truncate_preview(ctx.reply_content, preview_length)
    return {
        "notification_id": str(notification.notification_id),
        "type": notification.type.value,
        "title": notification.title,
        "message": f'{ctx.actor_name} replied: "{preview}"',
        "link": notification.link,
        "actor": {
            "id": str(ctx.actor_id),
            "name": ctx.actor_name,
            "avatar": ctx.actor_avatar,
        },
        "timestamp": notification.created_at.isoformat(),
        "metadata": {"product_name": ctx.product_name},
    }
