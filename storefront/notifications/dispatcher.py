"""Fire-and-forget notification delivery.

Request handlers hand work to the dispatcher and return immediately.
Delivery (persist + realtime push) runs as a background task; failures are
logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from .models import (
    CommentReplyContext,
    build_comment_reply_event,
    create_comment_reply_notification,
)


if TYPE_CHECKING:
    from .service import NotificationService


logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Schedules notification deliveries outside the request path."""

    def __init__(
        self,
        service: NotificationService,
        preview_length: int = 50,
    ) -> None:
        """Initialize dispatcher.

        Args:
            service: Notification service that persists and pushes
            preview_length: Characters of reply text included in realtime events
        """
        self.service = service
        self.preview_length = preview_length
        self._tasks: set[asyncio.Task] = set()
        self._delivered = 0
        self._failed = 0

    def dispatch_comment_reply(self, ctx: CommentReplyContext) -> asyncio.Task:
        """Schedule delivery of a reply notification and return at once."""
        task = asyncio.create_task(self._deliver_comment_reply(ctx))
        # Keep a reference so the task is not garbage collected mid-flight
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver_comment_reply(self, ctx: CommentReplyContext) -> None:
        try:
            notification = create_comment_reply_notification(ctx)
            await self.service.create_notification(notification)
            await self.service.notify_comment_reply(
                ctx.recipient_id,
                build_comment_reply_event(notification, ctx, self.preview_length),
            )
        except Exception as e:
            self._failed += 1
            logger.warning(
                "notification_dispatch_failed",
                error=str(e),
                error_type=type(e).__name__,
                recipient_id=str(ctx.recipient_id),
                reply_id=str(ctx.reply_id),
            )
            return

        self._delivered += 1
        logger.debug(
            "notification_dispatched",
            recipient_id=str(ctx.recipient_id),
            reply_id=str(ctx.reply_id),
        )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def get_stats(self) -> dict[str, int]:
        return {
            "pending": self.pending,
            "delivered": self._delivered,
            "failed": self._failed,
        }

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
