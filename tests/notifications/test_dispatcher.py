"""Tests for fire-and-forget notification dispatch."""

import asyncio
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from storefront.notifications.dispatcher import NotificationDispatcher
from storefront.notifications.models import CommentReplyContext
from storefront.notifications.service import NotificationService


@pytest.fixture
def notification_service() -> Mock:
    service = Mock(spec=NotificationService)
    service.create_notification = AsyncMock(side_effect=lambda n: n)
    service.notify_comment_reply = AsyncMock()
    return service


@pytest.fixture
def ctx() -> CommentReplyContext:
    return CommentReplyContext(
        recipient_id=uuid4(),
        actor_id=uuid4(),
        actor_name="Ben",
        actor_avatar=None,
        reply_id=uuid4(),
        reply_content="I agree with this review completely, same experience here",
        parent_comment_id=uuid4(),
        product_id=uuid4(),
        product_name="Trail Runner",
    )


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_dispatch_persists_then_pushes(
        self, notification_service: Mock, ctx: CommentReplyContext
    ):
        dispatcher = NotificationDispatcher(notification_service, preview_length=10)

        task = dispatcher.dispatch_comment_reply(ctx)
        await task

        notification_service.create_notification.assert_awaited_once()
        recipient, payload = notification_service.notify_comment_reply.call_args.args
        assert recipient == ctx.recipient_id
        assert payload["message"] == 'Ben replied: "I agree wi..."'
        assert dispatcher.get_stats() == {"pending": 0, "delivered": 1, "failed": 0}

    @pytest.mark.asyncio
    async def test_dispatch_returns_before_delivery(
        self, notification_service: Mock, ctx: CommentReplyContext
    ):
        release = asyncio.Event()

        async def slow_create(notification):
            await release.wait()
            return notification

        notification_service.create_notification.side_effect = slow_create
        dispatcher = NotificationDispatcher(notification_service)

        dispatcher.dispatch_comment_reply(ctx)
        await asyncio.sleep(0)

        assert dispatcher.pending == 1
        notification_service.notify_comment_reply.assert_not_awaited()

        release.set()
        await dispatcher.drain()
        assert dispatcher.pending == 0
        notification_service.notify_comment_reply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(
        self, notification_service: Mock, ctx: CommentReplyContext
    ):
        notification_service.create_notification.side_effect = ConnectionError("down")
        dispatcher = NotificationDispatcher(notification_service)

        await dispatcher.dispatch_comment_reply(ctx)

        notification_service.notify_comment_reply.assert_not_awaited()
        assert dispatcher.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_push_failure_after_persist_is_swallowed(
        self, notification_service: Mock, ctx: CommentReplyContext
    ):
        notification_service.notify_comment_reply.side_effect = RuntimeError("boom")
        dispatcher = NotificationDispatcher(notification_service)

        await dispatcher.dispatch_comment_reply(ctx)

        notification_service.create_notification.assert_awaited_once()
        assert dispatcher.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_drain_without_tasks(self, notification_service: Mock):
        dispatcher = NotificationDispatcher(notification_service)

        await dispatcher.drain()

        assert dispatcher.pending == 0
