"""Tests for NotificationService."""

import json
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session

from storefront.notifications.models import Notification, NotificationType
from storefront.notifications.schemas import encode_cursor
from storefront.notifications.service import NotificationService
from storefront.notifications.websocket_router import ConnectionManager


class FakeResult(list):
    def one(self):
        return self[0] if self else None


def notification_row(
    user_id: UUID, minutes_ago: int = 0, is_read: bool = False
) -> SimpleNamespace:
    return SimpleNamespace(
        notification_id=uuid4(),
        user_id=user_id,
        type="comment_reply",
        title="Someone replied to your comment",
        message="Ben replied",
        actor_id=uuid4(),
        actor_name="Ben",
        actor_avatar=None,
        reference_id=uuid4(),
        reference_type="comment",
        link="/products-detail/x?comment=y",
        metadata={"product_name": "Trail Runner"},
        is_read=is_read,
        read_at=None,
        created_at=datetime(2025, 1, 1, 12, 0) - timedelta(minutes=minutes_ago),
    )


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: cql)
    session.aexecute = AsyncMock(return_value=FakeResult())
    return session


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


class TestCreateAndPublish:
    @pytest.mark.asyncio
    async def test_create_persists_and_increments_unread(self, mock_session):
        service = NotificationService(mock_session, "test_keyspace")
        notification = Notification(
            notification_id=uuid4(),
            user_id=uuid4(),
            type=NotificationType.COMMENT_REPLY,
            title="t",
            message="m",
        )

        result = await service.create_notification(notification)

        assert result is notification
        calls = mock_session.aexecute.call_args_list
        assert len(calls) == 2
        assert calls[0].args[1][0] == notification.user_id
        assert "count = count + 1" in calls[1].args[0]

    @pytest.mark.asyncio
    async def test_publish_uses_redis_channel(self, mock_session, user_id: UUID):
        redis = AsyncMock()
        service = NotificationService(mock_session, "test_keyspace", redis=redis)

        await service.notify_comment_reply(user_id, {"message": "hi"})

        channel, data = redis.publish.call_args.args
        assert channel == f"notifications:user:{user_id}"
        assert json.loads(data) == {"type": "comment_reply", "data": {"message": "hi"}}

    @pytest.mark.asyncio
    async def test_publish_falls_back_to_local_sockets(
        self, mock_session, user_id: UUID
    ):
        connections = Mock(spec=ConnectionManager)
        connections.send_to_user = AsyncMock(return_value=1)
        service = NotificationService(
            mock_session, "test_keyspace", connections=connections
        )

        await service.publish(user_id, {"type": "ping"})

        connections.send_to_user.assert_awaited_once_with(str(user_id), {"type": "ping"})

    @pytest.mark.asyncio
    async def test_publish_without_transport_is_a_no_op(
        self, mock_session, user_id: UUID
    ):
        service = NotificationService(mock_session, "test_keyspace")

        await service.publish(user_id, {"type": "ping"})

        mock_session.aexecute.assert_not_called()


class TestListing:
    @pytest.mark.asyncio
    async def test_first_page_with_more(self, mock_session, user_id: UUID):
        # Arrange: limit 2, three rows returned means another page exists
        rows = [notification_row(user_id, minutes_ago=i) for i in range(3)]
        mock_session.aexecute.side_effect = [
            FakeResult(rows),
            FakeResult([SimpleNamespace(count=3)]),
        ]
        service = NotificationService(mock_session, "test_keyspace")

        # Act
        result = await service.get_notifications(user_id, limit=2)

        # Assert
        assert len(result.items) == 2
        assert result.has_more is True
        assert result.unread_count == 3
        assert result.next_cursor == encode_cursor(
            rows[1].created_at.replace(tzinfo=UTC)
        )
        assert result.items[0].actor.name == "Ben"

    @pytest.mark.asyncio
    async def test_cursor_queries_older_rows(self, mock_session, user_id: UUID):
        cursor_time = datetime(2025, 1, 1, 11, 0, tzinfo=UTC)
        service = NotificationService(mock_session, "test_keyspace")

        result = await service.get_notifications(
            user_id, limit=5, cursor=encode_cursor(cursor_time)
        )

        first_call = mock_session.aexecute.call_args_list[0]
        assert "created_at < ?" in first_call.args[0]
        assert first_call.args[1] == [user_id, cursor_time, 6]
        assert result.has_more is False
        assert result.next_cursor is None

    @pytest.mark.asyncio
    async def test_bad_cursor_raises_value_error(self, mock_session, user_id: UUID):
        service = NotificationService(mock_session, "test_keyspace")

        with pytest.raises(ValueError, match="Invalid cursor"):
            await service.get_notifications(user_id, cursor="%%%")

    @pytest.mark.asyncio
    async def test_unread_only_fills_page_from_older_batches(
        self, mock_session, user_id: UUID
    ):
        # Arrange: limit 2; the newest batch has a single unread entry
        first_batch = [
            notification_row(user_id, minutes_ago=0, is_read=True),
            notification_row(user_id, minutes_ago=1, is_read=True),
            notification_row(user_id, minutes_ago=2),
        ]
        second_batch = [
            notification_row(user_id, minutes_ago=3),
            notification_row(user_id, minutes_ago=4),
        ]
        mock_session.aexecute.side_effect = [
            FakeResult(first_batch),
            FakeResult(second_batch),
            FakeResult([SimpleNamespace(count=3)]),
        ]
        service = NotificationService(mock_session, "test_keyspace")

        # Act
        result = await service.get_notifications(user_id, limit=2, unread_only=True)

        # Assert
        assert [item.id for item in result.items] == [
            first_batch[2].notification_id,
            second_batch[0].notification_id,
        ]
        assert result.has_more is True
        assert result.next_cursor == encode_cursor(
            second_batch[0].created_at.replace(tzinfo=UTC)
        )
        older = mock_session.aexecute.call_args_list[1]
        assert "created_at < ?" in older.args[0]
        assert older.args[1][1] == first_batch[2].created_at.replace(tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_unread_only_last_page_has_no_more(
        self, mock_session, user_id: UUID
    ):
        rows = [
            notification_row(user_id, minutes_ago=0, is_read=True),
            notification_row(user_id, minutes_ago=1),
        ]
        mock_session.aexecute.side_effect = [
            FakeResult(rows),
            FakeResult([SimpleNamespace(count=1)]),
        ]
        service = NotificationService(mock_session, "test_keyspace")

        result = await service.get_notifications(user_id, limit=2, unread_only=True)

        assert len(result.items) == 1
        assert result.has_more is False
        assert result.next_cursor is None

    @pytest.mark.asyncio
    async def test_unread_count_never_negative(self, mock_session, user_id: UUID):
        mock_session.aexecute.return_value = FakeResult([SimpleNamespace(count=-2)])
        service = NotificationService(mock_session, "test_keyspace")

        assert await service.get_unread_count(user_id) == 0


class TestMarkAsRead:
    @pytest.mark.asyncio
    async def test_mark_selected(self, mock_session, user_id: UUID):
        wanted = notification_row(user_id)
        other = notification_row(user_id, minutes_ago=1)
        already = notification_row(user_id, minutes_ago=2, is_read=True)
        mock_session.aexecute.return_value = FakeResult([wanted, other, already])
        service = NotificationService(mock_session, "test_keyspace")

        marked = await service.mark_as_read(
            user_id, [wanted.notification_id, already.notification_id]
        )

        assert marked == 1
        last = mock_session.aexecute.call_args_list[-1]
        assert "count = count - ?" in last.args[0]
        assert last.args[1] == [1, user_id]

    @pytest.mark.asyncio
    async def test_mark_all(self, mock_session, user_id: UUID):
        rows = [notification_row(user_id, minutes_ago=i) for i in range(3)]
        mock_session.aexecute.return_value = FakeResult(rows)
        service = NotificationService(mock_session, "test_keyspace")

        assert await service.mark_as_read(user_id) == 3

    @pytest.mark.asyncio
    async def test_nothing_to_mark_skips_counter(self, mock_session, user_id: UUID):
        service = NotificationService(mock_session, "test_keyspace")

        assert await service.mark_as_read(user_id) == 0
        assert mock_session.aexecute.call_count == 1
