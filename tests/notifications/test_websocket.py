"""Tests for the WebSocket connection registry and token check."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi import WebSocketDisconnect

from storefront.auth.security import create_access_token
from storefront.notifications.websocket_router import (
    ConnectionManager,
    authenticate_websocket,
)


class TestConnectionManager:
    @pytest.mark.asyncio
    async def test_send_to_every_connection_of_user(self):
        manager = ConnectionManager()
        first, second = AsyncMock(), AsyncMock()
        await manager.connect("u1", first)
        await manager.connect("u1", second)

        sent = await manager.send_to_user("u1", {"type": "ping"})

        assert sent == 2
        first.send_json.assert_awaited_once_with({"type": "ping"})
        second.send_json.assert_awaited_once_with({"type": "ping"})

    @pytest.mark.asyncio
    async def test_stale_connections_are_dropped(self):
        manager = ConnectionManager()
        stale = AsyncMock()
        stale.send_json.side_effect = WebSocketDisconnect()
        await manager.connect("u1", stale)

        sent = await manager.send_to_user("u1", {"type": "ping"})

        assert sent == 0
        assert manager.get_connected_users() == []

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        assert await ConnectionManager().send_to_user("nobody", {}) == 0


class TestAuthenticateWebsocket:
    def test_valid_token(self):
        user_id = uuid4()
        token = create_access_token({"sub": str(user_id)})

        assert authenticate_websocket(token) == user_id

    def test_garbage_token(self):
        assert authenticate_websocket("not-a-jwt") is None

    def test_non_uuid_subject(self):
        token = create_access_token({"sub": "admin"})

        assert authenticate_websocket(token) is None
