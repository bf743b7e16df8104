"""WebSocket API for real-time notifications.

Provides:
- WS /ws/notifications - Real-time notification stream
"""

import asyncio
import contextlib
import json
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from jose import JWTError

from storefront.auth.security import decode_access_token
from storefront.core.logging import get_logger
from storefront.core.redis import get_redis, notification_channel


logger = get_logger(__name__)

router = APIRouter(tags=["notifications-ws"])

PING_INTERVAL_SECONDS = 30


class ConnectionManager:
    """Open WebSocket connections grouped by user id."""

    def __init__(self) -> None:
        self.active_connections: dict[str, list[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)
        logger.info("websocket_connected", user_id=user_id)

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        connections = self.active_connections.get(user_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active_connections.pop(user_id, None)
        logger.info("websocket_disconnected", user_id=user_id)

    async def send_to_user(self, user_id: str, message: dict) -> int:
        """Send to every connection of a user; returns how many received it."""
        sent = 0
        stale = []
        for connection in list(self.active_connections.get(user_id, [])):
            try:
                await connection.send_json(message)
                sent += 1
            except (WebSocketDisconnect, RuntimeError):
                stale.append(connection)

        for connection in stale:
            self.disconnect(user_id, connection)
        return sent

    def get_connected_users(self) -> list[str]:
        return list(self.active_connections.keys())


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return manager


def authenticate_websocket(token: str) -> UUID | None:
    """Return the user id from a valid access token, None otherwise."""
    try:
        return UUID(decode_access_token(token)["sub"])
    except JWTError as e:
        logger.warning("websocket_auth_failed", error=str(e))
    except ValueError as e:
        logger.warning("websocket_auth_invalid_uuid", error=str(e))
    return None


async def redis_subscriber(user_id: str, websocket: WebSocket) -> None:
    """Forward messages from the user's Redis channel to the socket."""
    redis_client = get_redis()
    if redis_client is None:
        return

    pubsub = redis_client.pubsub()
    channel = notification_channel(user_id)

    try:
        await pubsub.subscribe(channel)
        while True:
            message = await pubsub.get_message(
                ignore_subscribe_messages=True, timeout=1.0
            )
            if message and message["type"] == "message":
                await websocket.send_json(json.loads(message["data"]))
            await asyncio.sleep(0.1)
    except WebSocketDisconnect:
        pass
    except json.JSONDecodeError as e:
        logger.warning("redis_message_invalid", user_id=user_id, error=str(e))
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()


@router.websocket("/ws/notifications")
async def notifications_websocket(
    websocket: WebSocket,
    token: str = Query(..., description="JWT access token"),
) -> None:
    """WebSocket endpoint for real-time notifications.

    Connect with: ws://host/ws/notifications?token=<jwt_token>

    Messages received:
    - {"type": "connected", "user_id": ...} - Handshake confirmation
    - {"type": "comment_reply", "data": {...}} - Someone replied to a comment
    - {"type": "ping"} - Keep-alive ping

    Messages you can send:
    - {"type": "ping"} - Answered with {"type": "pong"}
    """
    user_id = authenticate_websocket(token)
    if user_id is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    user_id_str = str(user_id)
    await manager.connect(user_id_str, websocket)

    subscriber_task = None
    if get_redis() is not None:
        subscriber_task = asyncio.create_task(redis_subscriber(user_id_str, websocket))

    try:
        await websocket.send_json({"type": "connected", "user_id": user_id_str})

        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive_json(), timeout=PING_INTERVAL_SECONDS
                )
            except TimeoutError:
                await websocket.send_json({"type": "ping"})
                continue

            if message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        pass
    finally:
        if subscriber_task and not subscriber_task.done():
            subscriber_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await subscriber_task

        manager.disconnect(user_id_str, websocket)
