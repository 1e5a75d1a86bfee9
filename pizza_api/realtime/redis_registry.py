"""
Redis pub/sub connection registry.

Each API process keeps its own sockets in a local in-memory registry.
send_to_user publishes to a shared channel instead of writing to sockets;
every process subscribes to that channel and delivers to whatever sockets
it holds locally. This lets notifications reach a user regardless of which
process accepted their socket.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import redis.asyncio as redis
from fastapi import WebSocket

from pizza_shared.config.logging import get_logger
from pizza_shared.infrastructure.redis_pool import close_redis_client
from .registry import ConnectionRegistry, InMemoryConnectionRegistry

logger = get_logger(__name__)

RECONNECT_DELAY_SECONDS = 2.0


def validate_message(data: Any) -> tuple[bool, str | None]:
    """Check the shape of a fan-out message. Returns (is_valid, error)."""
    if not isinstance(data, dict):
        return False, "Message must be an object"
    if not isinstance(data.get("user_id"), int):
        return False, "user_id must be an integer"
    if not isinstance(data.get("payload"), dict):
        return False, "payload must be an object"
    return True, None


class RedisConnectionRegistry(ConnectionRegistry):

    def __init__(self, client: redis.Redis, channel: str):
        self._client = client
        self._channel = channel
        self._local = InMemoryConnectionRegistry()
        self._task: asyncio.Task | None = None

    async def register(self, user_id: int, websocket: WebSocket) -> None:
        await self._local.register(user_id, websocket)

    async def unregister(self, user_id: int, websocket: WebSocket) -> None:
        await self._local.unregister(user_id, websocket)

    async def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        message = json.dumps({"user_id": user_id, "payload": payload}, default=str)
        try:
            await self._client.publish(self._channel, message)
        except Exception as e:
            # Push is best effort; the notification row is already stored
            logger.error("Failed to publish notification", user_id=user_id, error=str(e))
        return 0

    def connection_count(self, user_id: int | None = None) -> int:
        return self._local.connection_count(user_id)

    async def handle_message(self, raw: str) -> int:
        """Deliver one channel message to local sockets."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse notification message", error=str(e))
            return 0

        is_valid, error = validate_message(data)
        if not is_valid:
            logger.warning("Invalid notification message", error=error)
            return 0

        return await self._local.send_to_user(data["user_id"], data["payload"])

    async def _listen(self) -> None:
        while True:
            pubsub = self._client.pubsub()
            try:
                await pubsub.subscribe(self._channel)
                logger.info("Notification subscriber started", channel=self._channel)
                async for msg in pubsub.listen():
                    if msg is None or msg.get("type") != "message":
                        continue
                    await self.handle_message(msg["data"])
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Notification subscriber failed, reconnecting", error=str(e))
                await asyncio.sleep(RECONNECT_DELAY_SECONDS)
            finally:
                try:
                    await pubsub.aclose()
                except Exception as e:
                    logger.warning("Error closing pubsub", error=str(e))

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._listen(), name="notification-subscriber")

    async def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await close_redis_client(self._client)
