"""
WebSocket connection registry.

Tracks open notification sockets per user. The app holds one registry on
``app.state.connections``; handlers receive it through a dependency, so a
broker-backed registry can replace the in-process one without touching
callers.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)

MAX_CONNECTIONS_PER_USER = 5


class WSCloseCode(IntEnum):
    """WebSocket close codes (RFC 6455) used by the notification socket."""

    NORMAL = 1000
    POLICY_VIOLATION = 1008
    SERVER_OVERLOADED = 1013


def _is_ws_connected(ws: WebSocket) -> bool:
    """True if the socket is open on both sides and can be written to."""
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


def notification_envelope(notification: dict[str, Any]) -> dict[str, Any]:
    """Wire format pushed to clients."""
    return {"type": "notification", "data": notification}


class ConnectionRegistry(ABC):
    """Interface used by the notification service and the WebSocket endpoint."""

    @abstractmethod
    async def register(self, user_id: int, websocket: WebSocket) -> None:
        ...

    @abstractmethod
    async def unregister(self, user_id: int, websocket: WebSocket) -> None:
        ...

    @abstractmethod
    async def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        """Push payload to the user's open sockets. Returns sockets reached locally."""
        ...

    @abstractmethod
    def connection_count(self, user_id: int | None = None) -> int:
        ...

    async def start(self) -> None:
        """Hook for registries with background work."""

    async def close(self) -> None:
        """Hook for registries holding external resources."""


class InMemoryConnectionRegistry(ConnectionRegistry):
    """
    Per-process registry: user id -> set of sockets.

    Modifications are serialized with an asyncio.Lock. Sends iterate over a
    snapshot so a concurrent disconnect cannot mutate the set mid-loop.
    """

    MAX_CONNECTIONS_PER_USER = MAX_CONNECTIONS_PER_USER

    def __init__(self) -> None:
        self.by_user: dict[int, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, websocket: WebSocket) -> None:
        """
        Register an already-accepted socket.

        Raises:
            ConnectionError: if the user already holds the maximum number of sockets.
        """
        async with self._lock:
            sockets = self.by_user.get(user_id)
            if sockets is not None and len(sockets) >= self.MAX_CONNECTIONS_PER_USER:
                raise ConnectionError(
                    f"User {user_id} exceeded max connections ({self.MAX_CONNECTIONS_PER_USER})"
                )
            if sockets is None:
                sockets = set()
                self.by_user[user_id] = sockets
            sockets.add(websocket)

        logger.info("WebSocket registered", user_id=user_id, connections=len(sockets))

    async def unregister(self, user_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self.by_user.get(user_id)
            if sockets is None:
                return
            sockets.discard(websocket)
            if not sockets:
                # Drop empty sets so the map does not grow with every user ever seen
                del self.by_user[user_id]

        logger.info("WebSocket unregistered", user_id=user_id)

    async def send_to_user(self, user_id: int, payload: dict[str, Any]) -> int:
        connections = list(self.by_user.get(user_id, ()))
        sent = 0
        dead: list[WebSocket] = []

        for ws in connections:
            if not _is_ws_connected(ws):
                dead.append(ws)
                continue
            try:
                await ws.send_json(payload)
                sent += 1
            except Exception as e:
                logger.warning("Failed to push notification", user_id=user_id, error=str(e))
                dead.append(ws)

        for ws in dead:
            await self.unregister(user_id, ws)

        return sent

    def connection_count(self, user_id: int | None = None) -> int:
        if user_id is not None:
            return len(self.by_user.get(user_id, ()))
        return sum(len(sockets) for sockets in self.by_user.values())
