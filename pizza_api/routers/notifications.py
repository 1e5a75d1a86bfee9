"""
Notification endpoints and the push socket.

Every REST route only touches the caller's own notifications. The socket at
/api/ws/notifications authenticates with the session cookie, a Bearer
header, or a ``token`` query parameter; anything else is closed with 1008.
"""

from contextlib import AbstractContextManager
from typing import Callable

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from pizza_api.models import User
from pizza_api.realtime import ConnectionRegistry, WSCloseCode
from pizza_api.repositories import SqlUnitOfWork, UnitOfWork
from pizza_api.routers._common import get_current_user, get_session_factory, get_uow
from pizza_api.routers._common.deps import load_session_user
from pizza_api.services.domain import NotificationService
from pizza_api.services.domain.notification_service import (
    NotificationOutput,
    UnreadNotificationsOutput,
)
from pizza_shared.config.logging import realtime_logger as logger
from pizza_shared.security.auth import extract_token, verify_session_token
from pizza_shared.utils.exceptions import AuthenticationError
from pizza_shared.utils.schemas import MessageResponse


router = APIRouter(prefix="/api", tags=["notifications"])


@router.get("/notifications", response_model=list[NotificationOutput])
def list_notifications(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> list[NotificationOutput]:
    return NotificationService(uow).list_for_user(user.id)


@router.get("/notifications/unread", response_model=UnreadNotificationsOutput)
def list_unread_notifications(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> UnreadNotificationsOutput:
    return NotificationService(uow).unread_for_user(user.id)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationOutput)
def mark_notification_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> NotificationOutput:
    return NotificationService(uow).mark_read(user.id, notification_id)


@router.post("/notifications/read-all", response_model=MessageResponse)
def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    updated = NotificationService(uow).mark_all_read(user.id)
    return MessageResponse(message="All notifications marked as read", data={"updated": updated})


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
def delete_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_uow),
) -> MessageResponse:
    NotificationService(uow).delete(user.id, notification_id)
    return MessageResponse(message="Notification deleted")


# =============================================================================
# WebSocket
# =============================================================================


def _authenticate_socket(
    websocket: WebSocket,
    open_session: Callable[[], AbstractContextManager[Session]],
) -> int | None:
    """Id of the session user, or None. The session is closed before returning."""
    token = websocket.query_params.get("token") or extract_token(websocket)
    if not token:
        return None
    try:
        claims = verify_session_token(token)
        with open_session() as db:
            return load_session_user(SqlUnitOfWork(db), claims).id
    except AuthenticationError:
        return None


@router.websocket("/ws/notifications")
async def notifications_socket(
    websocket: WebSocket,
    open_session: Callable[[], AbstractContextManager[Session]] = Depends(get_session_factory),
):
    registry: ConnectionRegistry = websocket.app.state.connections

    await websocket.accept()
    # Blocking lookup, off the event loop; no connection is held after this
    user_id = await run_in_threadpool(_authenticate_socket, websocket, open_session)
    if user_id is None:
        logger.info("WebSocket rejected: no valid session")
        await websocket.close(code=WSCloseCode.POLICY_VIOLATION, reason="Authentication required")
        return

    try:
        await registry.register(user_id, websocket)
    except ConnectionError as e:
        logger.warning("WebSocket rejected", user_id=user_id, error=str(e))
        await websocket.close(code=WSCloseCode.SERVER_OVERLOADED, reason="Too many connections")
        return

    await websocket.send_json({"type": "connected", "data": {"user_id": user_id}})
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected", user_id=user_id)
    finally:
        await registry.unregister(user_id, websocket)
