"""
Notification Service.

Notifications are persisted first and pushed second: the push is scheduled
as an after-commit callback of the caller's unit of work, so a rolled-back
flow never pushes and a user without an open socket still finds the row
through the list endpoints.

Usage:
    notifier = NotificationService(uow, BackgroundTaskDispatcher(registry, background_tasks))
    notifier.notify(user_id, NotificationType.ORDER_CREATED, "Order Placed", "...")
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from fastapi import BackgroundTasks
from pydantic import BaseModel

from pizza_api.models import Notification
from pizza_api.realtime import ConnectionRegistry, notification_envelope
from pizza_api.repositories import UnitOfWork
from pizza_shared.config.logging import get_logger
from pizza_shared.utils.exceptions import NotFoundError

logger = get_logger(__name__)


# =============================================================================
# Output Schemas
# =============================================================================


class NotificationOutput(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    is_read: bool
    link_url: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadNotificationsOutput(BaseModel):
    count: int
    notifications: list[NotificationOutput]


# =============================================================================
# Push dispatch
# =============================================================================


class NotificationDispatcher(Protocol):
    def dispatch(self, user_id: int, payload: dict[str, Any]) -> None:
        ...


class BackgroundTaskDispatcher:
    """Pushes through the connection registry once the response is sent."""

    def __init__(self, registry: ConnectionRegistry, background_tasks: BackgroundTasks):
        self._registry = registry
        self._background_tasks = background_tasks

    def dispatch(self, user_id: int, payload: dict[str, Any]) -> None:
        self._background_tasks.add_task(self._push, user_id, payload)

    async def _push(self, user_id: int, payload: dict[str, Any]) -> None:
        try:
            sent = await self._registry.send_to_user(user_id, payload)
            logger.debug("Notification pushed", user_id=user_id, sockets=sent)
        except Exception as e:
            # Delivery is best effort; the stored row is the source of truth
            logger.error("Notification push failed", user_id=user_id, error=str(e))


class NullDispatcher:
    """Used outside request context (CLI, seeding): store only."""

    def dispatch(self, user_id: int, payload: dict[str, Any]) -> None:
        return None


# =============================================================================
# Service
# =============================================================================


class NotificationService:
    """
    Business rules:
    - Every flow that changes an order, subscription or balance records a notification
    - Users only see and modify their own notifications
    """

    def __init__(self, uow: UnitOfWork, dispatcher: NotificationDispatcher | None = None):
        self._uow = uow
        self._dispatcher = dispatcher or NullDispatcher()

    def notify(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        link_url: str | None = None,
    ) -> Notification:
        with self._uow:
            notification = self._uow.notifications.create(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                link_url=link_url,
            )
            payload = notification_envelope(
                NotificationOutput.model_validate(notification).model_dump(mode="json")
            )
            self._uow.on_commit(lambda: self._dispatcher.dispatch(user_id, payload))

        logger.info("Notification created", user_id=user_id, type=type, notification_id=notification.id)
        return notification

    def list_for_user(self, user_id: int) -> list[NotificationOutput]:
        rows = self._uow.notifications.find_by(user_id=user_id, order_by="-created_at")
        return [NotificationOutput.model_validate(n) for n in rows]

    def unread_for_user(self, user_id: int) -> UnreadNotificationsOutput:
        rows = self._uow.notifications.find_by(
            user_id=user_id, is_read=False, order_by="-created_at"
        )
        return UnreadNotificationsOutput(
            count=len(rows),
            notifications=[NotificationOutput.model_validate(n) for n in rows],
        )

    def _get_owned(self, user_id: int, notification_id: int) -> Notification:
        notification = self._uow.notifications.get(notification_id)
        # Other users' notifications are reported as missing
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification", notification_id, user_id=user_id)
        return notification

    def mark_read(self, user_id: int, notification_id: int) -> NotificationOutput:
        with self._uow:
            notification = self._get_owned(user_id, notification_id)
            self._uow.notifications.update(notification, is_read=True)
        return NotificationOutput.model_validate(notification)

    def mark_all_read(self, user_id: int) -> int:
        with self._uow:
            unread = self._uow.notifications.find_by(user_id=user_id, is_read=False)
            for notification in unread:
                self._uow.notifications.update(notification, is_read=True)
        return len(unread)

    def delete(self, user_id: int, notification_id: int) -> None:
        with self._uow:
            notification = self._get_owned(user_id, notification_id)
            self._uow.notifications.delete(notification)
