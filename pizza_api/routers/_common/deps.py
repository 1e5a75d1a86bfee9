"""
FastAPI dependencies: unit of work, notification delivery and the session user.

Usage:
    @router.get("/api/orders")
    def list_orders(user: User = Depends(get_current_user), uow: UnitOfWork = Depends(get_uow)):
        ...
"""

from contextlib import AbstractContextManager
from typing import Any, Callable

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from pizza_api.models import User
from pizza_api.realtime import ConnectionRegistry
from pizza_api.repositories import SqlUnitOfWork, UnitOfWork
from pizza_api.services.domain import BackgroundTaskDispatcher, NotificationService
from pizza_shared.infrastructure.db import get_db, get_db_context
from pizza_shared.security.auth import optional_session_claims, session_claims
from pizza_shared.utils.exceptions import AdminRequiredError, AuthenticationError


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    return SqlUnitOfWork(db)


def get_session_factory() -> Callable[[], AbstractContextManager[Session]]:
    """Short-lived sessions for connections that outlive a request (the push socket)."""
    return get_db_context


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connections


def get_notifier(
    background_tasks: BackgroundTasks,
    uow: UnitOfWork = Depends(get_uow),
    registry: ConnectionRegistry = Depends(get_registry),
) -> NotificationService:
    return NotificationService(uow, BackgroundTaskDispatcher(registry, background_tasks))


def load_session_user(uow: UnitOfWork, claims: dict[str, Any]) -> User:
    """
    The user a verified token belongs to.

    Raises:
        AuthenticationError: user gone, or the token predates a logout / password reset.
    """
    user = uow.users.get(claims["user_id"])
    if user is None or user.session_version != claims["sv"]:
        raise AuthenticationError("Session is no longer valid", user_id=claims["user_id"])
    return user


def get_current_user(
    claims: dict[str, Any] = Depends(session_claims),
    uow: UnitOfWork = Depends(get_uow),
) -> User:
    return load_session_user(uow, claims)


def get_optional_user(
    claims: dict[str, Any] | None = Depends(optional_session_claims),
    uow: UnitOfWork = Depends(get_uow),
) -> User | None:
    if claims is None:
        return None
    try:
        return load_session_user(uow, claims)
    except AuthenticationError:
        return None


def require_admin(user: User = Depends(get_current_user)) -> User:
    """401 without a session, 403 for non-admin users."""
    if not user.is_admin:
        raise AdminRequiredError(user_id=user.id)
    return user
