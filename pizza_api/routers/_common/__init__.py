"""
Common dependencies shared across routers.
"""

from .deps import (
    get_current_user,
    get_notifier,
    get_optional_user,
    get_registry,
    get_session_factory,
    get_uow,
    require_admin,
)

__all__ = [
    "get_current_user",
    "get_notifier",
    "get_optional_user",
    "get_registry",
    "get_session_factory",
    "get_uow",
    "require_admin",
]
