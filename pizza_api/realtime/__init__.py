"""
Real-time notification delivery over WebSockets.
"""

from .registry import (
    ConnectionRegistry,
    InMemoryConnectionRegistry,
    WSCloseCode,
    notification_envelope,
)
from .redis_registry import RedisConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "InMemoryConnectionRegistry",
    "RedisConnectionRegistry",
    "WSCloseCode",
    "notification_envelope",
]
