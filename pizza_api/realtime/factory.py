"""
Builds the connection registry selected by settings.
"""

from pizza_shared.config.settings import Settings
from pizza_shared.infrastructure.redis_pool import create_redis_client
from .redis_registry import RedisConnectionRegistry
from .registry import ConnectionRegistry, InMemoryConnectionRegistry


def build_connection_registry(settings: Settings) -> ConnectionRegistry:
    if settings.notification_backend == "redis":
        return RedisConnectionRegistry(
            create_redis_client(settings.redis_url),
            settings.notification_channel,
        )
    return InMemoryConnectionRegistry()
