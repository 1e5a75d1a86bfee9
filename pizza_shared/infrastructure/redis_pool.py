"""
Redis client factory.

The notification fan-out owns its client for the lifetime of the app; this
module only centralizes how clients are configured.
"""

from __future__ import annotations

import redis.asyncio as redis

from pizza_shared.config.settings import settings
from pizza_shared.config.logging import get_logger

logger = get_logger(__name__)

SOCKET_TIMEOUT_SECONDS = 5


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Create an async Redis client with decoded responses."""
    client = redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
        health_check_interval=30,
    )
    logger.info("Redis client created", url=(url or settings.redis_url).split("@")[-1])
    return client


async def close_redis_client(client: redis.Redis) -> None:
    try:
        await client.aclose()
    except Exception as e:
        logger.warning("Error closing Redis client", error=str(e))
