"""
Shared async Redis connection
"""

import logging

import redis.asyncio as aioredis

from storefront.config.settings import get_settings

logger = logging.getLogger(__name__)

_redis_client: aioredis.Redis | None = None


def get_redis_client() -> aioredis.Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        _redis_client = aioredis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
        logger.info(f"Async Redis client created: {settings.REDIS_HOST}:{settings.REDIS_PORT}")

    return _redis_client


async def close_redis_client() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Async Redis client closed")
