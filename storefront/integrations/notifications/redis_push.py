"""
Redis pub/sub push notifications

Messages are published as JSON on one channel per user and one per group;
websocket gateways subscribe and forward them to connected clients.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

USER_CHANNEL_PREFIX = "notifications:user"
GROUP_CHANNEL_PREFIX = "notifications:group"


class RedisNotificationSink:
    """INotificationSink backed by Redis PUBLISH."""

    def __init__(self, redis_client: aioredis.Redis):
        self._redis = redis_client

    @staticmethod
    def _encode(title: str, message: str, data: dict[str, Any] | None) -> str:
        return json.dumps(
            {
                "title": title,
                "message": message,
                "data": data or {},
                "sent_at": datetime.now(UTC).isoformat(),
            },
            default=str,
        )

    async def send_to_user(self, user_id: str, title: str, message: str, data: dict[str, Any] | None = None) -> None:
        channel = f"{USER_CHANNEL_PREFIX}:{user_id}"
        receivers = await self._redis.publish(channel, self._encode(title, message, data))
        logger.debug(f"Published '{title}' to {channel} ({receivers} subscribers)")

    async def send_to_group(self, group: str, title: str, message: str, data: dict[str, Any] | None = None) -> None:
        channel = f"{GROUP_CHANNEL_PREFIX}:{group}"
        receivers = await self._redis.publish(channel, self._encode(title, message, data))
        logger.debug(f"Published '{title}' to {channel} ({receivers} subscribers)")


__all__ = ["RedisNotificationSink"]
