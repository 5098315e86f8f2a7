"""
Webhook Idempotency Service

Redis-based deduplication of payment provider webhook events. Providers
redeliver events until they see a 2xx, so the same event ID can arrive
several times and concurrently.

Key states:
- missing: event not seen before
- "processing": a worker holds the lock (expires after a few minutes)
- "done": event handled; kept for the dedup window
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

EVENT_KEY_PREFIX = "payments:webhook"

# Lock held while one worker processes the event
PROCESSING_LOCK_TTL_MS = 5 * 60 * 1000

DEFAULT_COMPLETED_TTL_SECONDS = 24 * 60 * 60


class WebhookIdempotencyService:
    """
    Redis-backed IWebhookDeduplicator.

    Uses atomic SET NX PX so only one worker acquires an event.
    """

    def __init__(self, redis_client: Redis, completed_ttl_seconds: int = DEFAULT_COMPLETED_TTL_SECONDS):
        """
        Initialize idempotency service.

        Args:
            redis_client: Async Redis client instance
            completed_ttl_seconds: How long handled events are remembered
        """
        self._redis = redis_client
        self._completed_ttl_ms = completed_ttl_seconds * 1000

    def _get_key(self, event_id: str) -> str:
        return f"{EVENT_KEY_PREFIX}:{event_id}"

    async def check_and_lock(self, event_id: str) -> bool:
        """
        Acquire the processing lock for an event.

        Returns:
            True if the event is a duplicate (handled or in progress),
            False if this caller now owns it.
        """
        key = self._get_key(event_id)

        existing = await self._redis.get(key)
        if existing:
            value = existing.decode() if isinstance(existing, bytes) else str(existing)
            if value == "processing":
                logger.warning(f"[IDEMPOTENCY] Event {event_id} is currently being processed")
            else:
                logger.info(f"[IDEMPOTENCY] Event {event_id} already handled")
            return True

        acquired = await self._redis.set(key, "processing", nx=True, px=PROCESSING_LOCK_TTL_MS)
        if acquired:
            logger.debug(f"[IDEMPOTENCY] Acquired lock for event {event_id}")
            return False

        # Another worker won the race between GET and SET
        logger.info(f"[IDEMPOTENCY] Lost race for event {event_id}")
        return True

    async def mark_complete(self, event_id: str) -> None:
        await self._redis.set(self._get_key(event_id), "done", px=self._completed_ttl_ms)
        logger.info(f"[IDEMPOTENCY] Marked event {event_id} complete")

    async def release(self, event_id: str) -> None:
        """Drop the lock so the provider's retry is processed again."""
        await self._redis.delete(self._get_key(event_id))
        logger.warning(f"[IDEMPOTENCY] Released lock for event {event_id}")


__all__ = ["WebhookIdempotencyService"]
