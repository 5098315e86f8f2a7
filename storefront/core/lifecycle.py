"""
Application lifecycle management using the FastAPI lifespan pattern.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.config.settings import get_settings
from storefront.database.async_db import dispose_engine
from storefront.integrations.redis_client import close_redis_client

logger = logging.getLogger(__name__)


def _verify_configurations() -> None:
    settings = get_settings()
    if not settings.PAYMENT_GATEWAY_SECRET_KEY:
        logger.warning("PAYMENT_GATEWAY_SECRET_KEY is empty; payment intents will fail")
    if not settings.PAYMENT_WEBHOOK_SECRET:
        logger.warning("PAYMENT_WEBHOOK_SECRET is empty; every webhook will be rejected")
    if settings.SMTP_ENABLED and not settings.SMTP_USERNAME:
        logger.warning("SMTP_ENABLED without SMTP_USERNAME; sending unauthenticated")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting application lifecycle...")
    _verify_configurations()
    try:
        yield
    finally:
        logger.info("Stopping application lifecycle...")
        await close_redis_client()
        await dispose_engine()
        logger.info("Application lifecycle shutdown completed")
