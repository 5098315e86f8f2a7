"""
Application entry point.
"""

import logging

from storefront.config.settings import get_settings
from storefront.core.app_factory import create_app
from storefront.core.shared import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

logger = logging.getLogger(__name__)

app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8001,
        reload=settings.DEBUG,
    )
