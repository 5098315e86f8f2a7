"""
Shared pytest fixtures for all tests.

This module provides in-memory infrastructure, wired services, mock
Redis and an API client whose infrastructure dependencies are overridden.
"""

import os
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from redis.asyncio import Redis

from storefront.config.settings import Settings
from storefront.domains.ecommerce.api.dependencies import get_delivery_service, get_pricing_service
from storefront.domains.ecommerce.application.services import (
    DigitalDeliveryService,
    OrderLifecycleService,
    OrderNotifier,
)
from storefront.domains.ecommerce.domain.services import PricingService
from tests.utils.fakes import (
    FakePaymentGateway,
    InMemoryUnitOfWork,
    InMemoryWebhookDeduplicator,
    RecordingEmailSender,
    RecordingNotificationSink,
)

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"

WEBHOOK_SECRET = "whsec_test"


# ============================================================================
# SETTINGS
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        PAYMENT_GATEWAY_BASE_URL="https://payments.test",
        PAYMENT_GATEWAY_SECRET_KEY="sk_test",
        PAYMENT_WEBHOOK_SECRET=WEBHOOK_SECRET,
        NOTIFICATIONS_ENABLED=False,
        SMTP_ENABLED=False,
    )


# ============================================================================
# IN-MEMORY INFRASTRUCTURE
# ============================================================================


@pytest.fixture
def uow() -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork()


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway(webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def push_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def deduplicator() -> InMemoryWebhookDeduplicator:
    return InMemoryWebhookDeduplicator()


@pytest.fixture
def mock_redis() -> Mock:
    """Create a mock Redis client."""
    mock = Mock(spec=Redis)
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.publish = AsyncMock(return_value=1)
    return mock


# ============================================================================
# SERVICES
# ============================================================================


@pytest.fixture
def pricing(test_settings) -> PricingService:
    return get_pricing_service(test_settings)


@pytest.fixture
def delivery(test_settings) -> DigitalDeliveryService:
    return get_delivery_service(test_settings)


@pytest.fixture
def notifier(push_sink, email_sender) -> OrderNotifier:
    return OrderNotifier(push_sink, email_sender, admin_group="admins")


@pytest.fixture
def lifecycle(delivery, notifier) -> OrderLifecycleService:
    return OrderLifecycleService(delivery, notifier)


# ============================================================================
# API CLIENT
# ============================================================================


@pytest.fixture
def app(test_settings, uow, gateway, notifier, deduplicator):
    """FastAPI app whose infrastructure providers point at the in-memory doubles."""
    import storefront.config.settings as settings_module
    from storefront.core.app_factory import create_app
    from storefront.domains.ecommerce.api import dependencies

    previous = settings_module._settings_instance
    settings_module._settings_instance = test_settings

    async def override_gateway():
        yield gateway

    application = create_app(test_settings)
    application.dependency_overrides[dependencies.get_unit_of_work] = lambda: uow
    application.dependency_overrides[dependencies.get_payment_gateway] = override_gateway
    application.dependency_overrides[dependencies.get_order_notifier] = lambda: notifier
    application.dependency_overrides[dependencies.get_webhook_deduplicator] = lambda: deduplicator

    yield application

    application.dependency_overrides.clear()
    settings_module._settings_instance = previous


@pytest.fixture
def client(app) -> TestClient:
    """Test client without lifespan, so no database or Redis is touched."""
    return TestClient(app)

