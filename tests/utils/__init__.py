"""Test utilities and helpers."""

from tests.utils.builders import (
    OrderBuilder,
    ProductBuilder,
    build_address,
    seed_basket,
    seed_order,
    seed_product,
)
from tests.utils.fakes import (
    FakePaymentGateway,
    InMemoryUnitOfWork,
    InMemoryWebhookDeduplicator,
    RecordingEmailSender,
    RecordingNotificationSink,
)

__all__ = [
    # Builders
    "ProductBuilder",
    "OrderBuilder",
    "build_address",
    "seed_product",
    "seed_basket",
    "seed_order",
    # Fakes
    "InMemoryUnitOfWork",
    "FakePaymentGateway",
    "InMemoryWebhookDeduplicator",
    "RecordingNotificationSink",
    "RecordingEmailSender",
]
