"""
Ecommerce Application Ports

Interface definitions (ports) for the Ecommerce domain.
Uses Protocol for structural typing.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, Self, runtime_checkable

from storefront.domains.ecommerce.domain.entities import (
    Attribute,
    AttributeValue,
    Basket,
    Category,
    DigitalDownload,
    Order,
    OrderAddress,
    OrderStatusHistory,
    Payment,
    Product,
)


@runtime_checkable
class ICatalogRepository(Protocol):
    """Products, variants, categories and attributes."""

    async def get_product(self, product_id: int) -> Product | None:
        """Get product with its variants"""
        ...

    async def get_products(self, product_ids: list[int]) -> list[Product]:
        """Get several products by ID"""
        ...

    async def list_products(self, limit: int = 50, offset: int = 0) -> list[Product]:
        """List products ordered by name"""
        ...

    async def add_product(self, product: Product) -> Product:
        """Insert a product and return it with its ID"""
        ...

    async def save_product(self, product: Product) -> Product:
        """Persist product fields and variants"""
        ...

    async def add_category(self, category: Category) -> Category:
        """Insert a category"""
        ...

    async def get_category(self, category_id: int) -> Category | None:
        """Get category by ID"""
        ...

    async def add_attribute(self, attribute: Attribute) -> Attribute:
        """Insert an attribute with its values"""
        ...

    async def get_attribute_values(self, value_ids: list[int]) -> list[AttributeValue]:
        """Get attribute values by ID"""
        ...


@runtime_checkable
class IBasketRepository(Protocol):
    async def get(self, basket_id: int) -> Basket | None:
        """Get basket with items and their live products"""
        ...

    async def add(self, basket: Basket) -> Basket:
        """Insert a new basket"""
        ...

    async def save(self, basket: Basket) -> Basket:
        """Persist basket fields and items"""
        ...

    async def delete(self, basket_id: int) -> None:
        """Delete basket and its items"""
        ...


@runtime_checkable
class IOrderRepository(Protocol):
    """
    Interface for order repository.

    ``save`` enforces optimistic concurrency on ``Order.version`` and raises
    ``ConcurrencyException`` when another writer got there first.
    """

    async def get(self, order_id: int) -> Order | None:
        """Get order with items and addresses"""
        ...

    async def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        """Get the order carrying a payment intent"""
        ...

    async def list_by_buyer(self, buyer_id: str, limit: int = 50, offset: int = 0) -> list[Order]:
        """Orders of one buyer, newest first"""
        ...

    async def list_delivered_with_digital(self) -> list[Order]:
        """Delivered orders containing digital products"""
        ...

    async def add(self, order: Order) -> Order:
        """Insert a new order; raises DuplicateEntityException on order number collision"""
        ...

    async def save(self, order: Order) -> Order:
        """Persist order fields with a version check"""
        ...

    async def add_address(self, address: OrderAddress) -> OrderAddress:
        """Insert an address snapshot"""
        ...

    async def add_history(self, entry: OrderStatusHistory) -> OrderStatusHistory:
        """Append a status history row"""
        ...

    async def get_history(self, order_id: int) -> list[OrderStatusHistory]:
        """History rows of an order, oldest first"""
        ...


@runtime_checkable
class IPaymentRepository(Protocol):
    async def get(self, payment_id: int) -> Payment | None:
        ...

    async def get_for_update(self, payment_id: int) -> Payment | None:
        """Load the payment and lock its row until the unit of work ends"""
        ...

    async def get_by_intent(self, payment_intent_id: str) -> Payment | None:
        ...

    async def list_by_order(self, order_id: int) -> list[Payment]:
        ...

    async def add(self, payment: Payment) -> Payment:
        ...

    async def save(self, payment: Payment) -> Payment:
        ...

    async def save_refund(self, payment: Payment, previous_refunded: int) -> Payment:
        """
        Persist a recorded refund.

        Raises:
            ConcurrencyException: If the stored refunded amount is no longer ``previous_refunded``
        """
        ...


@runtime_checkable
class IDigitalDownloadRepository(Protocol):
    """
    Download grants.

    At most one grant exists per order item; ``add_if_absent`` turns a
    duplicate insert into a no-op.
    """

    async def get(self, download_id: int) -> DigitalDownload | None:
        ...

    async def get_by_token(self, token: str) -> DigitalDownload | None:
        ...

    async def exists_for_item(self, order_item_id: int) -> bool:
        ...

    async def add_if_absent(self, download: DigitalDownload) -> DigitalDownload | None:
        """Insert the grant; return None when one already exists for the item"""
        ...

    async def save(self, download: DigitalDownload) -> DigitalDownload:
        ...

    async def save_redemption(self, download: DigitalDownload, token: str, previous_count: int) -> bool:
        """Persist a redeemed grant only if ``token`` and the count are unchanged in the store"""
        ...

    async def list_by_buyer(self, buyer_id: str) -> list[DigitalDownload]:
        ...

    async def list_by_order(self, order_id: int) -> list[DigitalDownload]:
        ...

    async def list_open(self) -> list[DigitalDownload]:
        """Grants not yet marked completed"""
        ...


@runtime_checkable
class IUnitOfWork(Protocol):
    """
    Transactional scope grouping the repositories of one operation.

    Used as an async context manager; leaving the block without
    ``commit`` rolls everything back.
    """

    catalog: ICatalogRepository
    baskets: IBasketRepository
    orders: IOrderRepository
    payments: IPaymentRepository
    downloads: IDigitalDownloadRepository

    async def __aenter__(self) -> Self:
        ...

    async def __aexit__(self, *args: Any) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class PaymentGatewayError(Exception):
    """
    Failure reported by the payment provider.

    Attributes:
        error_code: Machine-readable error code
        error_message: Human-readable error description
        retryable: Whether retrying the same call may succeed
    """

    def __init__(self, error_code: str, error_message: str, retryable: bool = False):
        self.error_code = error_code
        self.error_message = error_message
        self.retryable = retryable
        super().__init__(f"{error_code}: {error_message}")


@dataclass
class PaymentIntent:
    """Provider-side payment intent."""

    id: str
    status: str
    amount: int
    currency: str
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class RefundResult:
    id: str
    status: str
    amount: int


@runtime_checkable
class IPaymentGateway(Protocol):
    """
    Payment provider port.

    Amounts are integer minor units. Every method except
    ``construct_event`` raises ``PaymentGatewayError`` on provider failure.
    """

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str] | None = None
    ) -> PaymentIntent:
        ...

    async def update_intent(self, intent_id: str, amount: int) -> PaymentIntent:
        ...

    async def get_intent(self, intent_id: str) -> PaymentIntent:
        ...

    async def refund(self, intent_id: str, amount: int) -> RefundResult:
        ...

    def construct_event(self, payload: bytes, signature_header: str) -> dict[str, Any]:
        """Verify the webhook signature and parse the event; raises ValueError when invalid"""
        ...


@runtime_checkable
class INotificationSink(Protocol):
    """Real-time push channel."""

    async def send_to_user(self, user_id: str, title: str, message: str, data: dict[str, Any] | None = None) -> None:
        ...

    async def send_to_group(self, group: str, title: str, message: str, data: dict[str, Any] | None = None) -> None:
        ...


@runtime_checkable
class IEmailSender(Protocol):
    async def send(self, to: str, subject: str, html_body: str) -> bool:
        ...


@runtime_checkable
class IWebhookDeduplicator(Protocol):
    """Remembers provider event IDs that were already handled."""

    async def check_and_lock(self, event_id: str) -> bool:
        """Return True if the event was seen before"""
        ...

    async def mark_complete(self, event_id: str) -> None:
        ...

    async def release(self, event_id: str) -> None:
        ...


__all__ = [
    "ICatalogRepository",
    "IBasketRepository",
    "IOrderRepository",
    "IPaymentRepository",
    "IDigitalDownloadRepository",
    "IUnitOfWork",
    "IPaymentGateway",
    "PaymentGatewayError",
    "PaymentIntent",
    "RefundResult",
    "INotificationSink",
    "IEmailSender",
    "IWebhookDeduplicator",
]
