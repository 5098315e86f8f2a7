"""
E-commerce API Dependencies

FastAPI dependencies wiring infrastructure into the e-commerce use cases.
Tests override the four infrastructure providers (unit of work, payment
gateway, notifier and webhook deduplicator); everything else is built
from them.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.clients.payment_gateway_client import PaymentGatewayClient
from storefront.config.settings import Settings, get_settings
from storefront.database.async_db import get_async_db
from storefront.domains.ecommerce.application.ports import (
    IPaymentGateway,
    IUnitOfWork,
    IWebhookDeduplicator,
)
from storefront.domains.ecommerce.application.services import (
    DigitalDeliveryService,
    OrderLifecycleService,
    OrderNotifier,
)
from storefront.domains.ecommerce.application.use_cases import (
    AddItemToBasketUseCase,
    AddProductVariantUseCase,
    BackfillDigitalDownloadsUseCase,
    BulkUpdateStatusUseCase,
    CancelOrderUseCase,
    CreateAttributeUseCase,
    CreateCategoryUseCase,
    CreateOrderUseCase,
    CreateOrUpdateBasketIntentUseCase,
    CreateOrUpdateOrderIntentUseCase,
    CreateProductUseCase,
    GetBasketUseCase,
    GetOrderHistoryUseCase,
    GetOrderUseCase,
    GetProductUseCase,
    HandlePaymentWebhookUseCase,
    IssueDownloadTokenUseCase,
    ListBuyerDownloadsUseCase,
    ListBuyerOrdersUseCase,
    ListOrderPaymentsUseCase,
    ListProductsUseCase,
    MarkDownloadCompletedUseCase,
    ProcessDigitalOrderUseCase,
    ProcessPaymentUseCase,
    RedeemDownloadTokenUseCase,
    RefundPaymentUseCase,
    RemoveItemFromBasketUseCase,
    SyncDownloadUrlsUseCase,
    UpdateDigitalFileUseCase,
    UpdateOrderStatusUseCase,
    UpdateTrackingNumberUseCase,
    ValidateWebhookUseCase,
)
from storefront.domains.ecommerce.domain.services import PricingService
from storefront.domains.ecommerce.infrastructure.repositories import SQLAlchemyUnitOfWork
from storefront.domains.ecommerce.infrastructure.services import WebhookIdempotencyService
from storefront.integrations.notifications import RedisNotificationSink, SmtpEmailSender
from storefront.integrations.redis_client import get_redis_client

# Infrastructure providers


def get_unit_of_work(db: AsyncSession = Depends(get_async_db)) -> IUnitOfWork:  # noqa: B008
    """Unit of work bound to the request's session."""
    return SQLAlchemyUnitOfWork(db)


async def get_payment_gateway() -> AsyncGenerator[IPaymentGateway, None]:
    """Payment provider client, open for the duration of the request."""
    async with PaymentGatewayClient(get_settings()) as client:
        yield client


def get_order_notifier() -> OrderNotifier:
    settings = get_settings()
    push = RedisNotificationSink(get_redis_client()) if settings.NOTIFICATIONS_ENABLED else None
    email = SmtpEmailSender(settings) if settings.SMTP_ENABLED else None
    return OrderNotifier(push, email, admin_group=settings.ADMIN_NOTIFICATION_GROUP)


def get_webhook_deduplicator() -> IWebhookDeduplicator | None:
    settings = get_settings()
    return WebhookIdempotencyService(get_redis_client(), settings.PAYMENT_WEBHOOK_DEDUP_TTL_SECONDS)


# Domain services


def get_pricing_service(settings: Settings = Depends(get_settings)) -> PricingService:  # noqa: B008
    return PricingService(
        shipping_flat_fee=settings.SHIPPING_FLAT_FEE,
        free_shipping_threshold=settings.FREE_SHIPPING_THRESHOLD,
    )


def get_delivery_service(settings: Settings = Depends(get_settings)) -> DigitalDeliveryService:  # noqa: B008
    return DigitalDeliveryService(
        expiry_days=settings.DIGITAL_DOWNLOAD_EXPIRY_DAYS,
        max_downloads=settings.DIGITAL_DOWNLOAD_MAX_USES,
    )


def get_lifecycle_service(
    delivery: DigitalDeliveryService = Depends(get_delivery_service),  # noqa: B008
    notifier: OrderNotifier = Depends(get_order_notifier),  # noqa: B008
) -> OrderLifecycleService:
    return OrderLifecycleService(delivery, notifier)


# Catalog


def get_create_product_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> CreateProductUseCase:
    return CreateProductUseCase(uow, currency=settings.CURRENCY)


def get_update_digital_file_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> UpdateDigitalFileUseCase:  # noqa: B008
    return UpdateDigitalFileUseCase(uow)


def get_product_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> GetProductUseCase:  # noqa: B008
    return GetProductUseCase(uow)


def get_list_products_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> ListProductsUseCase:  # noqa: B008
    return ListProductsUseCase(uow)


def get_create_category_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> CreateCategoryUseCase:  # noqa: B008
    return CreateCategoryUseCase(uow)


def get_create_attribute_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> CreateAttributeUseCase:  # noqa: B008
    return CreateAttributeUseCase(uow)


def get_add_variant_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> AddProductVariantUseCase:
    return AddProductVariantUseCase(uow, currency=settings.CURRENCY)


# Baskets


def get_add_basket_item_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> AddItemToBasketUseCase:  # noqa: B008
    return AddItemToBasketUseCase(uow)


def get_remove_basket_item_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
) -> RemoveItemFromBasketUseCase:
    return RemoveItemFromBasketUseCase(uow)


def get_basket_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> GetBasketUseCase:  # noqa: B008
    return GetBasketUseCase(uow)


def get_basket_intent_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    gateway: IPaymentGateway = Depends(get_payment_gateway),  # noqa: B008
    pricing: PricingService = Depends(get_pricing_service),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> CreateOrUpdateBasketIntentUseCase:
    return CreateOrUpdateBasketIntentUseCase(uow, gateway, pricing, currency=settings.CURRENCY)


# Orders


def get_create_order_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
    pricing: PricingService = Depends(get_pricing_service),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> CreateOrderUseCase:
    return CreateOrderUseCase(
        uow,
        lifecycle,
        pricing,
        currency=settings.CURRENCY,
        max_number_attempts=settings.ORDER_NUMBER_MAX_ATTEMPTS,
    )


def get_order_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> GetOrderUseCase:  # noqa: B008
    return GetOrderUseCase(uow)


def get_list_buyer_orders_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> ListBuyerOrdersUseCase:  # noqa: B008
    return ListBuyerOrdersUseCase(uow)


def get_order_history_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> GetOrderHistoryUseCase:  # noqa: B008
    return GetOrderHistoryUseCase(uow)


def get_update_status_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
) -> UpdateOrderStatusUseCase:
    return UpdateOrderStatusUseCase(uow, lifecycle)


def get_cancel_order_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
) -> CancelOrderUseCase:
    return CancelOrderUseCase(uow, lifecycle)


def get_update_tracking_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> UpdateTrackingNumberUseCase:  # noqa: B008
    return UpdateTrackingNumberUseCase(uow)


def get_bulk_status_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
) -> BulkUpdateStatusUseCase:
    return BulkUpdateStatusUseCase(uow, lifecycle)


def get_order_intent_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    gateway: IPaymentGateway = Depends(get_payment_gateway),  # noqa: B008
) -> CreateOrUpdateOrderIntentUseCase:
    return CreateOrUpdateOrderIntentUseCase(uow, gateway)


# Payments


def get_process_payment_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
) -> ProcessPaymentUseCase:
    return ProcessPaymentUseCase(uow, lifecycle)


def get_refund_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    gateway: IPaymentGateway = Depends(get_payment_gateway),  # noqa: B008
) -> RefundPaymentUseCase:
    return RefundPaymentUseCase(uow, gateway)


def get_list_payments_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> ListOrderPaymentsUseCase:  # noqa: B008
    return ListOrderPaymentsUseCase(uow)


def get_validate_webhook_use_case(
    gateway: IPaymentGateway = Depends(get_payment_gateway),  # noqa: B008
) -> ValidateWebhookUseCase:
    return ValidateWebhookUseCase(gateway)


def get_handle_webhook_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    gateway: IPaymentGateway = Depends(get_payment_gateway),  # noqa: B008
    process_payment: ProcessPaymentUseCase = Depends(get_process_payment_use_case),  # noqa: B008
    deduplicator: IWebhookDeduplicator | None = Depends(get_webhook_deduplicator),  # noqa: B008
) -> HandlePaymentWebhookUseCase:
    return HandlePaymentWebhookUseCase(uow, gateway, process_payment, deduplicator)


# Downloads


def get_list_downloads_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> ListBuyerDownloadsUseCase:  # noqa: B008
    return ListBuyerDownloadsUseCase(uow)


def get_issue_token_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> IssueDownloadTokenUseCase:  # noqa: B008
    return IssueDownloadTokenUseCase(uow)


def get_redeem_token_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> RedeemDownloadTokenUseCase:  # noqa: B008
    return RedeemDownloadTokenUseCase(uow)


def get_mark_completed_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> MarkDownloadCompletedUseCase:  # noqa: B008
    return MarkDownloadCompletedUseCase(uow)


def get_process_digital_order_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    lifecycle: OrderLifecycleService = Depends(get_lifecycle_service),  # noqa: B008
) -> ProcessDigitalOrderUseCase:
    return ProcessDigitalOrderUseCase(uow, lifecycle)


def get_backfill_use_case(
    uow: IUnitOfWork = Depends(get_unit_of_work),  # noqa: B008
    delivery: DigitalDeliveryService = Depends(get_delivery_service),  # noqa: B008
) -> BackfillDigitalDownloadsUseCase:
    return BackfillDigitalDownloadsUseCase(uow, delivery)


def get_sync_urls_use_case(uow: IUnitOfWork = Depends(get_unit_of_work)) -> SyncDownloadUrlsUseCase:  # noqa: B008
    return SyncDownloadUrlsUseCase(uow)
