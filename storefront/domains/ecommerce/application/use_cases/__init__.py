"""
E-commerce Use Cases

Business use cases for the e-commerce domain.
Each use case represents a single business operation.
"""

from .create_order import AddressInput, CreateOrderRequest, CreateOrderUseCase, generate_order_number
from .digital_downloads import (
    BackfillDigitalDownloadsUseCase,
    BackfillResult,
    IssueDownloadTokenUseCase,
    ListBuyerDownloadsUseCase,
    MarkDownloadCompletedUseCase,
    ProcessDigitalOrderUseCase,
    RedeemDownloadTokenUseCase,
    RedeemedDownload,
    SyncDownloadUrlsUseCase,
    SyncUrlsResult,
)
from .manage_basket import (
    AddItemToBasketRequest,
    AddItemToBasketUseCase,
    GetBasketUseCase,
    RemoveItemFromBasketRequest,
    RemoveItemFromBasketUseCase,
)
from .manage_catalog import (
    AddProductVariantRequest,
    AddProductVariantUseCase,
    CreateAttributeRequest,
    CreateAttributeUseCase,
    CreateCategoryUseCase,
    CreateProductRequest,
    CreateProductUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    UpdateDigitalFileUseCase,
)
from .payment_intents import (
    CreateOrUpdateBasketIntentUseCase,
    CreateOrUpdateOrderIntentUseCase,
    PaymentIntentResponse,
    sync_payment_intent,
)
from .process_payment import (
    HandlePaymentWebhookUseCase,
    ProcessPaymentUseCase,
    ValidateWebhookUseCase,
    WebhookResult,
)
from .refund_payment import ListOrderPaymentsUseCase, RefundPaymentUseCase
from .update_order_status import (
    BulkStatusResult,
    BulkUpdateStatusResponse,
    BulkUpdateStatusUseCase,
    CancelOrderUseCase,
    GetOrderHistoryUseCase,
    GetOrderUseCase,
    ListBuyerOrdersUseCase,
    UpdateOrderStatusRequest,
    UpdateOrderStatusUseCase,
    UpdateTrackingNumberUseCase,
)

__all__ = [
    # Catalog
    "CreateProductRequest",
    "CreateProductUseCase",
    "UpdateDigitalFileUseCase",
    "GetProductUseCase",
    "ListProductsUseCase",
    "CreateCategoryUseCase",
    "CreateAttributeRequest",
    "CreateAttributeUseCase",
    "AddProductVariantRequest",
    "AddProductVariantUseCase",
    # Basket
    "AddItemToBasketRequest",
    "AddItemToBasketUseCase",
    "RemoveItemFromBasketRequest",
    "RemoveItemFromBasketUseCase",
    "GetBasketUseCase",
    # Orders
    "AddressInput",
    "CreateOrderRequest",
    "CreateOrderUseCase",
    "generate_order_number",
    "UpdateOrderStatusRequest",
    "UpdateOrderStatusUseCase",
    "CancelOrderUseCase",
    "UpdateTrackingNumberUseCase",
    "BulkStatusResult",
    "BulkUpdateStatusResponse",
    "BulkUpdateStatusUseCase",
    "GetOrderUseCase",
    "ListBuyerOrdersUseCase",
    "GetOrderHistoryUseCase",
    # Payments
    "PaymentIntentResponse",
    "sync_payment_intent",
    "CreateOrUpdateBasketIntentUseCase",
    "CreateOrUpdateOrderIntentUseCase",
    "ProcessPaymentUseCase",
    "ValidateWebhookUseCase",
    "HandlePaymentWebhookUseCase",
    "WebhookResult",
    "RefundPaymentUseCase",
    "ListOrderPaymentsUseCase",
    # Digital delivery
    "ListBuyerDownloadsUseCase",
    "IssueDownloadTokenUseCase",
    "RedeemDownloadTokenUseCase",
    "RedeemedDownload",
    "MarkDownloadCompletedUseCase",
    "ProcessDigitalOrderUseCase",
    "BackfillDigitalDownloadsUseCase",
    "BackfillResult",
    "SyncDownloadUrlsUseCase",
    "SyncUrlsResult",
]
