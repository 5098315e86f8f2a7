"""
E-commerce API Routes

FastAPI routers for catalog, baskets, orders, payments and downloads.
Use cases raise domain exceptions; the application's exception handlers
turn them into HTTP errors.
"""

import logging

from fastapi import APIRouter, Depends, Header, Query, Request, status
from fastapi.responses import RedirectResponse

from storefront.api.dependencies import CurrentUser, get_current_user, require_admin, require_user
from storefront.config.settings import Settings, get_settings
from storefront.domains.ecommerce.api.dependencies import (
    get_add_basket_item_use_case,
    get_add_variant_use_case,
    get_backfill_use_case,
    get_basket_intent_use_case,
    get_basket_use_case,
    get_bulk_status_use_case,
    get_cancel_order_use_case,
    get_create_attribute_use_case,
    get_create_category_use_case,
    get_create_order_use_case,
    get_create_product_use_case,
    get_handle_webhook_use_case,
    get_issue_token_use_case,
    get_list_buyer_orders_use_case,
    get_list_downloads_use_case,
    get_list_payments_use_case,
    get_list_products_use_case,
    get_mark_completed_use_case,
    get_order_history_use_case,
    get_order_intent_use_case,
    get_order_use_case,
    get_process_digital_order_use_case,
    get_process_payment_use_case,
    get_product_use_case,
    get_redeem_token_use_case,
    get_refund_use_case,
    get_remove_basket_item_use_case,
    get_sync_urls_use_case,
    get_update_digital_file_use_case,
    get_update_status_use_case,
    get_update_tracking_use_case,
    get_validate_webhook_use_case,
)
from storefront.domains.ecommerce.api.schemas import (
    AttributeCreateRequest,
    AttributeResponse,
    BasketItemAddRequest,
    BasketResponse,
    BulkStatusResultSchema,
    BulkStatusUpdateRequest,
    BulkStatusUpdateResponse,
    CategoryCreateRequest,
    CategoryResponse,
    DigitalFileUpdateRequest,
    DownloadResponse,
    DownloadTokenResponse,
    MaintenanceResponse,
    OrderCreateRequest,
    OrderResponse,
    OrderStatusUpdateRequest,
    PaymentIntentSchema,
    PaymentResponse,
    ProductCreateRequest,
    ProductResponse,
    RefundRequest,
    StatusHistoryResponse,
    TrackingUpdateRequest,
    VariantCreateRequest,
    VariantResponse,
    WebhookAckResponse,
    WebhookValidationResponse,
)
from storefront.domains.ecommerce.application.use_cases import (
    AddItemToBasketRequest,
    AddItemToBasketUseCase,
    AddProductVariantRequest,
    AddProductVariantUseCase,
    AddressInput,
    BackfillDigitalDownloadsUseCase,
    BulkUpdateStatusUseCase,
    CancelOrderUseCase,
    CreateAttributeRequest,
    CreateAttributeUseCase,
    CreateCategoryUseCase,
    CreateOrderRequest,
    CreateOrderUseCase,
    CreateOrUpdateBasketIntentUseCase,
    CreateOrUpdateOrderIntentUseCase,
    CreateProductRequest,
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
    RemoveItemFromBasketRequest,
    RemoveItemFromBasketUseCase,
    SyncDownloadUrlsUseCase,
    UpdateDigitalFileUseCase,
    UpdateOrderStatusRequest,
    UpdateOrderStatusUseCase,
    UpdateTrackingNumberUseCase,
    ValidateWebhookUseCase,
)

logger = logging.getLogger(__name__)

catalog_router = APIRouter(prefix="/catalog", tags=["Catalog"])
basket_router = APIRouter(prefix="/baskets", tags=["Baskets"])
order_router = APIRouter(prefix="/orders", tags=["Orders"])
payment_router = APIRouter(prefix="/payments", tags=["Payments"])
download_router = APIRouter(prefix="/downloads", tags=["Downloads"])


def _scoped_buyer(user: CurrentUser) -> str | None:
    """Buyer filter for order access: admins see every order."""
    return None if user.is_admin else user.user_id


# Catalog


@catalog_router.get("/products", response_model=list[ProductResponse])
async def list_products(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    use_case: ListProductsUseCase = Depends(get_list_products_use_case),  # noqa: B008
):
    """List catalog products."""
    products = await use_case.execute(limit=limit, offset=offset)
    return [ProductResponse.from_entity(p) for p in products]


@catalog_router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    use_case: GetProductUseCase = Depends(get_product_use_case),  # noqa: B008
):
    """Get product by ID."""
    return ProductResponse.from_entity(await use_case.execute(product_id))


@catalog_router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: ProductCreateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: CreateProductUseCase = Depends(get_create_product_use_case),  # noqa: B008
):
    product = await use_case.execute(CreateProductRequest(**request.model_dump()))
    return ProductResponse.from_entity(product)


@catalog_router.put("/products/{product_id}/digital-file", response_model=ProductResponse)
async def update_digital_file(
    product_id: int,
    request: DigitalFileUpdateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: UpdateDigitalFileUseCase = Depends(get_update_digital_file_use_case),  # noqa: B008
):
    product = await use_case.execute(product_id, request.digital_file_url)
    return ProductResponse.from_entity(product)


@catalog_router.post(
    "/products/{product_id}/variants",
    response_model=VariantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_product_variant(
    product_id: int,
    request: VariantCreateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: AddProductVariantUseCase = Depends(get_add_variant_use_case),  # noqa: B008
):
    variant = await use_case.execute(
        AddProductVariantRequest(
            product_id=product_id,
            attribute_value_ids=request.attribute_value_ids,
            quantity=request.quantity,
            price_override=request.price_override,
        )
    )
    return VariantResponse.from_entity(variant)


@catalog_router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: CreateCategoryUseCase = Depends(get_create_category_use_case),  # noqa: B008
):
    category = await use_case.execute(request.name, request.description)
    return CategoryResponse.from_entity(category)


@catalog_router.post("/attributes", response_model=AttributeResponse, status_code=status.HTTP_201_CREATED)
async def create_attribute(
    request: AttributeCreateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: CreateAttributeUseCase = Depends(get_create_attribute_use_case),  # noqa: B008
):
    attribute = await use_case.execute(CreateAttributeRequest(name=request.name, values=request.values))
    return AttributeResponse.from_entity(attribute)


# Baskets


@basket_router.post("/items", response_model=BasketResponse, status_code=status.HTTP_201_CREATED)
async def create_basket_with_item(
    request: BasketItemAddRequest,
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: AddItemToBasketUseCase = Depends(get_add_basket_item_use_case),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
):
    """Start a new basket with its first item."""
    basket = await use_case.execute(
        AddItemToBasketRequest(
            product_id=request.product_id,
            quantity=request.quantity,
            variant_id=request.variant_id,
            buyer_id=user.user_id,
        )
    )
    return BasketResponse.from_entity(basket, settings.CURRENCY)


@basket_router.post("/{basket_id}/items", response_model=BasketResponse)
async def add_basket_item(
    basket_id: int,
    request: BasketItemAddRequest,
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: AddItemToBasketUseCase = Depends(get_add_basket_item_use_case),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
):
    basket = await use_case.execute(
        AddItemToBasketRequest(
            product_id=request.product_id,
            quantity=request.quantity,
            variant_id=request.variant_id,
            buyer_id=user.user_id,
            basket_id=basket_id,
        )
    )
    return BasketResponse.from_entity(basket, settings.CURRENCY)


@basket_router.delete("/{basket_id}/items/{product_id}", response_model=BasketResponse)
async def remove_basket_item(
    basket_id: int,
    product_id: int,
    quantity: int = Query(default=1, ge=1),
    variant_id: int | None = Query(default=None),
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: RemoveItemFromBasketUseCase = Depends(get_remove_basket_item_use_case),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
):
    basket = await use_case.execute(
        RemoveItemFromBasketRequest(
            basket_id=basket_id,
            product_id=product_id,
            quantity=quantity,
            buyer_id=user.user_id,
            variant_id=variant_id,
        )
    )
    return BasketResponse.from_entity(basket, settings.CURRENCY)


@basket_router.get("/{basket_id}", response_model=BasketResponse)
async def get_basket(
    basket_id: int,
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: GetBasketUseCase = Depends(get_basket_use_case),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
):
    basket = await use_case.execute(basket_id, buyer_id=user.user_id)
    return BasketResponse.from_entity(basket, settings.CURRENCY)


@basket_router.post("/{basket_id}/payment-intent", response_model=PaymentIntentSchema)
async def create_basket_payment_intent(
    basket_id: int,
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: CreateOrUpdateBasketIntentUseCase = Depends(get_basket_intent_use_case),  # noqa: B008
):
    """Create or refresh the provider payment intent for the basket total."""
    result = await use_case.execute(basket_id, buyer_id=user.user_id)
    return PaymentIntentSchema(**vars(result))


# Orders


@order_router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    user: CurrentUser = Depends(get_current_user),  # noqa: B008
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case),  # noqa: B008
):
    """Check out a basket."""
    order = await use_case.execute(
        CreateOrderRequest(
            basket_id=request.basket_id,
            buyer_email=str(request.buyer_email),
            shipping_address=AddressInput(**request.shipping_address.model_dump()),
            buyer_id=user.user_id,
            billing_address=AddressInput(**request.billing_address.model_dump()) if request.billing_address else None,
            notes=request.notes,
        )
    )
    return OrderResponse.from_entity(order)


@order_router.get("", response_model=list[OrderResponse])
async def list_my_orders(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: ListBuyerOrdersUseCase = Depends(get_list_buyer_orders_use_case),  # noqa: B008
):
    orders = await use_case.execute(user.user_id, limit=limit, offset=offset)
    return [OrderResponse.from_entity(o) for o in orders]


@order_router.post("/bulk-status", response_model=BulkStatusUpdateResponse)
async def bulk_update_status(
    request: BulkStatusUpdateRequest,
    admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: BulkUpdateStatusUseCase = Depends(get_bulk_status_use_case),  # noqa: B008
):
    """Move several orders to one status; failures are reported per order."""
    result = await use_case.execute(request.order_ids, request.status, actor=admin.user_id or "admin", note=request.note)
    return BulkStatusUpdateResponse(
        results=[BulkStatusResultSchema(**vars(r)) for r in result.results],
        succeeded=result.succeeded,
        failed=len(result.results) - result.succeeded,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: GetOrderUseCase = Depends(get_order_use_case),  # noqa: B008
):
    order = await use_case.execute(order_id, buyer_id=_scoped_buyer(user))
    return OrderResponse.from_entity(order)


@order_router.get("/{order_id}/history", response_model=list[StatusHistoryResponse])
async def get_order_history(
    order_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: GetOrderHistoryUseCase = Depends(get_order_history_use_case),  # noqa: B008
):
    history = await use_case.execute(order_id, buyer_id=_scoped_buyer(user))
    return [StatusHistoryResponse.from_entity(entry) for entry in history]


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    request: OrderStatusUpdateRequest,
    admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: UpdateOrderStatusUseCase = Depends(get_update_status_use_case),  # noqa: B008
):
    order = await use_case.execute(
        UpdateOrderStatusRequest(
            order_id=order_id,
            new_status=request.status,
            actor=admin.user_id or "admin",
            note=request.note,
            tracking_number=request.tracking_number,
        )
    )
    return OrderResponse.from_entity(order)


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: CancelOrderUseCase = Depends(get_cancel_order_use_case),  # noqa: B008
):
    order = await use_case.execute(order_id, buyer_id=_scoped_buyer(user), actor=user.user_id)
    return OrderResponse.from_entity(order)


@order_router.put("/{order_id}/tracking", response_model=OrderResponse)
async def update_tracking_number(
    order_id: int,
    request: TrackingUpdateRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: UpdateTrackingNumberUseCase = Depends(get_update_tracking_use_case),  # noqa: B008
):
    order = await use_case.execute(order_id, request.tracking_number)
    return OrderResponse.from_entity(order)


@order_router.post("/{order_id}/payment-intent", response_model=PaymentIntentSchema)
async def create_order_payment_intent(
    order_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: CreateOrUpdateOrderIntentUseCase = Depends(get_order_intent_use_case),  # noqa: B008
):
    result = await use_case.execute(order_id, buyer_id=_scoped_buyer(user))
    return PaymentIntentSchema(**vars(result))


@order_router.post("/{order_id}/process-digital", response_model=OrderResponse)
async def process_digital_order(
    order_id: int,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: ProcessDigitalOrderUseCase = Depends(get_process_digital_order_use_case),  # noqa: B008
):
    """Deliver a paid digital-only order that is still awaiting fulfilment."""
    order = await use_case.execute(order_id)
    return OrderResponse.from_entity(order)


# Payments


@payment_router.post("/webhook", response_model=WebhookAckResponse)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    use_case: HandlePaymentWebhookUseCase = Depends(get_handle_webhook_use_case),  # noqa: B008
):
    """
    Handle payment provider notifications.

    Returns 2xx once the event is handled or recognised as a duplicate.
    Errors return non-2xx so the provider retries.
    """
    payload = await request.body()
    result = await use_case.execute(payload, stripe_signature)
    return WebhookAckResponse(status=result.status, event_type=result.event_type)


@payment_router.post("/webhook/verify", response_model=WebhookValidationResponse)
async def verify_webhook_signature(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: ValidateWebhookUseCase = Depends(get_validate_webhook_use_case),  # noqa: B008
):
    """Check a captured webhook payload against its signature header."""
    return WebhookValidationResponse(valid=use_case.execute(await request.body(), stripe_signature or ""))


@payment_router.post("/intents/{payment_intent_id}/process", response_model=PaymentResponse)
async def process_payment(
    payment_intent_id: str,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: ProcessPaymentUseCase = Depends(get_process_payment_use_case),  # noqa: B008
):
    """Record a succeeded intent manually (e.g. after a missed webhook)."""
    payment = await use_case.execute(payment_intent_id)
    return PaymentResponse.from_entity(payment)


@payment_router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    request: RefundRequest,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: RefundPaymentUseCase = Depends(get_refund_use_case),  # noqa: B008
):
    payment = await use_case.execute(payment_id, request.amount)
    return PaymentResponse.from_entity(payment)


@payment_router.get("/orders/{order_id}", response_model=list[PaymentResponse])
async def list_order_payments(
    order_id: int,
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: ListOrderPaymentsUseCase = Depends(get_list_payments_use_case),  # noqa: B008
):
    payments = await use_case.execute(order_id)
    return [PaymentResponse.from_entity(p) for p in payments]


# Downloads


@download_router.get("", response_model=list[DownloadResponse])
async def list_my_downloads(
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: ListBuyerDownloadsUseCase = Depends(get_list_downloads_use_case),  # noqa: B008
):
    downloads = await use_case.execute(user.user_id)
    return [DownloadResponse.from_entity(d) for d in downloads]


@download_router.post("/{download_id}/token", response_model=DownloadTokenResponse)
async def issue_download_token(
    download_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: IssueDownloadTokenUseCase = Depends(get_issue_token_use_case),  # noqa: B008
):
    token = await use_case.execute(download_id, user.user_id)
    return DownloadTokenResponse(download_id=download_id, token=token)


@download_router.get("/redeem/{token}")
async def redeem_download_token(
    token: str,
    use_case: RedeemDownloadTokenUseCase = Depends(get_redeem_token_use_case),  # noqa: B008
):
    """Consume a single-use token and redirect to the file."""
    redeemed = await use_case.execute(token)
    return RedirectResponse(redeemed.url, status_code=status.HTTP_302_FOUND)


@download_router.post("/{download_id}/complete", response_model=DownloadResponse)
async def mark_download_completed(
    download_id: int,
    user: CurrentUser = Depends(require_user),  # noqa: B008
    use_case: MarkDownloadCompletedUseCase = Depends(get_mark_completed_use_case),  # noqa: B008
):
    download = await use_case.execute(download_id, user.user_id)
    return DownloadResponse.from_entity(download)


@download_router.post("/backfill", response_model=MaintenanceResponse)
async def backfill_downloads(
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: BackfillDigitalDownloadsUseCase = Depends(get_backfill_use_case),  # noqa: B008
):
    """Create missing grants for delivered digital orders."""
    result = await use_case.execute()
    return MaintenanceResponse(result=vars(result))


@download_router.post("/sync-urls", response_model=MaintenanceResponse)
async def sync_download_urls(
    _admin: CurrentUser = Depends(require_admin),  # noqa: B008
    use_case: SyncDownloadUrlsUseCase = Depends(get_sync_urls_use_case),  # noqa: B008
):
    """Point open grants at their product's current file."""
    result = await use_case.execute()
    return MaintenanceResponse(result=vars(result))


__all__ = ["catalog_router", "basket_router", "order_router", "payment_router", "download_router"]
