"""
E-commerce API Schemas

Pydantic schemas for API request/response validation. Monetary values
are integer minor units (cents).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field

from storefront.domains.ecommerce.domain.entities import (
    Attribute,
    Basket,
    Category,
    DigitalDownload,
    Order,
    OrderAddress,
    OrderStatusHistory,
    Payment,
    Product,
    ProductVariant,
)
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, ProductType

# Catalog


class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryResponse":
        return cls(id=category.id, name=category.name, description=category.description)


class ProductCreateRequest(BaseModel):
    """Product creation schema."""

    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0, description="Price in minor units")
    description: str | None = None
    picture_url: str | None = None
    category_id: int | None = None
    quantity_in_stock: int = Field(default=0, ge=0)
    product_type: ProductType = ProductType.PHYSICAL
    digital_file_url: str | None = None


class DigitalFileUpdateRequest(BaseModel):
    digital_file_url: str = Field(..., min_length=1, max_length=1000)


class VariantCreateRequest(BaseModel):
    attribute_value_ids: list[int] = Field(..., min_length=1)
    quantity: int = Field(default=0, ge=0)
    price_override: int | None = Field(default=None, ge=0)


class VariantResponse(BaseModel):
    id: int | None
    attribute_value_ids: list[int]
    quantity_in_stock: int
    price_override: int | None = None

    @classmethod
    def from_entity(cls, variant: ProductVariant) -> "VariantResponse":
        return cls(
            id=variant.id,
            attribute_value_ids=sorted(variant.attribute_value_ids),
            quantity_in_stock=variant.quantity_in_stock,
            price_override=variant.price_override.amount if variant.price_override else None,
        )


class ProductResponse(BaseModel):
    """Product response schema."""

    id: int
    name: str
    description: str | None = None
    price: int
    currency: str
    picture_url: str | None = None
    category_id: int | None = None
    quantity_in_stock: int
    product_type: ProductType
    digital_file_url: str | None = None
    variants: list[VariantResponse] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price.amount,
            currency=product.price.currency,
            picture_url=product.picture_url,
            category_id=product.category_id,
            quantity_in_stock=product.quantity_in_stock,
            product_type=product.product_type,
            digital_file_url=product.digital_file_url,
            variants=[VariantResponse.from_entity(v) for v in product.variants],
        )


class AttributeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    values: list[str] = Field(default_factory=list)


class AttributeValueResponse(BaseModel):
    id: int | None
    value: str


class AttributeResponse(BaseModel):
    id: int
    name: str
    values: list[AttributeValueResponse]

    @classmethod
    def from_entity(cls, attribute: Attribute) -> "AttributeResponse":
        return cls(
            id=attribute.id,
            name=attribute.name,
            values=[AttributeValueResponse(id=v.id, value=v.value) for v in attribute.values],
        )


# Baskets


class BasketItemAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    variant_id: int | None = None


class BasketItemResponse(BaseModel):
    id: int | None
    product_id: int | None
    product_name: str | None
    variant_id: int | None = None
    quantity: int
    unit_price: int
    line_total: int


class BasketResponse(BaseModel):
    id: int
    buyer_id: str | None = None
    items: list[BasketItemResponse]
    subtotal: int
    currency: str
    payment_intent_id: str | None = None

    @classmethod
    def from_entity(cls, basket: Basket, currency: str) -> "BasketResponse":
        return cls(
            id=basket.id,
            buyer_id=basket.buyer_id,
            items=[
                BasketItemResponse(
                    id=item.id,
                    product_id=item.product_id,
                    product_name=item.product.name if item.product else None,
                    variant_id=item.variant_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price.amount,
                    line_total=item.line_total.amount,
                )
                for item in basket.items
            ],
            subtotal=basket.subtotal(currency).amount,
            currency=currency,
            payment_intent_id=basket.payment_intent_id,
        )


class PaymentIntentSchema(BaseModel):
    payment_intent_id: str
    client_secret: str | None = None
    amount: int
    currency: str


# Orders


class AddressSchema(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    address_line1: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    company: str | None = None
    address_line2: str | None = None
    state: str | None = None
    phone: str | None = None

    @classmethod
    def from_entity(cls, address: OrderAddress | None) -> "AddressSchema | None":
        if address is None:
            return None
        return cls(**address.to_dict())


class OrderCreateRequest(BaseModel):
    """Checkout request: turns a basket into an order."""

    basket_id: int
    buyer_email: EmailStr
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    notes: str | None = Field(default=None, max_length=2000)


class OrderItemResponse(BaseModel):
    id: int | None
    product_id: int | None
    variant_id: int | None = None
    product_name: str
    unit_price: int
    quantity: int
    line_total: int
    product_type: ProductType
    picture_url: str | None = None


class OrderResponse(BaseModel):
    """Order response schema."""

    id: int
    order_number: str
    buyer_id: str | None = None
    buyer_email: str
    status: str
    payment_status: str
    currency: str
    subtotal: int
    shipping_cost: int
    tax_amount: int
    total_amount: int
    contains_digital_products: bool
    requires_shipping: bool
    tracking_number: str | None = None
    payment_intent_id: str | None = None
    notes: str | None = None
    order_date: datetime
    version: int
    items: list[OrderItemResponse]
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None

    @classmethod
    def from_entity(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            buyer_id=order.buyer_id,
            buyer_email=order.buyer_email,
            status=order.status.value,
            payment_status=order.payment_status.value,
            currency=order.currency,
            subtotal=order.subtotal.amount,
            shipping_cost=order.shipping_cost.amount,
            tax_amount=order.tax_amount.amount,
            total_amount=order.total_amount.amount,
            contains_digital_products=order.contains_digital_products,
            requires_shipping=order.requires_shipping,
            tracking_number=order.tracking_number,
            payment_intent_id=order.payment_intent_id,
            notes=order.notes,
            order_date=order.order_date,
            version=order.version,
            items=[
                OrderItemResponse(
                    id=item.id,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    unit_price=item.unit_price.amount,
                    quantity=item.quantity,
                    line_total=item.line_total.amount,
                    product_type=item.product_type,
                    picture_url=item.picture_url,
                )
                for item in order.items
            ],
            shipping_address=AddressSchema.from_entity(order.shipping_address),
            billing_address=AddressSchema.from_entity(order.billing_address),
        )


class OrderStatusUpdateRequest(BaseModel):
    status: OrderStatus
    note: str | None = Field(default=None, max_length=2000)
    tracking_number: str | None = Field(default=None, max_length=100)


class TrackingUpdateRequest(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=100)


class BulkStatusUpdateRequest(BaseModel):
    order_ids: list[int] = Field(..., min_length=1, max_length=500)
    status: OrderStatus
    note: str | None = None


class BulkStatusResultSchema(BaseModel):
    order_id: int
    success: bool
    error: str | None = None


class BulkStatusUpdateResponse(BaseModel):
    results: list[BulkStatusResultSchema]
    succeeded: int
    failed: int


class StatusHistoryResponse(BaseModel):
    id: int | None
    from_status: str
    to_status: str
    trigger: str
    note: str | None = None
    tracking_number: str | None = None
    updated_by: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: OrderStatusHistory) -> "StatusHistoryResponse":
        return cls(
            id=entry.id,
            from_status=entry.from_status.value,
            to_status=entry.to_status.value,
            trigger=entry.trigger.value,
            note=entry.note,
            tracking_number=entry.tracking_number,
            updated_by=entry.updated_by,
            created_at=entry.created_at,
        )


# Payments


class PaymentResponse(BaseModel):
    id: int
    order_id: int
    payment_intent_id: str
    amount: int
    refunded_amount: int
    currency: str
    status: str
    payment_method: str | None = None
    processed_at: datetime | None = None

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            payment_intent_id=payment.payment_intent_id,
            amount=payment.amount.amount,
            refunded_amount=payment.refunded_amount.amount,
            currency=payment.amount.currency,
            status=payment.status.value,
            payment_method=payment.payment_method,
            processed_at=payment.processed_at,
        )


class RefundRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount to refund in minor units")


class WebhookAckResponse(BaseModel):
    received: bool = True
    status: str
    event_type: str | None = None


class WebhookValidationResponse(BaseModel):
    valid: bool


# Downloads


class DownloadResponse(BaseModel):
    id: int
    order_id: int
    order_item_id: int
    product_id: int | None = None
    product_name: str
    expires_at: datetime | None
    download_count: int
    max_downloads: int
    remaining_downloads: int
    is_completed: bool
    can_download: bool

    @classmethod
    def from_entity(cls, download: DigitalDownload) -> "DownloadResponse":
        return cls(
            id=download.id,
            order_id=download.order_id,
            order_item_id=download.order_item_id,
            product_id=download.product_id,
            product_name=download.product_name,
            expires_at=download.expires_at,
            download_count=download.download_count,
            max_downloads=download.max_downloads,
            remaining_downloads=max(download.max_downloads - download.download_count, 0),
            is_completed=download.is_completed,
            can_download=download.can_download(),
        )


class DownloadTokenResponse(BaseModel):
    download_id: int
    token: str


class MaintenanceResponse(BaseModel):
    """Counts reported by maintenance jobs."""

    result: dict[str, Any]
