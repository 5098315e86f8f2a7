"""
Create Order Use Case

Converts a basket into an order snapshot.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from storefront.core.domain import (
    AuthorizationException,
    DuplicateEntityException,
    Email,
    EntityNotFoundException,
    ValidationException,
    utc_now,
)
from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.application.services import OrderLifecycleService, TransitionOutcome
from storefront.domains.ecommerce.domain.entities import Basket, BasketItem, Order, OrderAddress, OrderItem
from storefront.domains.ecommerce.domain.services import PricingService
from storefront.domains.ecommerce.domain.value_objects import (
    OrderStatus,
    PaymentStatus,
    ProductType,
    TransitionTrigger,
)

logger = logging.getLogger(__name__)


def generate_order_number(now: datetime | None = None) -> str:
    now = now or utc_now()
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:10].upper()}"


@dataclass
class AddressInput:
    first_name: str
    last_name: str
    address_line1: str
    city: str
    postal_code: str
    country: str
    company: str | None = None
    address_line2: str | None = None
    state: str | None = None
    phone: str | None = None

    def to_entity(self) -> OrderAddress:
        return OrderAddress(
            first_name=self.first_name,
            last_name=self.last_name,
            company=self.company,
            address_line1=self.address_line1,
            address_line2=self.address_line2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
            phone=self.phone,
        )


@dataclass
class CreateOrderRequest:
    """Request for checking out a basket."""

    basket_id: int
    buyer_email: str
    shipping_address: AddressInput
    buyer_id: str | None = None
    billing_address: AddressInput | None = None
    notes: str | None = None


class CreateOrderUseCase:
    """
    Use Case: Create Order From Basket

    Responsibilities:
    - Validate basket, ownership and buyer email
    - Snapshot basket lines into order items
    - Decide shipping and compute totals
    - Persist addresses, order and basket deletion in one unit of work
    - Deliver digital-only orders immediately

    Notifications go out only after the commit succeeded.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        lifecycle: OrderLifecycleService,
        pricing: PricingService,
        currency: str = "USD",
        max_number_attempts: int = 3,
        number_factory: Callable[[], str] = generate_order_number,
    ):
        self.uow = uow
        self.lifecycle = lifecycle
        self.pricing = pricing
        self.currency = currency
        self.max_number_attempts = max_number_attempts
        self.number_factory = number_factory

    async def execute(self, request: CreateOrderRequest) -> Order:
        """
        Create an order from a basket.

        Raises:
            EntityNotFoundException: Basket does not exist
            ValidationException: Empty basket or invalid input
            AuthorizationException: Basket belongs to another buyer
        """
        email = self._validate_email(request.buyer_email)
        outcome: TransitionOutcome | None = None

        async with self.uow:
            basket = await self.uow.baskets.get(request.basket_id)
            if basket is None:
                raise EntityNotFoundException("Basket", request.basket_id)
            if basket.is_empty():
                raise ValidationException("Cannot create an order from an empty basket", field="basket_id")
            if not basket.belongs_to(request.buyer_id):
                raise AuthorizationException("checkout basket", f"basket:{basket.id}", request.buyer_id)

            # Addresses first so the order can reference their IDs
            shipping_address = await self.uow.orders.add_address(request.shipping_address.to_entity())
            billing_address = (
                await self.uow.orders.add_address(request.billing_address.to_entity())
                if request.billing_address
                else None
            )

            order = self._build_order(basket, request, email, shipping_address, billing_address)
            order = await self._add_with_unique_number(order)

            if order.contains_digital_products and not order.requires_shipping:
                outcome = await self.lifecycle.transition(
                    self.uow,
                    order,
                    OrderStatus.DELIVERED,
                    TransitionTrigger.ORDER_CREATED,
                    note="Digital-only order delivered on creation",
                )

            await self.uow.baskets.delete(basket.id)
            await self.uow.commit()

        logger.info(
            f"Order created: {order.order_number} for buyer {request.buyer_id or 'guest'} "
            f"total={order.total_amount.amount} {order.currency}"
        )

        await self.lifecycle.publish(outcome)
        return order

    def _validate_email(self, buyer_email: str) -> Email:
        if not buyer_email or not buyer_email.strip():
            raise ValidationException("Buyer email is required", field="buyer_email")
        try:
            return Email(buyer_email)
        except ValueError as e:
            raise ValidationException(str(e), field="buyer_email") from e

    def _build_order(
        self,
        basket: Basket,
        request: CreateOrderRequest,
        email: Email,
        shipping_address: OrderAddress,
        billing_address: OrderAddress | None,
    ) -> Order:
        items = [self._snapshot_item(item) for item in basket.items]
        has_digital = any(i.product_type == ProductType.DIGITAL for i in items)
        has_physical = any(i.product_type == ProductType.PHYSICAL for i in items)

        totals = self.pricing.calculate_totals(
            (i.line_total for i in items),
            requires_shipping=has_physical,
            currency=self.currency,
        )

        return Order(
            buyer_id=request.buyer_id,
            buyer_email=email.address,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            currency=self.currency,
            subtotal=totals.subtotal,
            shipping_cost=totals.shipping_cost,
            tax_amount=totals.tax_amount,
            total_amount=totals.total,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            contains_digital_products=has_digital,
            requires_shipping=has_physical,
            payment_intent_id=basket.payment_intent_id,
            notes=request.notes,
        )

    def _snapshot_item(self, basket_item: BasketItem) -> OrderItem:
        product = basket_item.product
        if product is None:
            raise ValidationException("Basket references a product that no longer exists", field="basket_id")
        return OrderItem(
            product_id=product.id,
            variant_id=basket_item.variant_id,
            product_name=product.name,
            product_description=product.description,
            unit_price=basket_item.unit_price,
            quantity=basket_item.quantity,
            picture_url=product.picture_url,
            product_type=product.product_type,
            digital_file_url=product.digital_file_url,
        )

    async def _add_with_unique_number(self, order: Order) -> Order:
        attempt = 1
        while True:
            order.order_number = self.number_factory()
            try:
                return await self.uow.orders.add(order)
            except DuplicateEntityException:
                if attempt >= self.max_number_attempts:
                    raise
                logger.warning(f"Order number collision on attempt {attempt}: {order.order_number}")
                attempt += 1
