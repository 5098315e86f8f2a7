"""
Payment Intent Use Cases

Create or resize the provider payment intent for a basket or an order.
"""

import logging
from dataclasses import dataclass

from storefront.core.domain import (
    AuthorizationException,
    EntityNotFoundException,
    InvalidOperationException,
    PaymentException,
    ValidationException,
)
from storefront.domains.ecommerce.application.ports import (
    IPaymentGateway,
    IUnitOfWork,
    PaymentGatewayError,
    PaymentIntent,
)
from storefront.domains.ecommerce.domain.entities import Basket, Order
from storefront.domains.ecommerce.domain.services import PricingService
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, ProductType

logger = logging.getLogger(__name__)

# Intents that have not been captured yet and can still change amount
UPDATABLE_INTENT_STATUSES = frozenset({"requires_payment_method", "requires_confirmation", "requires_action"})


@dataclass
class PaymentIntentResponse:
    payment_intent_id: str
    client_secret: str | None
    amount: int
    currency: str


async def _create_intent(
    gateway: IPaymentGateway, amount: int, currency: str, metadata: dict[str, str]
) -> PaymentIntent:
    try:
        return await gateway.create_intent(amount, currency, metadata)
    except PaymentGatewayError as e:
        logger.error(f"Payment intent creation failed: {e}")
        raise PaymentException(
            f"Could not create payment intent: {e.error_message}",
            reason=e.error_code,
            retryable=e.retryable,
        ) from e


async def sync_payment_intent(
    gateway: IPaymentGateway,
    intent_id: str | None,
    amount: int,
    currency: str,
    metadata: dict[str, str],
) -> PaymentIntent:
    """
    Return an intent for ``amount``, reusing ``intent_id`` when possible.

    Pre-capture intents are resized. Intents that already succeeded, were
    canceled or are processing are replaced, and so is any intent the
    provider fails to fetch or update.
    """
    if not intent_id:
        return await _create_intent(gateway, amount, currency, metadata)

    try:
        existing = await gateway.get_intent(intent_id)
        if existing.status in UPDATABLE_INTENT_STATUSES:
            if existing.amount == amount:
                return existing
            return await gateway.update_intent(intent_id, amount)
        logger.info(f"Payment intent {intent_id} is {existing.status}; creating a new one")
    except PaymentGatewayError as e:
        logger.warning(f"Payment intent {intent_id} unusable ({e.error_code}); creating a new one")

    return await _create_intent(gateway, amount, currency, metadata)


class CreateOrUpdateBasketIntentUseCase:
    """
    Use Case: Create Or Update Payment Intent For Basket

    The amount uses the same pricing rules as order assembly so the
    captured amount equals the future order total.
    """

    def __init__(self, uow: IUnitOfWork, gateway: IPaymentGateway, pricing: PricingService, currency: str = "USD"):
        self.uow = uow
        self.gateway = gateway
        self.pricing = pricing
        self.currency = currency

    def calculate_amount(self, basket: Basket) -> int:
        requires_shipping = any(
            item.product is not None and item.product.product_type == ProductType.PHYSICAL
            for item in basket.items
        )
        totals = self.pricing.calculate_totals(
            (item.line_total for item in basket.items),
            requires_shipping=requires_shipping,
            currency=self.currency,
        )
        return totals.total.amount

    async def execute(self, basket_id: int, buyer_id: str | None = None) -> PaymentIntentResponse:
        async with self.uow:
            basket = await self.uow.baskets.get(basket_id)
            if basket is None:
                raise EntityNotFoundException("Basket", basket_id)
            if not basket.belongs_to(buyer_id):
                raise AuthorizationException("pay for basket", f"basket:{basket_id}", buyer_id)
            if basket.is_empty():
                raise ValidationException("Basket is empty", field="basket_id")

            amount = self.calculate_amount(basket)
            intent = await sync_payment_intent(
                self.gateway,
                basket.payment_intent_id,
                amount,
                self.currency,
                {"basket_id": str(basket.id)},
            )
            basket.attach_payment_intent(intent.id, intent.client_secret)
            await self.uow.baskets.save(basket)
            await self.uow.commit()

        logger.info(f"Basket {basket_id} payment intent {intent.id} sized to {amount}")
        return PaymentIntentResponse(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=amount,
            currency=self.currency,
        )


class CreateOrUpdateOrderIntentUseCase:
    """Use Case: Create Or Update Payment Intent For an existing Order."""

    def __init__(self, uow: IUnitOfWork, gateway: IPaymentGateway):
        self.uow = uow
        self.gateway = gateway

    async def execute(self, order_id: int, buyer_id: str | None = None) -> PaymentIntentResponse:
        async with self.uow:
            order: Order | None = await self.uow.orders.get(order_id)
            if order is None:
                raise EntityNotFoundException("Order", order_id)
            if buyer_id is not None and not order.is_owned_by(buyer_id):
                raise AuthorizationException("pay for order", f"order:{order_id}", buyer_id)
            if order.payment_status.is_paid():
                raise InvalidOperationException(
                    operation="create payment intent",
                    current_state=order.payment_status.value,
                    message=f"Order {order.order_number} is already paid",
                )
            if order.status in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
                raise InvalidOperationException(operation="create payment intent", current_state=order.status.value)

            intent = await sync_payment_intent(
                self.gateway,
                order.payment_intent_id,
                order.total_amount.amount,
                order.currency,
                {"order_id": str(order.id), "order_number": order.order_number},
            )
            if intent.id != order.payment_intent_id:
                order.payment_intent_id = intent.id
                await self.uow.orders.save(order)
            await self.uow.commit()

        return PaymentIntentResponse(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=order.total_amount.amount,
            currency=order.currency,
        )
