"""
Payment Processing Use Cases

Recording confirmed captures and handling provider webhooks.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from storefront.core.domain import EntityNotFoundException, Money, ValidationException
from storefront.domains.ecommerce.application.ports import (
    IPaymentGateway,
    IUnitOfWork,
    IWebhookDeduplicator,
)
from storefront.domains.ecommerce.application.services import OrderLifecycleService, TransitionOutcome
from storefront.domains.ecommerce.domain.entities import Payment
from storefront.domains.ecommerce.domain.value_objects import (
    OrderStatus,
    PaymentStatus,
    TransitionTrigger,
)

logger = logging.getLogger(__name__)


class ProcessPaymentUseCase:
    """
    Use Case: Process Payment

    Records a successful capture for the order carrying the intent.
    Processing the same intent twice returns the payment recorded the
    first time.
    """

    def __init__(self, uow: IUnitOfWork, lifecycle: OrderLifecycleService):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(self, payment_intent_id: str, payment_method: str | None = None) -> Payment:
        outcomes: list[TransitionOutcome | None] = []

        async with self.uow:
            order = await self.uow.orders.get_by_payment_intent(payment_intent_id)
            if order is None:
                raise EntityNotFoundException(
                    "Order",
                    payment_intent_id,
                    message=f"No order found for payment intent {payment_intent_id}",
                )

            existing = await self.uow.payments.get_by_intent(payment_intent_id)
            if existing is not None:
                logger.info(f"Payment intent {payment_intent_id} already recorded as payment {existing.id}")
                return existing

            payment = Payment(
                order_id=order.id,
                payment_intent_id=payment_intent_id,
                amount=Money(order.total_amount.amount, order.currency),
                refunded_amount=Money.zero(order.currency),
                payment_method=payment_method,
            )
            payment.mark_succeeded()
            payment = await self.uow.payments.add(payment)

            order.mark_payment(PaymentStatus.SUCCEEDED)
            if order.can_transition_to(OrderStatus.PAYMENT_RECEIVED):
                outcomes.append(
                    await self.lifecycle.transition(
                        self.uow,
                        order,
                        OrderStatus.PAYMENT_RECEIVED,
                        TransitionTrigger.PAYMENT_CONFIRMED,
                        note=f"Payment {payment_intent_id} captured",
                    )
                )
            else:
                await self.uow.orders.save(order)

            outcomes.append(await self.lifecycle.complete_digital_order(self.uow, order))
            await self.uow.commit()

        logger.info(f"Payment recorded for order {order.order_number}: {payment.amount.amount} {order.currency}")
        for outcome in outcomes:
            await self.lifecycle.publish(outcome)
        return payment


class ValidateWebhookUseCase:
    """Signature check that never raises; every failure means ``False``."""

    def __init__(self, gateway: IPaymentGateway):
        self.gateway = gateway

    def execute(self, payload: bytes, signature: str | None) -> bool:
        if not signature:
            return False
        try:
            self.gateway.construct_event(payload, signature)
            return True
        except Exception as e:
            logger.warning(f"Webhook signature rejected: {e}")
            return False


@dataclass
class WebhookResult:
    status: str  # processed, duplicate or ignored
    event_type: str | None = None
    event_id: str | None = None


class HandlePaymentWebhookUseCase:
    """
    Use Case: Handle Payment Webhook

    Verifies the signature, drops already-seen events and dispatches
    ``payment_intent.succeeded`` and ``payment_intent.payment_failed``.
    A failure releases the dedup lock so the provider's retry is processed.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        gateway: IPaymentGateway,
        process_payment: ProcessPaymentUseCase,
        deduplicator: IWebhookDeduplicator | None = None,
    ):
        self.uow = uow
        self.gateway = gateway
        self.process_payment = process_payment
        self.deduplicator = deduplicator

    async def execute(self, payload: bytes, signature: str | None) -> WebhookResult:
        event = self._verify(payload, signature)
        event_id = event.get("id")
        event_type = event.get("type")

        if self.deduplicator is not None and event_id:
            if await self.deduplicator.check_and_lock(event_id):
                return WebhookResult(status="duplicate", event_type=event_type, event_id=event_id)

        try:
            result = await self._dispatch(event)
        except Exception:
            if self.deduplicator is not None and event_id:
                await self.deduplicator.release(event_id)
            raise

        if self.deduplicator is not None and event_id:
            await self.deduplicator.mark_complete(event_id)
        return result

    def _verify(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        if not signature:
            raise ValidationException("Missing webhook signature", field="signature")
        try:
            event = self.gateway.construct_event(payload, signature)
        except (ValueError, json.JSONDecodeError) as e:
            logger.warning(f"Invalid webhook: {e}")
            raise ValidationException("Invalid webhook signature", field="signature") from e
        if not isinstance(event, dict):
            raise ValidationException("Webhook event must be a JSON object", field="payload")
        data = event.get("data") or {}
        if not isinstance(data, dict) or not isinstance(data.get("object") or {}, dict):
            raise ValidationException("Webhook event data must be a JSON object", field="payload")
        return event

    async def _dispatch(self, event: dict[str, Any]) -> WebhookResult:
        event_id = event.get("id")
        event_type = event.get("type")
        intent = (event.get("data") or {}).get("object") or {}
        intent_id = intent.get("id")

        if event_type == "payment_intent.succeeded" and intent_id:
            method_types = intent.get("payment_method_types") or []
            await self.process_payment.execute(intent_id, method_types[0] if method_types else None)
            return WebhookResult(status="processed", event_type=event_type, event_id=event_id)

        if event_type == "payment_intent.payment_failed" and intent_id:
            await self._mark_failed(intent_id)
            return WebhookResult(status="processed", event_type=event_type, event_id=event_id)

        logger.debug(f"Ignoring webhook event {event_type}")
        return WebhookResult(status="ignored", event_type=event_type, event_id=event_id)

    async def _mark_failed(self, intent_id: str) -> None:
        async with self.uow:
            order = await self.uow.orders.get_by_payment_intent(intent_id)
            if order is None:
                logger.warning(f"Payment failure for unknown intent {intent_id}")
                return
            if not order.payment_status.can_fail():
                logger.warning(
                    f"Ignoring failure event for order {order.order_number} in payment status {order.payment_status.value}"
                )
                return
            order.mark_payment(PaymentStatus.FAILED)
            await self.uow.orders.save(order)
            await self.uow.commit()
        logger.info(f"Order {order.order_number} payment failed")
