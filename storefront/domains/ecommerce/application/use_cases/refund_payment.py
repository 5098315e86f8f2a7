"""
Refund Use Cases
"""

import logging

from storefront.core.domain import (
    EntityNotFoundException,
    InvalidOperationException,
    Money,
    PaymentException,
    ValidationException,
)
from storefront.domains.ecommerce.application.ports import IPaymentGateway, IUnitOfWork, PaymentGatewayError
from storefront.domains.ecommerce.domain.entities import Payment
from storefront.domains.ecommerce.domain.value_objects import PaymentStatus

logger = logging.getLogger(__name__)


class RefundPaymentUseCase:
    """
    Use Case: Refund Payment

    Refunds up to the captured amount minus earlier refunds. The order's
    payment status becomes refunded or partially refunded. The payment row
    stays locked from the balance check until commit, so concurrent refunds
    are checked against each other's totals.
    """

    def __init__(self, uow: IUnitOfWork, gateway: IPaymentGateway):
        self.uow = uow
        self.gateway = gateway

    async def execute(self, payment_id: int, amount: int) -> Payment:
        if amount <= 0:
            raise ValidationException("Refund amount must be positive", field="amount")

        async with self.uow:
            payment = await self.uow.payments.get_for_update(payment_id)
            if payment is None:
                raise EntityNotFoundException("Payment", payment_id)
            if payment.status != PaymentStatus.SUCCEEDED:
                raise InvalidOperationException(
                    operation="refund",
                    current_state=payment.status.value,
                    message="Only succeeded payments can be refunded",
                )
            refund = Money(amount, payment.amount.currency)
            if refund.is_greater_than(payment.refundable_amount):
                raise ValidationException(
                    f"Refund amount exceeds refundable balance of {payment.refundable_amount.amount}",
                    field="amount",
                )

            try:
                result = await self.gateway.refund(payment.payment_intent_id, amount)
            except PaymentGatewayError as e:
                logger.error(f"Refund of payment {payment_id} failed: {e}")
                raise PaymentException(
                    f"Refund failed: {e.error_message}",
                    payment_id=str(payment_id),
                    reason=e.error_code,
                    retryable=e.retryable,
                ) from e

            previous_refunded = payment.refunded_amount.amount
            payment.record_refund(refund)
            payment = await self.uow.payments.save_refund(payment, previous_refunded)

            order = await self.uow.orders.get(payment.order_id)
            if order is not None:
                order.mark_payment(
                    PaymentStatus.REFUNDED if payment.is_fully_refunded else PaymentStatus.PARTIALLY_REFUNDED
                )
                await self.uow.orders.save(order)
            await self.uow.commit()

        logger.info(
            f"Refund {result.id} of {amount} on payment {payment_id}; "
            f"refunded {payment.refunded_amount.amount}/{payment.amount.amount}"
        )
        return payment


class ListOrderPaymentsUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, order_id: int) -> list[Payment]:
        async with self.uow:
            if await self.uow.orders.get(order_id) is None:
                raise EntityNotFoundException("Order", order_id)
            return await self.uow.payments.list_by_order(order_id)
