"""
Payment Repository Implementation
"""

import logging
from typing import cast

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.domain import ConcurrencyException, DuplicateEntityException, Money
from storefront.domains.ecommerce.application.ports import IPaymentRepository
from storefront.domains.ecommerce.domain.entities import Payment
from storefront.domains.ecommerce.domain.value_objects import PaymentStatus
from storefront.models.db import Payment as PaymentModel

logger = logging.getLogger(__name__)


class SQLAlchemyPaymentRepository(IPaymentRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, payment_id: int) -> Payment | None:
        model = await self.session.get(PaymentModel, payment_id, populate_existing=True)
        return self._to_entity(model) if model else None

    async def get_for_update(self, payment_id: int) -> Payment | None:
        model = await self.session.get(PaymentModel, payment_id, populate_existing=True, with_for_update=True)
        return self._to_entity(model) if model else None

    async def get_by_intent(self, payment_intent_id: str) -> Payment | None:
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.payment_intent_id == payment_intent_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_order(self, order_id: int) -> list[Payment]:
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id).order_by(PaymentModel.id)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, payment: Payment) -> Payment:
        model = PaymentModel(
            order_id=payment.order_id,
            payment_intent_id=payment.payment_intent_id,
            amount=payment.amount.amount,
            refunded_amount=payment.refunded_amount.amount,
            currency=payment.amount.currency,
            status=payment.status.value,
            payment_method=payment.payment_method,
            processed_at=payment.processed_at,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(model)
                await self.session.flush()
        except IntegrityError as e:
            raise DuplicateEntityException("Payment", "payment_intent_id", payment.payment_intent_id) from e
        payment.id = cast(int, model.id)
        return payment

    async def save(self, payment: Payment) -> Payment:
        await self.session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id)
            .values(
                refunded_amount=payment.refunded_amount.amount,
                status=payment.status.value,
                payment_method=payment.payment_method,
                processed_at=payment.processed_at,
                updated_at=payment.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return payment

    async def save_refund(self, payment: Payment, previous_refunded: int) -> Payment:
        result = await self.session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id, PaymentModel.refunded_amount == previous_refunded)
            .values(
                refunded_amount=payment.refunded_amount.amount,
                status=payment.status.value,
                updated_at=payment.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(f"Stale refund write on payment {payment.id}, expected refunded {previous_refunded}")
            raise ConcurrencyException("Payment", payment.id, previous_refunded)
        return payment

    def _to_entity(self, model: PaymentModel) -> Payment:
        currency = cast(str, model.currency) or "USD"
        return Payment(
            id=cast(int, model.id),
            order_id=cast(int, model.order_id),
            payment_intent_id=cast(str, model.payment_intent_id),
            amount=Money(cast(int, model.amount), currency),
            refunded_amount=Money(cast(int, model.refunded_amount) or 0, currency),
            status=PaymentStatus(cast(str, model.status)),
            payment_method=cast(str | None, model.payment_method),
            processed_at=model.processed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
