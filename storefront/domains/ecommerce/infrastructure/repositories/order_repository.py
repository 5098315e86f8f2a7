"""
Order Repository Implementation

SQLAlchemy implementation of IOrderRepository.
"""

import logging
from datetime import UTC, datetime
from typing import cast

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.domain import ConcurrencyException, DuplicateEntityException, Money
from storefront.domains.ecommerce.application.ports import IOrderRepository
from storefront.domains.ecommerce.domain.entities import (
    Order,
    OrderAddress,
    OrderItem,
    OrderStatusHistory,
)
from storefront.domains.ecommerce.domain.value_objects import (
    OrderStatus,
    PaymentStatus,
    ProductType,
    TransitionTrigger,
)
from storefront.models.db import Order as OrderModel
from storefront.models.db import OrderAddress as OrderAddressModel
from storefront.models.db import OrderItem as OrderItemModel
from storefront.models.db import OrderStatusHistory as OrderStatusHistoryModel

logger = logging.getLogger(__name__)

_ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "company",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
    "phone",
)


class SQLAlchemyOrderRepository(IOrderRepository):
    """
    SQLAlchemy implementation of order repository.

    ``save`` is a versioned UPDATE: zero matched rows means another
    writer changed the order first.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    def _select(self):
        return select(OrderModel).options(
            selectinload(OrderModel.items),
            selectinload(OrderModel.shipping_address),
            selectinload(OrderModel.billing_address),
        )

    async def get(self, order_id: int) -> Order | None:
        result = await self.session.execute(
            self._select().where(OrderModel.id == order_id).execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        result = await self.session.execute(
            self._select()
            .where(OrderModel.payment_intent_id == payment_intent_id)
            .order_by(OrderModel.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_buyer(self, buyer_id: str, limit: int = 50, offset: int = 0) -> list[Order]:
        result = await self.session.execute(
            self._select()
            .where(OrderModel.buyer_id == buyer_id)
            .order_by(OrderModel.order_date.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_delivered_with_digital(self) -> list[Order]:
        result = await self.session.execute(
            self._select()
            .where(
                OrderModel.status == OrderStatus.DELIVERED.value,
                OrderModel.contains_digital_products.is_(True),
            )
            .order_by(OrderModel.id)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, order: Order) -> Order:
        model = self._to_model(order)
        try:
            # Savepoint so a number collision leaves the outer transaction usable
            async with self.session.begin_nested():
                self.session.add(model)
                await self.session.flush()
        except IntegrityError as e:
            if "order_number" in str(e.orig):
                raise DuplicateEntityException("Order", "order_number", order.order_number) from e
            raise

        order.id = cast(int, model.id)
        order.version = cast(int, model.version)
        for item, item_model in zip(order.items, model.items):
            item.id = cast(int, item_model.id)
            item.order_id = order.id
        return order

    async def save(self, order: Order) -> Order:
        now = datetime.now(UTC)
        result = await self.session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id, OrderModel.version == order.version)
            .values(
                status=order.status.value,
                payment_status=order.payment_status.value,
                payment_intent_id=order.payment_intent_id,
                tracking_number=order.tracking_number,
                notes=order.notes,
                version=order.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning(f"Stale write on order {order.id} at version {order.version}")
            raise ConcurrencyException("Order", order.id, order.version)

        order.increment_version()
        order.updated_at = now
        return order

    async def add_address(self, address: OrderAddress) -> OrderAddress:
        model = OrderAddressModel(**{name: getattr(address, name) for name in _ADDRESS_FIELDS})
        self.session.add(model)
        await self.session.flush()
        address.id = cast(int, model.id)
        return address

    async def add_history(self, entry: OrderStatusHistory) -> OrderStatusHistory:
        model = OrderStatusHistoryModel(
            order_id=entry.order_id,
            from_status=entry.from_status.value,
            to_status=entry.to_status.value,
            transition_trigger=entry.trigger.value,
            note=entry.note,
            tracking_number=entry.tracking_number,
            updated_by=entry.updated_by,
            created_at=entry.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        entry.id = cast(int, model.id)
        return entry

    async def get_history(self, order_id: int) -> list[OrderStatusHistory]:
        result = await self.session.execute(
            select(OrderStatusHistoryModel)
            .where(OrderStatusHistoryModel.order_id == order_id)
            .order_by(OrderStatusHistoryModel.created_at, OrderStatusHistoryModel.id)
        )
        return [
            OrderStatusHistory(
                id=cast(int, m.id),
                order_id=cast(int, m.order_id),
                from_status=OrderStatus(m.from_status),
                to_status=OrderStatus(m.to_status),
                trigger=TransitionTrigger(m.transition_trigger),
                note=cast(str | None, m.note),
                tracking_number=cast(str | None, m.tracking_number),
                updated_by=cast(str, m.updated_by),
                created_at=m.created_at,
                updated_at=m.created_at,
            )
            for m in result.scalars().all()
        ]

    # Mapping methods

    def _to_model(self, order: Order) -> OrderModel:
        return OrderModel(
            order_number=order.order_number,
            buyer_id=order.buyer_id,
            buyer_email=order.buyer_email,
            shipping_address_id=order.shipping_address.id if order.shipping_address else None,
            billing_address_id=order.billing_address.id if order.billing_address else None,
            currency=order.currency,
            subtotal=order.subtotal.amount,
            shipping_cost=order.shipping_cost.amount,
            tax_amount=order.tax_amount.amount,
            total_amount=order.total_amount.amount,
            status=order.status.value,
            payment_status=order.payment_status.value,
            contains_digital_products=order.contains_digital_products,
            requires_shipping=order.requires_shipping,
            payment_intent_id=order.payment_intent_id,
            tracking_number=order.tracking_number,
            notes=order.notes,
            order_date=order.order_date,
            version=order.version,
            items=[
                OrderItemModel(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    product_description=item.product_description,
                    unit_price=item.unit_price.amount,
                    quantity=item.quantity,
                    picture_url=item.picture_url,
                    product_type=item.product_type.value,
                    digital_file_url=item.digital_file_url,
                )
                for item in order.items
            ],
        )

    def _address_to_entity(self, model: OrderAddressModel | None) -> OrderAddress | None:
        if model is None:
            return None
        return OrderAddress(id=cast(int, model.id), **{name: getattr(model, name) for name in _ADDRESS_FIELDS})

    def _to_entity(self, model: OrderModel) -> Order:
        currency = cast(str, model.currency) or "USD"
        items = [
            OrderItem(
                id=cast(int, m.id),
                order_id=cast(int, m.order_id),
                product_id=cast(int | None, m.product_id),
                variant_id=cast(int | None, m.variant_id),
                product_name=cast(str, m.product_name),
                product_description=cast(str | None, m.product_description),
                unit_price=Money(cast(int, m.unit_price), currency),
                quantity=cast(int, m.quantity),
                picture_url=cast(str | None, m.picture_url),
                product_type=ProductType(cast(str, m.product_type) or ProductType.PHYSICAL.value),
                digital_file_url=cast(str | None, m.digital_file_url),
            )
            for m in model.items
        ]

        return Order(
            id=cast(int, model.id),
            version=cast(int, model.version),
            order_number=cast(str, model.order_number),
            buyer_id=cast(str | None, model.buyer_id),
            buyer_email=cast(str, model.buyer_email),
            items=items,
            shipping_address=self._address_to_entity(model.shipping_address),
            billing_address=self._address_to_entity(model.billing_address),
            currency=currency,
            subtotal=Money(cast(int, model.subtotal), currency),
            shipping_cost=Money(cast(int, model.shipping_cost), currency),
            tax_amount=Money(cast(int, model.tax_amount), currency),
            total_amount=Money(cast(int, model.total_amount), currency),
            status=OrderStatus(cast(str, model.status)),
            payment_status=PaymentStatus(cast(str, model.payment_status)),
            contains_digital_products=bool(model.contains_digital_products),
            requires_shipping=bool(model.requires_shipping),
            payment_intent_id=cast(str | None, model.payment_intent_id),
            tracking_number=cast(str | None, model.tracking_number),
            notes=cast(str | None, model.notes),
            order_date=model.order_date,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
