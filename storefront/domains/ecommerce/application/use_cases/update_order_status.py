"""
Order Status Use Cases

Admin status updates, customer cancellation, tracking numbers and
order queries.
"""

import logging
from dataclasses import dataclass, field

from storefront.core.domain import (
    AuthorizationException,
    DomainException,
    EntityNotFoundException,
    InvalidOperationException,
)
from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.application.services import OrderLifecycleService
from storefront.domains.ecommerce.domain.entities import Order, OrderStatusHistory
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, TransitionTrigger

logger = logging.getLogger(__name__)


async def _load_order(uow: IUnitOfWork, order_id: int) -> Order:
    order = await uow.orders.get(order_id)
    if order is None:
        raise EntityNotFoundException("Order", order_id)
    return order


@dataclass
class UpdateOrderStatusRequest:
    order_id: int
    new_status: OrderStatus
    actor: str = "System"
    note: str | None = None
    tracking_number: str | None = None


class UpdateOrderStatusUseCase:
    """
    Use Case: Update Order Status

    Delegates to the lifecycle service, which validates the transition,
    writes history and unlocks digital downloads on delivery.
    """

    def __init__(self, uow: IUnitOfWork, lifecycle: OrderLifecycleService):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(self, request: UpdateOrderStatusRequest) -> Order:
        async with self.uow:
            order = await _load_order(self.uow, request.order_id)
            outcome = await self.lifecycle.transition(
                self.uow,
                order,
                request.new_status,
                TransitionTrigger.ADMIN_UPDATE,
                actor=request.actor,
                note=request.note,
                tracking_number=request.tracking_number,
            )
            await self.uow.commit()

        await self.lifecycle.publish(outcome)
        return order


class CancelOrderUseCase:
    """
    Use Case: Cancel Order

    Only pending or confirmed orders can be cancelled, and only by their buyer
    (or by an admin when ``buyer_id`` is None).
    """

    def __init__(self, uow: IUnitOfWork, lifecycle: OrderLifecycleService):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(self, order_id: int, buyer_id: str | None = None, actor: str | None = None) -> Order:
        async with self.uow:
            order = await _load_order(self.uow, order_id)
            if buyer_id is not None and not order.is_owned_by(buyer_id):
                raise AuthorizationException("cancel order", f"order:{order_id}", buyer_id)
            if not order.status.can_be_cancelled():
                raise InvalidOperationException(
                    operation="cancel",
                    current_state=order.status.value,
                    message=f"Order {order.order_number} can no longer be cancelled",
                )
            outcome = await self.lifecycle.transition(
                self.uow,
                order,
                OrderStatus.CANCELLED,
                TransitionTrigger.CUSTOMER_CANCELLATION,
                actor=actor or buyer_id or "System",
                note="Order cancelled",
            )
            await self.uow.commit()

        await self.lifecycle.publish(outcome)
        return order


class UpdateTrackingNumberUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, order_id: int, tracking_number: str) -> Order:
        async with self.uow:
            order = await _load_order(self.uow, order_id)
            order.set_tracking_number(tracking_number)
            await self.uow.orders.save(order)
            await self.uow.commit()
        logger.info(f"Tracking number of order {order.order_number} set to {order.tracking_number}")
        return order


@dataclass
class BulkStatusResult:
    order_id: int
    success: bool
    error: str | None = None


@dataclass
class BulkUpdateStatusResponse:
    results: list[BulkStatusResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)


class BulkUpdateStatusUseCase:
    """
    Apply one status to many orders.

    Each order commits on its own, so one failing order does not block
    the rest.
    """

    def __init__(self, uow: IUnitOfWork, lifecycle: OrderLifecycleService):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(
        self,
        order_ids: list[int],
        new_status: OrderStatus,
        actor: str = "System",
        note: str | None = None,
    ) -> BulkUpdateStatusResponse:
        response = BulkUpdateStatusResponse()
        for order_id in dict.fromkeys(order_ids):
            try:
                async with self.uow:
                    order = await _load_order(self.uow, order_id)
                    outcome = await self.lifecycle.transition(
                        self.uow, order, new_status, TransitionTrigger.ADMIN_UPDATE, actor=actor, note=note
                    )
                    await self.uow.commit()
            except DomainException as e:
                logger.warning(f"Bulk status update skipped order {order_id}: {e.message}")
                response.results.append(BulkStatusResult(order_id=order_id, success=False, error=e.message))
                continue

            await self.lifecycle.publish(outcome)
            response.results.append(BulkStatusResult(order_id=order_id, success=True))
        return response


class GetOrderUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, order_id: int, buyer_id: str | None = None) -> Order:
        """``buyer_id`` restricts access to the buyer's own orders; None means admin access."""
        async with self.uow:
            order = await _load_order(self.uow, order_id)
        if buyer_id is not None and not order.is_owned_by(buyer_id):
            raise AuthorizationException("view order", f"order:{order_id}", buyer_id)
        return order


class ListBuyerOrdersUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, buyer_id: str, limit: int = 50, offset: int = 0) -> list[Order]:
        async with self.uow:
            return await self.uow.orders.list_by_buyer(buyer_id, limit=limit, offset=offset)


class GetOrderHistoryUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, order_id: int, buyer_id: str | None = None) -> list[OrderStatusHistory]:
        async with self.uow:
            order = await _load_order(self.uow, order_id)
            if buyer_id is not None and not order.is_owned_by(buyer_id):
                raise AuthorizationException("view order history", f"order:{order_id}", buyer_id)
            return await self.uow.orders.get_history(order_id)
