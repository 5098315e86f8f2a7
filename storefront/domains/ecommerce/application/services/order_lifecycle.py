"""
Order Lifecycle Service

The single writer of order status. Every status change, whether from
checkout, payment confirmation, admin action or cancellation, goes
through ``transition`` so history and digital delivery stay consistent.
"""

import logging
from dataclasses import dataclass, field

from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.domain.entities import DigitalDownload, Order, OrderStatusHistory
from storefront.domains.ecommerce.domain.value_objects import (
    OrderStatus,
    PaymentStatus,
    TransitionTrigger,
)

from .digital_delivery import DigitalDeliveryService
from .order_notifications import OrderNotifier

logger = logging.getLogger(__name__)


@dataclass
class TransitionOutcome:
    """What a committed transition needs to announce."""

    order: Order
    history: OrderStatusHistory
    downloads: list[DigitalDownload] = field(default_factory=list)


class OrderLifecycleService:
    """
    Applies status transitions inside a caller-owned unit of work.

    Usage:
        ```python
        async with uow:
            outcome = await lifecycle.transition(uow, order, OrderStatus.SHIPPED, TransitionTrigger.ADMIN_UPDATE)
            await uow.commit()
        await lifecycle.publish(outcome)
        ```
    """

    def __init__(self, delivery: DigitalDeliveryService, notifier: OrderNotifier | None = None):
        self.delivery = delivery
        self.notifier = notifier

    async def transition(
        self,
        uow: IUnitOfWork,
        order: Order,
        target: OrderStatus,
        trigger: TransitionTrigger,
        actor: str = "System",
        note: str | None = None,
        tracking_number: str | None = None,
    ) -> TransitionOutcome:
        """
        Validate and apply a transition, persist it and append history.

        Raises:
            InvalidOperationException: If the transition is not allowed
            ConcurrencyException: If the order changed since it was loaded
        """
        entry = order.apply_transition(target, trigger, actor, note, tracking_number)
        await uow.orders.save(order)
        entry.order_id = order.id
        entry = await uow.orders.add_history(entry)

        downloads: list[DigitalDownload] = []
        if target == OrderStatus.DELIVERED and order.contains_digital_products:
            downloads = await self.delivery.create_digital_downloads(uow, order)

        logger.info(
            f"Order {order.order_number}: {entry.from_status.value} -> {entry.to_status.value} "
            f"({trigger.value} by {entry.updated_by})"
        )
        return TransitionOutcome(order=order, history=entry, downloads=downloads)

    async def complete_digital_order(self, uow: IUnitOfWork, order: Order) -> TransitionOutcome | None:
        """
        Deliver a paid, digital-only order.

        No-op unless the order has digital products, needs no shipping,
        is paid and is not delivered yet.
        """
        if not order.contains_digital_products or order.requires_shipping:
            return None
        if order.payment_status != PaymentStatus.SUCCEEDED:
            return None
        if order.status == OrderStatus.DELIVERED or not order.can_transition_to(OrderStatus.DELIVERED):
            return None
        return await self.transition(uow, order, OrderStatus.DELIVERED, TransitionTrigger.DIGITAL_FULFILMENT)

    async def publish(self, outcome: TransitionOutcome | None) -> None:
        """Announce a committed transition. Call only after commit."""
        if outcome is None or self.notifier is None:
            return
        await self.notifier.notify_status_change(outcome.order, outcome.history)
        if outcome.downloads:
            await self.notifier.send_digital_links(outcome.order, outcome.downloads)
