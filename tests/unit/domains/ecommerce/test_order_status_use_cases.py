"""
Unit Tests for Order Status Use Cases

Admin updates, customer cancellation, tracking numbers, bulk updates and
order queries.
"""

import pytest

from storefront.core.domain import (
    AuthorizationException,
    ConcurrencyException,
    EntityNotFoundException,
    InvalidOperationException,
)
from storefront.domains.ecommerce.application.use_cases import (
    BulkUpdateStatusUseCase,
    CancelOrderUseCase,
    GetOrderHistoryUseCase,
    GetOrderUseCase,
    ListBuyerOrdersUseCase,
    UpdateOrderStatusRequest,
    UpdateOrderStatusUseCase,
    UpdateTrackingNumberUseCase,
)
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, TransitionTrigger
from tests.utils import OrderBuilder, seed_order


class TestUpdateOrderStatusUseCase:
    @pytest.mark.asyncio
    async def test_admin_moves_order_forward(self, uow, lifecycle, push_sink):
        # Arrange
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        use_case = UpdateOrderStatusUseCase(uow, lifecycle)

        # Act
        updated = await use_case.execute(
            UpdateOrderStatusRequest(order_id=order.id, new_status=OrderStatus.CONFIRMED, actor="admin-1")
        )

        # Assert
        assert updated.status == OrderStatus.CONFIRMED
        history = await uow.orders.get_history(order.id)
        assert history[-1].trigger == TransitionTrigger.ADMIN_UPDATE
        assert history[-1].updated_by == "admin-1"
        assert push_sink.user_messages[0]["data"]["to_status"] == "confirmed"

    @pytest.mark.asyncio
    async def test_shipping_with_tracking_number(self, uow, lifecycle):
        order = await seed_order(uow, OrderBuilder().with_physical_item().with_status(OrderStatus.PROCESSING).build())
        use_case = UpdateOrderStatusUseCase(uow, lifecycle)

        updated = await use_case.execute(
            UpdateOrderStatusRequest(order_id=order.id, new_status=OrderStatus.SHIPPED, tracking_number="1Z999")
        )

        assert updated.tracking_number == "1Z999"
        assert (await uow.orders.get_history(order.id))[-1].tracking_number == "1Z999"

    @pytest.mark.asyncio
    async def test_invalid_transition_rejected_without_notification(self, uow, lifecycle, push_sink):
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        use_case = UpdateOrderStatusUseCase(uow, lifecycle)

        with pytest.raises(InvalidOperationException):
            await use_case.execute(UpdateOrderStatusRequest(order_id=order.id, new_status=OrderStatus.SHIPPED))

        assert push_sink.user_messages == []
        assert uow.commits == 0

    @pytest.mark.asyncio
    async def test_missing_order(self, uow, lifecycle):
        use_case = UpdateOrderStatusUseCase(uow, lifecycle)

        with pytest.raises(EntityNotFoundException):
            await use_case.execute(UpdateOrderStatusRequest(order_id=99, new_status=OrderStatus.CONFIRMED))

    @pytest.mark.asyncio
    async def test_delivering_digital_items_grants_downloads(self, uow, lifecycle, push_sink):
        # Arrange
        order = await seed_order(
            uow,
            OrderBuilder().with_physical_item().with_digital_item().with_status(OrderStatus.SHIPPED).build(),
        )
        use_case = UpdateOrderStatusUseCase(uow, lifecycle)

        # Act
        await use_case.execute(UpdateOrderStatusRequest(order_id=order.id, new_status=OrderStatus.DELIVERED))

        # Assert
        assert len(await uow.downloads.list_by_order(order.id)) == 1
        assert "Digital Products Ready" in [m["title"] for m in push_sink.user_messages]


class TestCancelOrderUseCase:
    @pytest.mark.asyncio
    async def test_buyer_cancels_pending_order(self, uow, lifecycle):
        # Arrange
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        use_case = CancelOrderUseCase(uow, lifecycle)

        # Act
        cancelled = await use_case.execute(order.id, buyer_id="buyer-1")

        # Assert
        assert cancelled.status == OrderStatus.CANCELLED
        entry = (await uow.orders.get_history(order.id))[-1]
        assert entry.from_status == OrderStatus.PENDING
        assert entry.trigger == TransitionTrigger.CUSTOMER_CANCELLATION
        assert entry.updated_by == "buyer-1"

    @pytest.mark.asyncio
    async def test_history_records_confirmed_as_previous_state(self, uow, lifecycle):
        order = await seed_order(uow, OrderBuilder().with_physical_item().with_status(OrderStatus.CONFIRMED).build())

        await CancelOrderUseCase(uow, lifecycle).execute(order.id, buyer_id="buyer-1")

        assert (await uow.orders.get_history(order.id))[-1].from_status == OrderStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_other_buyer_cannot_cancel(self, uow, lifecycle):
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())

        with pytest.raises(AuthorizationException):
            await CancelOrderUseCase(uow, lifecycle).execute(order.id, buyer_id="buyer-2")

    @pytest.mark.asyncio
    async def test_admin_cancel_without_buyer(self, uow, lifecycle):
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())

        cancelled = await CancelOrderUseCase(uow, lifecycle).execute(order.id, buyer_id=None, actor="admin-1")

        assert cancelled.status == OrderStatus.CANCELLED
        assert (await uow.orders.get_history(order.id))[-1].updated_by == "admin-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [OrderStatus.PAYMENT_RECEIVED, OrderStatus.SHIPPED, OrderStatus.CANCELLED])
    async def test_late_orders_cannot_be_cancelled(self, uow, lifecycle, status):
        order = await seed_order(uow, OrderBuilder().with_physical_item().with_status(status).build())

        with pytest.raises(InvalidOperationException):
            await CancelOrderUseCase(uow, lifecycle).execute(order.id, buyer_id="buyer-1")

    @pytest.mark.asyncio
    async def test_concurrent_update_wins(self, uow, lifecycle):
        # Arrange
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        uow.orders.bump_version(order.id)

        # Act & Assert
        with pytest.raises(ConcurrencyException):
            await CancelOrderUseCase(uow, lifecycle).execute(order.id, buyer_id="buyer-1")

        assert (await uow.orders.get(order.id)).status == OrderStatus.PENDING


class TestUpdateTrackingNumberUseCase:
    @pytest.mark.asyncio
    async def test_sets_tracking_number(self, uow):
        order = await seed_order(uow, OrderBuilder().with_physical_item().with_status(OrderStatus.SHIPPED).build())

        updated = await UpdateTrackingNumberUseCase(uow).execute(order.id, " 1Z999 ")

        assert updated.tracking_number == "1Z999"
        assert (await uow.orders.get(order.id)).tracking_number == "1Z999"


class TestBulkUpdateStatusUseCase:
    @pytest.mark.asyncio
    async def test_partial_success_is_reported_per_order(self, uow, lifecycle):
        # Arrange
        pending = await seed_order(uow, OrderBuilder().with_number("ORD-A").with_physical_item().build())
        shipped = await seed_order(
            uow, OrderBuilder().with_number("ORD-B").with_physical_item().with_status(OrderStatus.SHIPPED).build()
        )
        use_case = BulkUpdateStatusUseCase(uow, lifecycle)

        # Act
        response = await use_case.execute([pending.id, shipped.id, 999, pending.id], OrderStatus.CONFIRMED)

        # Assert
        assert [r.order_id for r in response.results] == [pending.id, shipped.id, 999]
        assert [r.success for r in response.results] == [True, False, False]
        assert response.succeeded == 1
        assert (await uow.orders.get(pending.id)).status == OrderStatus.CONFIRMED
        assert (await uow.orders.get(shipped.id)).status == OrderStatus.SHIPPED
        assert response.results[1].error


class TestOrderQueries:
    @pytest.mark.asyncio
    async def test_buyer_sees_own_order_only(self, uow):
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        use_case = GetOrderUseCase(uow)

        assert (await use_case.execute(order.id, buyer_id="buyer-1")).id == order.id
        assert (await use_case.execute(order.id, buyer_id=None)).id == order.id
        with pytest.raises(AuthorizationException):
            await use_case.execute(order.id, buyer_id="buyer-2")

    @pytest.mark.asyncio
    async def test_list_buyer_orders(self, uow):
        await seed_order(uow, OrderBuilder().with_number("ORD-1").build())
        await seed_order(uow, OrderBuilder().with_number("ORD-2").build())
        await seed_order(uow, OrderBuilder().with_number("ORD-3").for_buyer("buyer-2").build())

        orders = await ListBuyerOrdersUseCase(uow).execute("buyer-1")

        assert sorted(o.order_number for o in orders) == ["ORD-1", "ORD-2"]

    @pytest.mark.asyncio
    async def test_history_is_chronological(self, uow, lifecycle):
        # Arrange
        order = await seed_order(uow, OrderBuilder().with_physical_item().build())
        update = UpdateOrderStatusUseCase(uow, lifecycle)
        for status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED):
            await update.execute(UpdateOrderStatusRequest(order_id=order.id, new_status=status))

        # Act
        history = await GetOrderHistoryUseCase(uow).execute(order.id, buyer_id="buyer-1")

        # Assert
        assert [h.to_status for h in history] == [
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
        ]

    @pytest.mark.asyncio
    async def test_history_hidden_from_other_buyers(self, uow):
        order = await seed_order(uow, OrderBuilder().build())

        with pytest.raises(AuthorizationException):
            await GetOrderHistoryUseCase(uow).execute(order.id, buyer_id="buyer-2")
