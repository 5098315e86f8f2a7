"""
Unit Tests for Order Status Transitions

Covers the transition table and how the Order aggregate applies it.
"""

import pytest

from storefront.core.domain import InvalidOperationException
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, PaymentStatus, TransitionTrigger
from tests.utils import OrderBuilder


class TestOrderStatusTransitions:
    """Test the allowed moves between order states."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.PENDING, OrderStatus.PAYMENT_RECEIVED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
            (OrderStatus.PAYMENT_RECEIVED, OrderStatus.SHIPPED),
            (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.SHIPPED, OrderStatus.RETURNED),
            (OrderStatus.DELIVERED, OrderStatus.RETURNED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert current.can_transition_to(target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.SHIPPED),
            (OrderStatus.PAYMENT_RECEIVED, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.PENDING),
            (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
            (OrderStatus.CANCELLED, OrderStatus.PENDING),
            (OrderStatus.RETURNED, OrderStatus.DELIVERED),
        ],
    )
    def test_rejected_transitions(self, current, target):
        assert current.can_transition_to(target) is False

    def test_delivered_requires_shipment_for_physical_orders(self):
        assert OrderStatus.PENDING.can_transition_to(OrderStatus.DELIVERED, requires_shipping=True) is False
        assert OrderStatus.PROCESSING.can_transition_to(OrderStatus.DELIVERED, requires_shipping=True) is False

    def test_orders_without_shipping_skip_to_delivered(self):
        for status in (
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PAYMENT_RECEIVED,
            OrderStatus.PROCESSING,
        ):
            assert status.can_transition_to(OrderStatus.DELIVERED, requires_shipping=False) is True

    def test_terminal_states(self):
        assert OrderStatus.CANCELLED.is_terminal()
        assert OrderStatus.RETURNED.is_terminal()
        assert not OrderStatus.DELIVERED.is_terminal()
        assert OrderStatus.CANCELLED.get_valid_transitions() == []

    def test_only_early_orders_can_be_cancelled(self):
        cancellable = {s for s in OrderStatus if s.can_be_cancelled()}
        assert cancellable == {OrderStatus.PENDING, OrderStatus.CONFIRMED}

    def test_from_string_is_case_insensitive(self):
        assert OrderStatus.from_string("Payment_Received") == OrderStatus.PAYMENT_RECEIVED
        with pytest.raises(ValueError):
            OrderStatus.from_string("lost")


class TestPaymentStatus:
    def test_paid_states(self):
        assert PaymentStatus.SUCCEEDED.is_paid()
        assert PaymentStatus.PARTIALLY_REFUNDED.is_paid()
        assert not PaymentStatus.PENDING.is_paid()
        assert not PaymentStatus.REFUNDED.is_paid()


class TestOrderApplyTransition:
    """Test Order.apply_transition and the history entry it returns."""

    def test_apply_transition_returns_history_entry(self):
        # Arrange
        order = OrderBuilder().with_physical_item().build()
        order.id = 7

        # Act
        entry = order.apply_transition(
            OrderStatus.CONFIRMED,
            TransitionTrigger.ADMIN_UPDATE,
            actor="admin-1",
            note="checked stock",
        )

        # Assert
        assert order.status == OrderStatus.CONFIRMED
        assert entry.order_id == 7
        assert entry.from_status == OrderStatus.PENDING
        assert entry.to_status == OrderStatus.CONFIRMED
        assert entry.trigger == TransitionTrigger.ADMIN_UPDATE
        assert entry.updated_by == "admin-1"
        assert entry.note == "checked stock"

    def test_apply_transition_records_tracking_number(self):
        # Arrange
        order = OrderBuilder().with_physical_item().with_status(OrderStatus.PROCESSING).build()

        # Act
        entry = order.apply_transition(OrderStatus.SHIPPED, TransitionTrigger.ADMIN_UPDATE, tracking_number="1Z999")

        # Assert
        assert order.tracking_number == "1Z999"
        assert entry.tracking_number == "1Z999"

    def test_invalid_transition_leaves_order_untouched(self):
        # Arrange
        order = OrderBuilder().with_physical_item().build()

        # Act & Assert
        with pytest.raises(InvalidOperationException) as exc_info:
            order.apply_transition(OrderStatus.SHIPPED, TransitionTrigger.ADMIN_UPDATE)

        assert order.status == OrderStatus.PENDING
        assert exc_info.value.current_state == "pending"

    def test_empty_actor_defaults_to_system(self):
        order = OrderBuilder().with_physical_item().build()

        entry = order.apply_transition(OrderStatus.CONFIRMED, TransitionTrigger.ADMIN_UPDATE, actor="")

        assert entry.updated_by == "System"

    def test_digital_only_order_can_be_delivered_directly(self):
        order = OrderBuilder().with_digital_item().build()

        assert order.requires_shipping is False
        assert order.can_transition_to(OrderStatus.DELIVERED)

    def test_tracking_number_rejected_on_cancelled_order(self):
        order = OrderBuilder().with_physical_item().with_status(OrderStatus.CANCELLED).build()

        with pytest.raises(InvalidOperationException):
            order.set_tracking_number("1Z999")

    def test_blank_tracking_number_clears_it(self):
        order = OrderBuilder().with_physical_item().build()
        order.set_tracking_number("1Z999")

        order.set_tracking_number("   ")

        assert order.tracking_number is None

    def test_ownership_requires_matching_buyer(self):
        order = OrderBuilder().for_buyer("buyer-1").build()
        guest_order = OrderBuilder().for_buyer(None).build()

        assert order.is_owned_by("buyer-1")
        assert not order.is_owned_by("buyer-2")
        assert not guest_order.is_owned_by(None)
