"""
Order Status Value Objects for E-commerce Domain

Lifecycle states of an order, payment states, product types and the
transition table that governs order status changes.
"""

from storefront.core.domain import StatusEnum


class OrderStatus(StatusEnum):
    """
    Order lifecycle states.

    Valid transitions:
    - PENDING -> CONFIRMED, PAYMENT_RECEIVED, PROCESSING, DELIVERED*, CANCELLED
    - CONFIRMED -> PAYMENT_RECEIVED, PROCESSING, DELIVERED*, CANCELLED
    - PAYMENT_RECEIVED -> PROCESSING, SHIPPED, DELIVERED*
    - PROCESSING -> SHIPPED, DELIVERED*
    - SHIPPED -> DELIVERED, RETURNED
    - DELIVERED -> RETURNED
    - CANCELLED, RETURNED -> (terminal states)

    * only for orders that do not require shipping
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PAYMENT_RECEIVED = "payment_received"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"

    def can_transition_to(self, new_status: "OrderStatus", requires_shipping: bool = True) -> bool:
        """
        Check if transition to new status is valid.

        Args:
            new_status: Target status
            requires_shipping: Whether the order has physical items to ship

        Returns:
            True if transition is allowed
        """
        if new_status in _TRANSITIONS.get(self, frozenset()):
            return True
        return (
            new_status == OrderStatus.DELIVERED
            and not requires_shipping
            and self in _PRE_SHIPMENT_STATES
        )

    def get_valid_transitions(self, requires_shipping: bool = True) -> list["OrderStatus"]:
        return [s for s in OrderStatus if self.can_transition_to(s, requires_shipping)]

    def is_terminal(self) -> bool:
        return not _TRANSITIONS.get(self)

    def can_be_cancelled(self) -> bool:
        return self in (OrderStatus.PENDING, OrderStatus.CONFIRMED)


# Kept outside the enum body so the table is not turned into a member.
_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.CONFIRMED,
            OrderStatus.PAYMENT_RECEIVED,
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.CONFIRMED: frozenset(
        {
            OrderStatus.PAYMENT_RECEIVED,
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.PAYMENT_RECEIVED: frozenset({OrderStatus.PROCESSING, OrderStatus.SHIPPED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# States from which an order without physical items may skip straight to DELIVERED
_PRE_SHIPMENT_STATES = frozenset(
    {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.PAYMENT_RECEIVED,
        OrderStatus.PROCESSING,
    }
)


class PaymentStatus(StatusEnum):
    """Payment status for orders and payments."""

    PENDING = "pending"
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"

    def is_paid(self) -> bool:
        return self in (PaymentStatus.SUCCEEDED, PaymentStatus.PARTIALLY_REFUNDED)

    def can_fail(self) -> bool:
        """A failed attempt only applies while no payment has settled."""
        return self in (PaymentStatus.PENDING, PaymentStatus.REQUIRES_ACTION, PaymentStatus.FAILED)


class ProductType(StatusEnum):
    """Kind of product: shipped goods or downloadable files."""

    PHYSICAL = "physical"
    DIGITAL = "digital"


class TransitionTrigger(StatusEnum):
    """What caused an order status transition."""

    ORDER_CREATED = "order_created"
    PAYMENT_CONFIRMED = "payment_confirmed"
    ADMIN_UPDATE = "admin_update"
    CUSTOMER_CANCELLATION = "customer_cancellation"
    DIGITAL_FULFILMENT = "digital_fulfilment"
