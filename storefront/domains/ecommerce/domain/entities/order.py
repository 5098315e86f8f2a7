"""
Order Entity for E-commerce Domain

Immutable snapshot of a checked-out basket plus its status, payment state
and append-only status history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storefront.core.domain import AggregateRoot, Entity, InvalidOperationException, Money, utc_now

from ..value_objects.order_status import OrderStatus, PaymentStatus, ProductType, TransitionTrigger


@dataclass(eq=False)
class OrderAddress(Entity[int]):
    """Denormalized address snapshot stored with the order."""

    first_name: str = ""
    last_name: str = ""
    company: str | None = None
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str | None = None
    postal_code: str = ""
    country: str = ""
    phone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "company": self.company,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone": self.phone,
        }


@dataclass(eq=False)
class OrderItem(Entity[int]):
    """
    Point-in-time copy of a purchased product.

    Later catalog changes never alter an existing order item.
    """

    order_id: int | None = None
    product_id: int | None = None
    variant_id: int | None = None
    product_name: str = ""
    product_description: str | None = None
    unit_price: Money = field(default_factory=Money.zero)
    quantity: int = 0
    picture_url: str | None = None
    product_type: ProductType = ProductType.PHYSICAL
    digital_file_url: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price.multiply(self.quantity)

    @property
    def is_digital(self) -> bool:
        return self.product_type == ProductType.DIGITAL

    @property
    def has_deliverable_file(self) -> bool:
        return self.is_digital and bool(self.digital_file_url and self.digital_file_url.strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "product_name": self.product_name,
            "unit_price": self.unit_price.amount,
            "quantity": self.quantity,
            "line_total": self.line_total.amount,
            "picture_url": self.picture_url,
            "product_type": self.product_type.value,
        }


@dataclass(eq=False)
class OrderStatusHistory(Entity[int]):
    """Append-only record of one status transition."""

    order_id: int | None = None
    from_status: OrderStatus = OrderStatus.PENDING
    to_status: OrderStatus = OrderStatus.PENDING
    trigger: TransitionTrigger = TransitionTrigger.ADMIN_UPDATE
    note: str | None = None
    tracking_number: str | None = None
    updated_by: str = "System"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "trigger": self.trigger.value,
            "note": self.note,
            "tracking_number": self.tracking_number,
            "updated_by": self.updated_by,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(eq=False)
class Order(AggregateRoot[int]):
    """
    Order aggregate root.

    Status only changes through ``apply_transition``, which validates the
    move against the transition table and returns the history entry to
    persist. Monetary fields are integer minor units.
    """

    order_number: str = ""
    buyer_id: str | None = None
    buyer_email: str = ""
    items: list[OrderItem] = field(default_factory=list)
    shipping_address: OrderAddress | None = None
    billing_address: OrderAddress | None = None

    currency: str = "USD"
    subtotal: Money = field(default_factory=Money.zero)
    shipping_cost: Money = field(default_factory=Money.zero)
    tax_amount: Money = field(default_factory=Money.zero)
    total_amount: Money = field(default_factory=Money.zero)

    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    contains_digital_products: bool = False
    requires_shipping: bool = True
    payment_intent_id: str | None = None
    tracking_number: str | None = None
    notes: str | None = None
    order_date: datetime = field(default_factory=utc_now)

    @property
    def digital_items(self) -> list[OrderItem]:
        """Items whose snapshot marks them digital with a deliverable file."""
        return [item for item in self.items if item.has_deliverable_file]

    def is_owned_by(self, buyer_id: str | None) -> bool:
        return self.buyer_id is not None and self.buyer_id == buyer_id

    def can_transition_to(self, target: OrderStatus) -> bool:
        return self.status.can_transition_to(target, self.requires_shipping)

    def apply_transition(
        self,
        target: OrderStatus,
        trigger: TransitionTrigger,
        actor: str = "System",
        note: str | None = None,
        tracking_number: str | None = None,
    ) -> OrderStatusHistory:
        """
        Move the order to ``target`` and build the matching history entry.

        Raises:
            InvalidOperationException: If the transition is not allowed
        """
        previous = self.status
        if not self.can_transition_to(target):
            raise InvalidOperationException(
                operation=f"transition to {target.value}",
                current_state=previous.value,
                message=f"Order {self.order_number} cannot move from {previous.value} to {target.value}",
            )

        self.status = target
        if tracking_number:
            self.tracking_number = tracking_number
        self.touch()

        return OrderStatusHistory(
            order_id=self.id,
            from_status=previous,
            to_status=target,
            trigger=trigger,
            note=note,
            tracking_number=tracking_number,
            updated_by=actor or "System",
        )

    def set_tracking_number(self, tracking_number: str) -> None:
        if self.status in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
            raise InvalidOperationException(operation="set tracking number", current_state=self.status.value)
        self.tracking_number = tracking_number.strip() or None
        self.touch()

    def mark_payment(self, status: PaymentStatus) -> None:
        self.payment_status = status
        self.touch()

    def to_summary_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "total_amount": self.total_amount.amount,
            "currency": self.currency,
            "order_date": self.order_date.isoformat(),
        }
