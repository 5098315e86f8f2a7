"""
Payment Entity for E-commerce Domain

A capture recorded against an order, with its refund balance.
"""

from dataclasses import dataclass, field
from datetime import datetime

from storefront.core.domain import Entity, Money, ValidationException, utc_now

from ..value_objects.order_status import PaymentStatus


@dataclass(eq=False)
class Payment(Entity[int]):
    order_id: int | None = None
    payment_intent_id: str = ""
    amount: Money = field(default_factory=Money.zero)
    refunded_amount: Money = field(default_factory=Money.zero)
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = None
    processed_at: datetime | None = None

    @property
    def refundable_amount(self) -> Money:
        return self.amount.subtract(self.refunded_amount)

    @property
    def is_fully_refunded(self) -> bool:
        return self.refunded_amount.amount >= self.amount.amount

    def mark_succeeded(self) -> None:
        self.status = PaymentStatus.SUCCEEDED
        self.processed_at = utc_now()
        self.touch()

    def record_refund(self, refund: Money) -> None:
        """
        Add a provider-confirmed refund to the running total.

        Raises:
            ValidationException: If the refund exceeds the remaining balance
        """
        if refund.is_greater_than(self.refundable_amount):
            raise ValidationException(
                f"Refund of {refund.amount} exceeds refundable balance {self.refundable_amount.amount}",
                field="amount",
            )
        self.refunded_amount = self.refunded_amount.add(refund)
        if self.is_fully_refunded:
            self.status = PaymentStatus.REFUNDED
        self.touch()
