"""
Pricing Service for E-commerce Domain

Domain service for checkout totals. The same rules size the basket's
payment intent and the order snapshot, so both always agree.
"""

from dataclasses import dataclass
from typing import Iterable

from storefront.core.domain import Money


@dataclass(frozen=True)
class CheckoutTotals:
    """Totals of a checkout in minor units."""

    subtotal: Money
    shipping_cost: Money
    tax_amount: Money

    @property
    def total(self) -> Money:
        return self.subtotal.add(self.shipping_cost).add(self.tax_amount)


class PricingService:
    """
    Domain service for checkout pricing.

    Handles:
    - Line and subtotal calculation
    - Flat-fee shipping with a free-shipping threshold
    - Tax (currently always zero)

    Example:
        ```python
        service = PricingService(shipping_flat_fee=500, free_shipping_threshold=10000)
        totals = service.calculate_totals(
            line_totals=[Money(4000, "USD")],
            requires_shipping=True,
            currency="USD",
        )
        totals.total.amount  # 4500
        ```
    """

    def __init__(self, shipping_flat_fee: int = 500, free_shipping_threshold: int = 10000):
        """
        Initialize pricing service.

        Args:
            shipping_flat_fee: Shipping fee in minor units
            free_shipping_threshold: Subtotal strictly above which shipping is free
        """
        self.shipping_flat_fee = shipping_flat_fee
        self.free_shipping_threshold = free_shipping_threshold

    def calculate_shipping(self, subtotal: Money, requires_shipping: bool) -> Money:
        if not requires_shipping or subtotal.amount > self.free_shipping_threshold:
            return Money.zero(subtotal.currency)
        return Money(self.shipping_flat_fee, subtotal.currency)

    def calculate_tax(self, subtotal: Money) -> Money:
        return Money.zero(subtotal.currency)

    def calculate_totals(
        self,
        line_totals: Iterable[Money],
        requires_shipping: bool,
        currency: str,
    ) -> CheckoutTotals:
        subtotal = Money.zero(currency)
        for line_total in line_totals:
            subtotal = subtotal.add(line_total)
        return CheckoutTotals(
            subtotal=subtotal,
            shipping_cost=self.calculate_shipping(subtotal, requires_shipping),
            tax_amount=self.calculate_tax(subtotal),
        )
