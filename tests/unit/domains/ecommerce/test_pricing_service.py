"""
Unit Tests for Money and the Pricing Service
"""

from decimal import Decimal

import pytest

from storefront.core.domain import Money
from storefront.domains.ecommerce.domain.services import PricingService


class TestMoney:
    def test_arithmetic_stays_in_minor_units(self):
        price = Money(1999, "usd")

        total = price.multiply(3).add(Money(500, "USD"))

        assert total == Money(6497, "USD")
        assert total.currency == "USD"

    def test_rejects_fractional_amounts(self):
        with pytest.raises(ValueError):
            Money(19.99, "USD")

    def test_rejects_negative_amounts(self):
        with pytest.raises(ValueError):
            Money(-1, "USD")

    def test_rejects_currency_mismatch(self):
        with pytest.raises(ValueError):
            Money(100, "USD").add(Money(100, "EUR"))

    def test_subtract_cannot_go_negative(self):
        with pytest.raises(ValueError):
            Money(100, "USD").subtract(Money(101, "USD"))

    def test_display_conversion(self):
        assert Money(1999, "USD").to_major() == Decimal("19.99")
        assert str(Money(1999, "USD")) == "USD 19.99"


class TestPricingService:
    """Test checkout totals."""

    @pytest.fixture
    def service(self) -> PricingService:
        return PricingService(shipping_flat_fee=500, free_shipping_threshold=10000)

    def test_flat_shipping_below_threshold(self, service):
        # Act
        totals = service.calculate_totals([Money(4000, "USD")], requires_shipping=True, currency="USD")

        # Assert
        assert totals.subtotal.amount == 4000
        assert totals.shipping_cost.amount == 500
        assert totals.tax_amount.amount == 0
        assert totals.total.amount == 4500

    def test_shipping_charged_at_exact_threshold(self, service):
        totals = service.calculate_totals([Money(10000, "USD")], requires_shipping=True, currency="USD")

        assert totals.shipping_cost.amount == 500

    def test_free_shipping_above_threshold(self, service):
        totals = service.calculate_totals(
            [Money(6000, "USD"), Money(4001, "USD")], requires_shipping=True, currency="USD"
        )

        assert totals.subtotal.amount == 10001
        assert totals.shipping_cost.amount == 0
        assert totals.total.amount == 10001

    def test_no_shipping_for_digital_only(self, service):
        totals = service.calculate_totals([Money(1500, "USD")], requires_shipping=False, currency="USD")

        assert totals.shipping_cost.is_zero()
        assert totals.total.amount == 1500

    def test_empty_lines_give_zero_subtotal(self, service):
        totals = service.calculate_totals([], requires_shipping=False, currency="USD")

        assert totals.total == Money.zero("USD")
