"""
Unit Tests for E-commerce Entities

Baskets, products and variants, payments and download grants.
"""

from datetime import timedelta

import pytest

from storefront.core.domain import BusinessRuleViolationException, Money, ValidationException, utc_now
from storefront.domains.ecommerce.domain.entities import Attribute, Basket, DigitalDownload, Payment
from storefront.domains.ecommerce.domain.value_objects import PaymentStatus
from tests.utils import ProductBuilder


def _product(product_id: int, price: int = 2500):
    product = ProductBuilder().with_price(price).build()
    product.id = product_id
    return product


class TestBasket:
    def test_adding_same_product_merges_lines(self):
        # Arrange
        basket = Basket(buyer_id="buyer-1")
        product = _product(1)

        # Act
        basket.add_item(product, 1)
        basket.add_item(product, 2)

        # Assert
        assert len(basket.items) == 1
        assert basket.items[0].quantity == 3

    def test_variants_are_separate_lines(self):
        product = _product(1)
        variant = product.add_variant(frozenset({10}), quantity=5, price_override=Money(3000, "USD"))
        variant.id = 50
        basket = Basket()

        basket.add_item(product, 1)
        basket.add_item(product, 1, variant_id=50)

        assert len(basket.items) == 2
        assert basket.subtotal("USD").amount == 2500 + 3000

    def test_rejects_non_positive_quantity(self):
        with pytest.raises(ValidationException):
            Basket().add_item(_product(1), 0)

    def test_variant_stock_limits_quantity(self):
        # Arrange
        product = _product(1)
        variant = product.add_variant(frozenset({10}), quantity=2)
        variant.id = 50
        basket = Basket()
        basket.add_item(product, 2, variant_id=50)

        # Act & Assert
        with pytest.raises(ValidationException, match="Insufficient stock"):
            basket.add_item(product, 1, variant_id=50)
        assert basket.items[0].quantity == 2

    def test_rejects_foreign_variant(self):
        with pytest.raises(ValidationException):
            Basket().add_item(_product(1), 1, variant_id=999)

    def test_remove_decrements_then_drops_line(self):
        # Arrange
        basket = Basket()
        basket.add_item(_product(1), 2)

        # Act & Assert
        assert basket.remove_item(1, 1) is True
        assert basket.items[0].quantity == 1
        assert basket.remove_item(1, 5) is True
        assert basket.is_empty()
        assert basket.remove_item(1) is False

    def test_subtotal_uses_live_prices(self):
        basket = Basket()
        product = _product(1, price=1000)
        basket.add_item(product, 3)

        product.price = Money(1200, "USD")

        assert basket.subtotal("USD").amount == 3600

    def test_anonymous_basket_belongs_to_anyone(self):
        assert Basket(buyer_id=None).belongs_to("anyone")
        assert Basket(buyer_id="buyer-1").belongs_to("buyer-1")
        assert not Basket(buyer_id="buyer-1").belongs_to("buyer-2")
        assert not Basket(buyer_id="buyer-1").belongs_to(None)


class TestProduct:
    def test_digital_product_requires_file_url(self):
        product = ProductBuilder().digital(file_url="  ").build()

        with pytest.raises(ValidationException) as exc_info:
            product.validate()

        assert exc_info.value.field == "digital_file_url"

    def test_digital_product_with_url_is_valid(self):
        product = ProductBuilder().digital().build()

        product.validate()

        assert product.has_deliverable_file

    def test_variant_with_same_combination_tops_up_stock(self):
        # Arrange
        product = _product(1)
        first = product.add_variant(frozenset({1, 2}), quantity=3)

        # Act
        second = product.add_variant(frozenset({2, 1}), quantity=4)

        # Assert
        assert second is first
        assert len(product.variants) == 1
        assert first.quantity_in_stock == 7

    def test_variant_needs_attribute_values(self):
        with pytest.raises(ValidationException):
            _product(1).add_variant(frozenset(), quantity=1)

    def test_unit_price_prefers_variant_override(self):
        product = _product(1, price=2500)
        cheap = product.add_variant(frozenset({1}), quantity=1, price_override=Money(2000, "USD"))
        cheap.id = 11
        plain = product.add_variant(frozenset({2}), quantity=1)
        plain.id = 12

        assert product.unit_price_for(11).amount == 2000
        assert product.unit_price_for(12).amount == 2500
        assert product.unit_price_for(None).amount == 2500

    def test_attribute_values_are_deduplicated_case_insensitively(self):
        attribute = Attribute(name="Size")

        attribute.add_value("M")
        attribute.add_value("m")
        attribute.add_value("L")

        assert [v.value for v in attribute.values] == ["M", "L"]


class TestPayment:
    def test_partial_then_full_refund(self):
        # Arrange
        payment = Payment(payment_intent_id="pi_1", amount=Money(5000, "USD"), refunded_amount=Money.zero("USD"))
        payment.mark_succeeded()

        # Act
        payment.record_refund(Money(2000, "USD"))

        # Assert
        assert payment.refundable_amount.amount == 3000
        assert payment.status == PaymentStatus.SUCCEEDED
        payment.record_refund(Money(3000, "USD"))
        assert payment.is_fully_refunded
        assert payment.status == PaymentStatus.REFUNDED

    def test_refund_above_balance_rejected(self):
        payment = Payment(payment_intent_id="pi_1", amount=Money(5000, "USD"), refunded_amount=Money(4000, "USD"))

        with pytest.raises(ValidationException):
            payment.record_refund(Money(1001, "USD"))


class TestDigitalDownload:
    def _grant(self, **overrides) -> DigitalDownload:
        fields = {
            "order_item_id": 1,
            "order_id": 1,
            "product_id": 1,
            "buyer_id": "buyer-1",
            "product_name": "E-book",
            "download_url": "https://files.example.com/ebook.pdf",
            "expiry_days": 30,
            "max_downloads": 2,
        }
        fields.update(overrides)
        return DigitalDownload.grant(**fields)

    def test_grant_sets_expiry(self):
        grant = self._grant(expiry_days=7)

        assert grant.expires_at - grant.created_at == timedelta(days=7)
        assert grant.can_download()

    def test_token_is_single_use(self):
        # Arrange
        grant = self._grant()
        token = grant.issue_token()

        # Act
        url = grant.redeem()

        # Assert
        assert token
        assert url == "https://files.example.com/ebook.pdf"
        assert grant.download_token is None
        assert grant.download_count == 1
        assert grant.downloaded_at is not None

    def test_limit_reached_blocks_tokens(self):
        grant = self._grant(max_downloads=1)
        grant.issue_token()
        grant.redeem()

        with pytest.raises(BusinessRuleViolationException):
            grant.issue_token()
        assert not grant.can_download()

    def test_expired_grant_blocks_tokens(self):
        grant = self._grant()
        grant.expires_at = utc_now() - timedelta(seconds=1)

        assert grant.is_expired()
        with pytest.raises(BusinessRuleViolationException):
            grant.issue_token()

    def test_tokens_are_unique(self):
        grant = self._grant()

        assert grant.issue_token() != grant.issue_token()
