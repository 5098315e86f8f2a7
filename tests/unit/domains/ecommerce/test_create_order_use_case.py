"""
Unit Tests for the Create Order Use Case

Checkout runs against the in-memory unit of work, so persistence,
rollback and notifications are all observable.
"""

import itertools

import pytest

from storefront.core.domain import (
    AuthorizationException,
    DuplicateEntityException,
    EntityNotFoundException,
    Money,
    ValidationException,
)
from storefront.domains.ecommerce.application.use_cases import (
    AddressInput,
    CreateOrderRequest,
    CreateOrderUseCase,
    generate_order_number,
)
from storefront.domains.ecommerce.domain.entities import Basket
from storefront.domains.ecommerce.domain.value_objects import (
    OrderStatus,
    PaymentStatus,
    ProductType,
    TransitionTrigger,
)
from tests.utils import OrderBuilder, ProductBuilder, seed_basket, seed_order, seed_product


def _address() -> AddressInput:
    return AddressInput(
        first_name="Ada",
        last_name="Lovelace",
        address_line1="12 Analytical Row",
        city="London",
        postal_code="N1 9GU",
        country="GB",
    )


def _request(basket_id: int, buyer_id: str | None = "buyer-1", email: str = "Buyer@Example.com") -> CreateOrderRequest:
    return CreateOrderRequest(
        basket_id=basket_id,
        buyer_email=email,
        shipping_address=_address(),
        buyer_id=buyer_id,
    )


@pytest.fixture
def use_case(uow, lifecycle, pricing):
    return CreateOrderUseCase(uow, lifecycle, pricing, currency="USD", max_number_attempts=3)


class TestCreateOrderUseCase:
    """Test checkout of a basket into an order."""

    @pytest.mark.asyncio
    async def test_physical_order_snapshot_and_totals(self, uow, use_case, push_sink):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_name("Mug").with_price(2000).build())
        basket = await seed_basket(uow, [(mug, 2)])

        # Act
        order = await use_case.execute(_request(basket.id))

        # Assert
        assert order.id is not None
        assert order.order_number.startswith("ORD-")
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.buyer_email == "buyer@example.com"
        assert order.subtotal.amount == 4000
        assert order.shipping_cost.amount == 500
        assert order.total_amount.amount == 4500
        assert order.requires_shipping is True
        assert order.contains_digital_products is False
        assert order.items[0].product_name == "Mug"
        assert order.items[0].unit_price.amount == 2000
        assert order.shipping_address.id is not None
        assert await uow.baskets.get(basket.id) is None
        assert uow.commits == 1
        assert push_sink.user_messages == []

    @pytest.mark.asyncio
    async def test_free_shipping_above_threshold(self, uow, use_case):
        lamp = await seed_product(uow, ProductBuilder().with_price(12000).build())
        basket = await seed_basket(uow, [(lamp, 1)])

        order = await use_case.execute(_request(basket.id))

        assert order.shipping_cost.is_zero()
        assert order.total_amount.amount == 12000

    @pytest.mark.asyncio
    async def test_digital_only_order_is_delivered_on_creation(self, uow, use_case, push_sink):
        # Arrange
        ebook = await seed_product(uow, ProductBuilder().with_price(1500).digital().build())
        basket = await seed_basket(uow, [(ebook, 1)])

        # Act
        order = await use_case.execute(_request(basket.id))

        # Assert
        assert order.status == OrderStatus.DELIVERED
        assert order.payment_status == PaymentStatus.PENDING
        assert order.requires_shipping is False
        assert order.shipping_cost.is_zero()
        assert order.items[0].product_type == ProductType.DIGITAL
        history = await uow.orders.get_history(order.id)
        assert [(h.from_status, h.to_status, h.trigger) for h in history] == [
            (OrderStatus.PENDING, OrderStatus.DELIVERED, TransitionTrigger.ORDER_CREATED)
        ]
        downloads = await uow.downloads.list_by_order(order.id)
        assert len(downloads) == 1
        assert downloads[0].download_url == "https://files.example.com/guide.pdf"
        assert [m["title"] for m in push_sink.user_messages] == ["Order delivered", "Digital Products Ready"]

    @pytest.mark.asyncio
    async def test_mixed_order_waits_for_shipment(self, uow, use_case):
        mug = await seed_product(uow, ProductBuilder().build())
        ebook = await seed_product(uow, ProductBuilder().digital().build())
        basket = await seed_basket(uow, [(mug, 1), (ebook, 1)])

        order = await use_case.execute(_request(basket.id))

        assert order.status == OrderStatus.PENDING
        assert order.contains_digital_products is True
        assert order.requires_shipping is True
        assert await uow.downloads.list_by_order(order.id) == []

    @pytest.mark.asyncio
    async def test_guest_digital_order_has_no_grants(self, uow, use_case):
        ebook = await seed_product(uow, ProductBuilder().digital().build())
        basket = await seed_basket(uow, [(ebook, 1)], buyer_id=None)

        order = await use_case.execute(_request(basket.id, buyer_id=None))

        assert order.status == OrderStatus.DELIVERED
        assert await uow.downloads.list_by_order(order.id) == []

    @pytest.mark.asyncio
    async def test_items_are_immutable_snapshots(self, uow, use_case):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_name("Mug").with_price(2000).build())
        basket = await seed_basket(uow, [(mug, 1)])
        order = await use_case.execute(_request(basket.id))

        # Act
        mug.name = "Renamed Mug"
        mug.price = Money(9999, "USD")
        await uow.catalog.save_product(mug)

        # Assert
        stored = await uow.orders.get(order.id)
        assert stored.items[0].product_name == "Mug"
        assert stored.items[0].unit_price.amount == 2000

    @pytest.mark.asyncio
    async def test_carries_basket_payment_intent(self, uow, use_case):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])
        basket.attach_payment_intent("pi_basket", "secret")
        await uow.baskets.save(basket)

        order = await use_case.execute(_request(basket.id))

        assert order.payment_intent_id == "pi_basket"

    @pytest.mark.asyncio
    async def test_retries_on_order_number_collision(self, uow, lifecycle, pricing):
        # Arrange
        await seed_order(uow, OrderBuilder().with_number("ORD-TAKEN").with_physical_item().build())
        numbers = iter(["ORD-TAKEN", "ORD-FRESH"])
        use_case = CreateOrderUseCase(uow, lifecycle, pricing, number_factory=lambda: next(numbers))
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        # Act
        order = await use_case.execute(_request(basket.id))

        # Assert
        assert order.order_number == "ORD-FRESH"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts_and_rolls_back(self, uow, lifecycle, pricing):
        # Arrange
        await seed_order(uow, OrderBuilder().with_number("ORD-TAKEN").with_physical_item().build())
        use_case = CreateOrderUseCase(
            uow, lifecycle, pricing, max_number_attempts=2, number_factory=itertools.repeat("ORD-TAKEN").__next__
        )
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        # Act & Assert
        with pytest.raises(DuplicateEntityException):
            await use_case.execute(_request(basket.id))

        assert await uow.baskets.get(basket.id) is not None
        assert len(uow.orders.orders) == 1
        assert uow.orders.addresses == {}
        assert uow.commits == 0

    @pytest.mark.asyncio
    async def test_empty_basket_rejected(self, uow, use_case):
        basket = await uow.baskets.add(Basket(buyer_id="buyer-1"))

        with pytest.raises(ValidationException):
            await use_case.execute(_request(basket.id))

    @pytest.mark.asyncio
    async def test_missing_basket(self, use_case):
        with pytest.raises(EntityNotFoundException):
            await use_case.execute(_request(404))

    @pytest.mark.asyncio
    async def test_foreign_basket_rejected(self, uow, use_case):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)], buyer_id="someone-else")

        with pytest.raises(AuthorizationException):
            await use_case.execute(_request(basket.id))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["", "   ", "not-an-email", "a@b"])
    async def test_invalid_email_rejected(self, uow, use_case, email):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        with pytest.raises(ValidationException) as exc_info:
            await use_case.execute(_request(basket.id, email=email))

        assert exc_info.value.field == "buyer_email"
        assert await uow.baskets.get(basket.id) is not None


class TestGenerateOrderNumber:
    def test_format(self):
        number = generate_order_number()

        prefix, date, suffix = number.split("-")
        assert prefix == "ORD"
        assert len(date) == 8 and date.isdigit()
        assert len(suffix) == 10

    def test_numbers_differ(self):
        assert generate_order_number() != generate_order_number()
