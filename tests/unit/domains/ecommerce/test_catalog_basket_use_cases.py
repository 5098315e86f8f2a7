"""
Unit Tests for Catalog and Basket Use Cases
"""

import pytest

from storefront.core.domain import (
    AuthorizationException,
    DuplicateEntityException,
    EntityNotFoundException,
    ValidationException,
)
from storefront.domains.ecommerce.application.use_cases import (
    AddItemToBasketRequest,
    AddItemToBasketUseCase,
    AddProductVariantRequest,
    AddProductVariantUseCase,
    CreateAttributeRequest,
    CreateAttributeUseCase,
    CreateCategoryUseCase,
    CreateProductRequest,
    CreateProductUseCase,
    GetBasketUseCase,
    GetProductUseCase,
    ListProductsUseCase,
    RemoveItemFromBasketRequest,
    RemoveItemFromBasketUseCase,
    UpdateDigitalFileUseCase,
)
from storefront.domains.ecommerce.domain.value_objects import ProductType
from tests.utils import ProductBuilder, seed_basket, seed_product


class TestCreateProductUseCase:
    @pytest.mark.asyncio
    async def test_creates_physical_product(self, uow):
        # Arrange
        category = await CreateCategoryUseCase(uow).execute("Kitchen")
        request = CreateProductRequest(name="  Mug ", price=1200, category_id=category.id, quantity_in_stock=5)

        # Act
        product = await CreateProductUseCase(uow).execute(request)

        # Assert
        assert product.id is not None
        assert product.name == "Mug"
        assert product.price.currency == "USD"
        assert (await uow.catalog.get_product(product.id)).category_id == category.id

    @pytest.mark.asyncio
    async def test_digital_product_needs_file(self, uow):
        request = CreateProductRequest(name="E-book", price=900, product_type=ProductType.DIGITAL)

        with pytest.raises(ValidationException) as exc_info:
            await CreateProductUseCase(uow).execute(request)

        assert exc_info.value.field == "digital_file_url"
        assert uow.catalog.products == {}

    @pytest.mark.asyncio
    async def test_negative_price(self, uow):
        with pytest.raises(ValidationException) as exc_info:
            await CreateProductUseCase(uow).execute(CreateProductRequest(name="Mug", price=-1))

        assert exc_info.value.field == "price"

    @pytest.mark.asyncio
    async def test_unknown_category(self, uow):
        with pytest.raises(EntityNotFoundException):
            await CreateProductUseCase(uow).execute(CreateProductRequest(name="Mug", price=100, category_id=9))

    @pytest.mark.asyncio
    async def test_update_digital_file(self, uow):
        ebook = await seed_product(uow, ProductBuilder().digital().build())

        updated = await UpdateDigitalFileUseCase(uow).execute(ebook.id, " https://files.example.com/v2.pdf ")

        assert updated.digital_file_url == "https://files.example.com/v2.pdf"

    @pytest.mark.asyncio
    async def test_update_digital_file_cannot_clear(self, uow):
        ebook = await seed_product(uow, ProductBuilder().digital().build())

        with pytest.raises(ValidationException):
            await UpdateDigitalFileUseCase(uow).execute(ebook.id, "   ")

        assert (await uow.catalog.get_product(ebook.id)).digital_file_url == "https://files.example.com/guide.pdf"

    @pytest.mark.asyncio
    async def test_get_and_list(self, uow):
        mug = await seed_product(uow, ProductBuilder().with_name("Mug").build())
        await seed_product(uow, ProductBuilder().with_name("Lamp").build())

        assert (await GetProductUseCase(uow).execute(mug.id)).name == "Mug"
        assert [p.name for p in await ListProductsUseCase(uow).execute()] == ["Lamp", "Mug"]
        with pytest.raises(EntityNotFoundException):
            await GetProductUseCase(uow).execute(999)


class TestCategoriesAndAttributes:
    @pytest.mark.asyncio
    async def test_duplicate_category(self, uow):
        use_case = CreateCategoryUseCase(uow)
        await use_case.execute("Books")

        with pytest.raises(DuplicateEntityException):
            await use_case.execute("Books")

    @pytest.mark.asyncio
    async def test_blank_category_name(self, uow):
        with pytest.raises(ValidationException):
            await CreateCategoryUseCase(uow).execute("  ")

    @pytest.mark.asyncio
    async def test_attribute_values_are_deduplicated(self, uow):
        attribute = await CreateAttributeUseCase(uow).execute(
            CreateAttributeRequest(name="Size", values=["S", "M", "m"])
        )

        assert [v.value for v in attribute.values] == ["S", "M"]
        assert all(v.id is not None for v in attribute.values)


class TestAddProductVariantUseCase:
    @pytest.fixture
    async def sizes(self, uow):
        return await CreateAttributeUseCase(uow).execute(CreateAttributeRequest(name="Size", values=["S", "M"]))

    @pytest.mark.asyncio
    async def test_same_combination_tops_up_stock(self, uow, sizes):
        # Arrange
        shirt = await seed_product(uow, ProductBuilder().with_name("Shirt").build())
        small = sizes.values[0].id
        use_case = AddProductVariantUseCase(uow)

        # Act
        first = await use_case.execute(AddProductVariantRequest(shirt.id, [small], quantity=3, price_override=2900))
        second = await use_case.execute(AddProductVariantRequest(shirt.id, [small], quantity=2))

        # Assert
        assert second.id == first.id
        assert second.quantity_in_stock == 5
        stored = await uow.catalog.get_product(shirt.id)
        assert len(stored.variants) == 1
        assert stored.unit_price_for(first.id).amount == 2900

    @pytest.mark.asyncio
    async def test_unknown_attribute_value(self, uow, sizes):
        shirt = await seed_product(uow, ProductBuilder().build())

        with pytest.raises(EntityNotFoundException) as exc_info:
            await AddProductVariantUseCase(uow).execute(AddProductVariantRequest(shirt.id, [sizes.values[0].id, 999]))

        assert exc_info.value.entity_type == "AttributeValue"


class TestBasketUseCases:
    """Test adding, removing and viewing basket lines."""

    @pytest.mark.asyncio
    async def test_first_add_creates_basket(self, uow):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_price(1200).build())

        # Act
        basket = await AddItemToBasketUseCase(uow).execute(
            AddItemToBasketRequest(product_id=mug.id, quantity=2, buyer_id="buyer-1")
        )

        # Assert
        assert basket.id is not None
        assert basket.buyer_id == "buyer-1"
        assert basket.items[0].quantity == 2
        assert basket.subtotal("USD").amount == 2400

    @pytest.mark.asyncio
    async def test_adding_same_product_merges_lines(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        updated = await AddItemToBasketUseCase(uow).execute(
            AddItemToBasketRequest(product_id=mug.id, quantity=2, buyer_id="buyer-1", basket_id=basket.id)
        )

        assert len(updated.items) == 1
        assert updated.items[0].quantity == 3

    @pytest.mark.asyncio
    async def test_guest_basket_is_claimed_by_buyer(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)], buyer_id=None)

        updated = await AddItemToBasketUseCase(uow).execute(
            AddItemToBasketRequest(product_id=mug.id, quantity=1, buyer_id="buyer-7", basket_id=basket.id)
        )

        assert updated.buyer_id == "buyer-7"

    @pytest.mark.asyncio
    async def test_other_buyers_basket(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)], buyer_id="buyer-2")

        with pytest.raises(AuthorizationException):
            await AddItemToBasketUseCase(uow).execute(
                AddItemToBasketRequest(product_id=mug.id, quantity=1, buyer_id="buyer-1", basket_id=basket.id)
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_non_positive_quantity(self, uow, quantity):
        with pytest.raises(ValidationException):
            await AddItemToBasketUseCase(uow).execute(AddItemToBasketRequest(product_id=1, quantity=quantity))

    @pytest.mark.asyncio
    async def test_unknown_product(self, uow):
        with pytest.raises(EntityNotFoundException):
            await AddItemToBasketUseCase(uow).execute(AddItemToBasketRequest(product_id=404, quantity=1))

    @pytest.mark.asyncio
    async def test_out_of_stock_product_is_rejected(self, uow):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_stock(0).build())

        # Act & Assert
        with pytest.raises(ValidationException) as exc_info:
            await AddItemToBasketUseCase(uow).execute(
                AddItemToBasketRequest(product_id=mug.id, quantity=5, buyer_id="buyer-1")
            )
        assert exc_info.value.field == "quantity"

    @pytest.mark.asyncio
    async def test_stock_check_counts_quantity_already_in_basket(self, uow):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_stock(3).build())
        basket = await seed_basket(uow, [(mug, 2)])
        use_case = AddItemToBasketUseCase(uow)

        # Act & Assert
        with pytest.raises(ValidationException):
            await use_case.execute(
                AddItemToBasketRequest(product_id=mug.id, quantity=2, buyer_id="buyer-1", basket_id=basket.id)
            )
        updated = await use_case.execute(
            AddItemToBasketRequest(product_id=mug.id, quantity=1, buyer_id="buyer-1", basket_id=basket.id)
        )
        assert updated.items[0].quantity == 3

    @pytest.mark.asyncio
    async def test_digital_products_are_not_stock_limited(self, uow):
        ebook = await seed_product(uow, ProductBuilder().digital().with_stock(0).build())

        basket = await AddItemToBasketUseCase(uow).execute(
            AddItemToBasketRequest(product_id=ebook.id, quantity=2, buyer_id="buyer-1")
        )

        assert basket.items[0].quantity == 2

    @pytest.mark.asyncio
    async def test_remove_drops_line_at_zero(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 2)])
        use_case = RemoveItemFromBasketUseCase(uow)

        after_one = await use_case.execute(RemoveItemFromBasketRequest(basket.id, mug.id, buyer_id="buyer-1"))
        after_two = await use_case.execute(RemoveItemFromBasketRequest(basket.id, mug.id, buyer_id="buyer-1"))

        assert after_one.items[0].quantity == 1
        assert after_two.is_empty()

    @pytest.mark.asyncio
    async def test_remove_missing_line(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        with pytest.raises(EntityNotFoundException):
            await RemoveItemFromBasketUseCase(uow).execute(
                RemoveItemFromBasketRequest(basket.id, mug.id + 100, buyer_id="buyer-1")
            )

    @pytest.mark.asyncio
    async def test_basket_reflects_live_prices(self, uow):
        # Arrange
        mug = await seed_product(uow, ProductBuilder().with_price(1000).build())
        basket = await seed_basket(uow, [(mug, 2)])
        mug.price = mug.price.multiply(2)
        await uow.catalog.save_product(mug)

        # Act
        fetched = await GetBasketUseCase(uow).execute(basket.id, "buyer-1")

        # Assert
        assert fetched.subtotal("USD").amount == 4000

    @pytest.mark.asyncio
    async def test_get_basket_of_other_buyer(self, uow):
        mug = await seed_product(uow, ProductBuilder().build())
        basket = await seed_basket(uow, [(mug, 1)])

        with pytest.raises(AuthorizationException):
            await GetBasketUseCase(uow).execute(basket.id, "buyer-2")
