"""
Catalog Use Cases

Creating products, categories, attributes and variants.
"""

import logging
from dataclasses import dataclass, field

from storefront.core.domain import EntityNotFoundException, Money, ValidationException
from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.domain.entities import Attribute, Category, Product, ProductVariant
from storefront.domains.ecommerce.domain.value_objects import ProductType

logger = logging.getLogger(__name__)


def _to_money(amount: int, currency: str, field_name: str) -> Money:
    try:
        return Money(amount, currency)
    except ValueError as e:
        raise ValidationException(str(e), field=field_name) from e


@dataclass
class CreateProductRequest:
    name: str
    price: int
    description: str | None = None
    picture_url: str | None = None
    category_id: int | None = None
    quantity_in_stock: int = 0
    product_type: ProductType = ProductType.PHYSICAL
    digital_file_url: str | None = None


class CreateProductUseCase:
    """
    Use Case: Create Product

    Validates catalog invariants (digital products need a file URL)
    before the product is stored.
    """

    def __init__(self, uow: IUnitOfWork, currency: str = "USD"):
        self.uow = uow
        self.currency = currency

    async def execute(self, request: CreateProductRequest) -> Product:
        product = Product(
            name=request.name.strip(),
            description=request.description,
            price=_to_money(request.price, self.currency, "price"),
            picture_url=request.picture_url,
            category_id=request.category_id,
            quantity_in_stock=request.quantity_in_stock,
            product_type=request.product_type,
            digital_file_url=request.digital_file_url,
        )
        product.validate()

        async with self.uow:
            if request.category_id is not None and await self.uow.catalog.get_category(request.category_id) is None:
                raise EntityNotFoundException("Category", request.category_id)
            product = await self.uow.catalog.add_product(product)
            await self.uow.commit()

        logger.info(f"Product created: {product.id} ({product.product_type.value})")
        return product


class UpdateDigitalFileUseCase:
    """Replace the file URL delivered for a digital product."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, product_id: int, digital_file_url: str) -> Product:
        async with self.uow:
            product = await self.uow.catalog.get_product(product_id)
            if product is None:
                raise EntityNotFoundException("Product", product_id)
            product.digital_file_url = (digital_file_url or "").strip() or None
            product.validate()
            product = await self.uow.catalog.save_product(product)
            await self.uow.commit()
        return product


class GetProductUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, product_id: int) -> Product:
        async with self.uow:
            product = await self.uow.catalog.get_product(product_id)
        if product is None:
            raise EntityNotFoundException("Product", product_id)
        return product


class ListProductsUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, limit: int = 50, offset: int = 0) -> list[Product]:
        async with self.uow:
            return await self.uow.catalog.list_products(limit=limit, offset=offset)


class CreateCategoryUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, name: str, description: str | None = None) -> Category:
        if not name or not name.strip():
            raise ValidationException("Category name is required", field="name")
        async with self.uow:
            category = await self.uow.catalog.add_category(Category(name=name.strip(), description=description))
            await self.uow.commit()
        return category


@dataclass
class CreateAttributeRequest:
    name: str
    values: list[str] = field(default_factory=list)


class CreateAttributeUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, request: CreateAttributeRequest) -> Attribute:
        if not request.name or not request.name.strip():
            raise ValidationException("Attribute name is required", field="name")
        attribute = Attribute(name=request.name.strip())
        for value in request.values:
            attribute.add_value(value)

        async with self.uow:
            attribute = await self.uow.catalog.add_attribute(attribute)
            await self.uow.commit()
        return attribute


@dataclass
class AddProductVariantRequest:
    product_id: int
    attribute_value_ids: list[int]
    quantity: int = 0
    price_override: int | None = None


class AddProductVariantUseCase:
    """
    Use Case: Add Product Variant

    A variant with an already-existing attribute combination tops up that
    variant's stock instead of creating a duplicate.
    """

    def __init__(self, uow: IUnitOfWork, currency: str = "USD"):
        self.uow = uow
        self.currency = currency

    async def execute(self, request: AddProductVariantRequest) -> ProductVariant:
        value_ids = frozenset(request.attribute_value_ids)
        price_override = (
            _to_money(request.price_override, self.currency, "price_override")
            if request.price_override is not None
            else None
        )

        async with self.uow:
            product = await self.uow.catalog.get_product(request.product_id)
            if product is None:
                raise EntityNotFoundException("Product", request.product_id)

            found = {v.id for v in await self.uow.catalog.get_attribute_values(list(value_ids))}
            missing = sorted(value_ids - found)
            if missing:
                raise EntityNotFoundException("AttributeValue", ",".join(str(m) for m in missing))

            variant = product.add_variant(value_ids, request.quantity, price_override)
            product = await self.uow.catalog.save_product(product)
            await self.uow.commit()

        # Saved copy carries the generated variant ID
        stored = next((v for v in product.variants if v.has_combination(value_ids)), variant)
        logger.info(f"Variant {stored.id} of product {product.id} now has {stored.quantity_in_stock} in stock")
        return stored
