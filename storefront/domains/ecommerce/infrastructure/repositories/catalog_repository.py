"""
Catalog Repository Implementation

SQLAlchemy implementation of ICatalogRepository.
"""

import logging
from typing import cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.domain import EntityNotFoundException, Money
from storefront.domains.ecommerce.application.ports import ICatalogRepository
from storefront.domains.ecommerce.domain.entities import (
    Attribute,
    AttributeValue,
    Category,
    Product,
    ProductVariant,
)
from storefront.domains.ecommerce.domain.value_objects import ProductType
from storefront.models.db import Attribute as AttributeModel
from storefront.models.db import AttributeValue as AttributeValueModel
from storefront.models.db import Category as CategoryModel
from storefront.models.db import Product as ProductModel
from storefront.models.db import ProductVariant as ProductVariantModel

logger = logging.getLogger(__name__)


def product_load_options():
    """Eager-load variants and their attribute values (no lazy loads under asyncio)."""
    return (selectinload(ProductModel.variants).selectinload(ProductVariantModel.attribute_values),)


def variant_to_entity(model: ProductVariantModel, currency: str) -> ProductVariant:
    price_override = cast(int | None, model.price_override)
    return ProductVariant(
        id=cast(int, model.id),
        product_id=cast(int, model.product_id),
        attribute_value_ids=frozenset(cast(int, v.id) for v in model.attribute_values),
        quantity_in_stock=cast(int, model.quantity_in_stock) or 0,
        price_override=Money(price_override, currency) if price_override is not None else None,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def product_to_entity(model: ProductModel) -> Product:
    currency = cast(str, model.currency) or "USD"
    return Product(
        id=cast(int, model.id),
        name=cast(str, model.name),
        description=cast(str | None, model.description),
        price=Money(cast(int, model.price) or 0, currency),
        picture_url=cast(str | None, model.picture_url),
        category_id=cast(int | None, model.category_id),
        quantity_in_stock=cast(int, model.quantity_in_stock) or 0,
        product_type=ProductType(cast(str, model.product_type)),
        digital_file_url=cast(str | None, model.digital_file_url),
        variants=[variant_to_entity(v, currency) for v in model.variants],
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyCatalogRepository(ICatalogRepository):
    """
    SQLAlchemy implementation of the catalog repository.

    Writes flush but never commit; the unit of work owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_model(self, product_id: int) -> ProductModel | None:
        result = await self.session.execute(
            select(ProductModel).options(*product_load_options()).where(ProductModel.id == product_id)
        )
        return result.scalar_one_or_none()

    async def get_product(self, product_id: int) -> Product | None:
        model = await self._get_model(product_id)
        return product_to_entity(model) if model else None

    async def get_products(self, product_ids: list[int]) -> list[Product]:
        if not product_ids:
            return []
        result = await self.session.execute(
            select(ProductModel).options(*product_load_options()).where(ProductModel.id.in_(product_ids))
        )
        return [product_to_entity(m) for m in result.scalars().all()]

    async def list_products(self, limit: int = 50, offset: int = 0) -> list[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .options(*product_load_options())
            .order_by(ProductModel.name, ProductModel.id)
            .offset(offset)
            .limit(limit)
        )
        return [product_to_entity(m) for m in result.scalars().all()]

    async def add_product(self, product: Product) -> Product:
        model = ProductModel(
            name=product.name,
            description=product.description,
            price=product.price.amount,
            currency=product.price.currency,
            picture_url=product.picture_url,
            category_id=product.category_id,
            quantity_in_stock=product.quantity_in_stock,
            product_type=product.product_type.value,
            digital_file_url=product.digital_file_url,
        )
        self.session.add(model)
        await self.session.flush()
        product.id = cast(int, model.id)
        return product

    async def save_product(self, product: Product) -> Product:
        model = await self._get_model(product.id)
        if model is None:
            raise EntityNotFoundException("Product", product.id)

        model.name = product.name
        model.description = product.description
        model.price = product.price.amount
        model.currency = product.price.currency
        model.picture_url = product.picture_url
        model.category_id = product.category_id
        model.quantity_in_stock = product.quantity_in_stock
        model.product_type = product.product_type.value
        model.digital_file_url = product.digital_file_url

        existing = {cast(int, v.id): v for v in model.variants}
        for variant in product.variants:
            override = variant.price_override.amount if variant.price_override else None
            if variant.id is not None and variant.id in existing:
                variant_model = existing[variant.id]
                variant_model.quantity_in_stock = variant.quantity_in_stock
                variant_model.price_override = override
                continue
            values = await self.session.execute(
                select(AttributeValueModel).where(AttributeValueModel.id.in_(variant.attribute_value_ids))
            )
            model.variants.append(
                ProductVariantModel(
                    quantity_in_stock=variant.quantity_in_stock,
                    price_override=override,
                    attribute_values=list(values.scalars().all()),
                )
            )

        await self.session.flush()
        refreshed = await self._get_model(product.id)
        return product_to_entity(refreshed)

    async def add_category(self, category: Category) -> Category:
        model = CategoryModel(name=category.name, description=category.description)
        self.session.add(model)
        await self.session.flush()
        category.id = cast(int, model.id)
        return category

    async def get_category(self, category_id: int) -> Category | None:
        model = await self.session.get(CategoryModel, category_id)
        if model is None:
            return None
        return Category(id=cast(int, model.id), name=cast(str, model.name), description=model.description)

    async def add_attribute(self, attribute: Attribute) -> Attribute:
        model = AttributeModel(
            name=attribute.name,
            values=[AttributeValueModel(value=v.value) for v in attribute.values],
        )
        self.session.add(model)
        await self.session.flush()
        attribute.id = cast(int, model.id)
        for value, value_model in zip(attribute.values, model.values):
            value.id = cast(int, value_model.id)
            value.attribute_id = attribute.id
        return attribute

    async def get_attribute_values(self, value_ids: list[int]) -> list[AttributeValue]:
        if not value_ids:
            return []
        result = await self.session.execute(
            select(AttributeValueModel).where(AttributeValueModel.id.in_(value_ids))
        )
        return [
            AttributeValue(id=cast(int, m.id), attribute_id=cast(int, m.attribute_id), value=cast(str, m.value))
            for m in result.scalars().all()
        ]
