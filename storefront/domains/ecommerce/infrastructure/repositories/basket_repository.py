"""
Basket Repository Implementation

SQLAlchemy implementation of IBasketRepository.
"""

import logging
from typing import cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.domain import EntityNotFoundException
from storefront.domains.ecommerce.application.ports import IBasketRepository
from storefront.domains.ecommerce.domain.entities import Basket, BasketItem
from storefront.models.db import Basket as BasketModel
from storefront.models.db import BasketItem as BasketItemModel
from storefront.models.db import Product as ProductModel
from storefront.models.db import ProductVariant as ProductVariantModel

from .catalog_repository import product_to_entity

logger = logging.getLogger(__name__)


class SQLAlchemyBasketRepository(IBasketRepository):
    """Baskets with their items; items carry the live product."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_model(self, basket_id: int) -> BasketModel | None:
        result = await self.session.execute(
            select(BasketModel)
            .options(
                selectinload(BasketModel.items)
                .selectinload(BasketItemModel.product)
                .selectinload(ProductModel.variants)
                .selectinload(ProductVariantModel.attribute_values)
            )
            .where(BasketModel.id == basket_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, basket_id: int) -> Basket | None:
        model = await self._get_model(basket_id)
        return self._to_entity(model) if model else None

    async def add(self, basket: Basket) -> Basket:
        model = BasketModel(
            buyer_id=basket.buyer_id,
            payment_intent_id=basket.payment_intent_id,
            client_secret=basket.client_secret,
            items=[
                BasketItemModel(product_id=i.product_id, variant_id=i.variant_id, quantity=i.quantity)
                for i in basket.items
            ],
        )
        self.session.add(model)
        await self.session.flush()
        basket.id = cast(int, model.id)
        for item, item_model in zip(basket.items, model.items):
            item.id = cast(int, item_model.id)
        return basket

    async def save(self, basket: Basket) -> Basket:
        model = await self._get_model(basket.id)
        if model is None:
            raise EntityNotFoundException("Basket", basket.id)

        model.buyer_id = basket.buyer_id
        model.payment_intent_id = basket.payment_intent_id
        model.client_secret = basket.client_secret

        kept_ids = {item.id for item in basket.items if item.id is not None}
        for item_model in list(model.items):
            if item_model.id not in kept_ids:
                model.items.remove(item_model)

        existing = {cast(int, m.id): m for m in model.items}
        new_models: list[tuple[BasketItem, BasketItemModel]] = []
        for item in basket.items:
            if item.id is not None and item.id in existing:
                existing[item.id].quantity = item.quantity
            else:
                item_model = BasketItemModel(product_id=item.product_id, variant_id=item.variant_id, quantity=item.quantity)
                model.items.append(item_model)
                new_models.append((item, item_model))

        await self.session.flush()
        for item, item_model in new_models:
            item.id = cast(int, item_model.id)
        return basket

    async def delete(self, basket_id: int) -> None:
        await self.session.execute(delete(BasketItemModel).where(BasketItemModel.basket_id == basket_id))
        await self.session.execute(delete(BasketModel).where(BasketModel.id == basket_id))
        logger.debug(f"Basket {basket_id} deleted")

    def _to_entity(self, model: BasketModel) -> Basket:
        return Basket(
            id=cast(int, model.id),
            buyer_id=cast(str | None, model.buyer_id),
            payment_intent_id=cast(str | None, model.payment_intent_id),
            client_secret=cast(str | None, model.client_secret),
            items=[
                BasketItem(
                    id=cast(int, m.id),
                    product=product_to_entity(m.product) if m.product is not None else None,
                    variant_id=cast(int | None, m.variant_id),
                    quantity=cast(int, m.quantity),
                )
                for m in model.items
            ],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
