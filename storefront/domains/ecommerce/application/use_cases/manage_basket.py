"""
Basket Use Cases

Adding and removing basket lines.
"""

import logging
from dataclasses import dataclass

from storefront.core.domain import AuthorizationException, EntityNotFoundException, ValidationException
from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.domain.entities import Basket

logger = logging.getLogger(__name__)


@dataclass
class AddItemToBasketRequest:
    product_id: int
    quantity: int
    buyer_id: str | None = None
    basket_id: int | None = None
    variant_id: int | None = None


class AddItemToBasketUseCase:
    """
    Use Case: Add Item To Basket

    Creates the basket on the first add. Adding the same product and
    variant again increases the existing line.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, request: AddItemToBasketRequest) -> Basket:
        if request.quantity <= 0:
            raise ValidationException("Quantity must be positive", field="quantity")

        async with self.uow:
            product = await self.uow.catalog.get_product(request.product_id)
            if product is None:
                raise EntityNotFoundException("Product", request.product_id)

            if request.basket_id is None:
                basket = Basket(buyer_id=request.buyer_id)
                basket.add_item(product, request.quantity, request.variant_id)
                basket = await self.uow.baskets.add(basket)
                logger.info(f"Basket {basket.id} created for buyer {request.buyer_id or 'guest'}")
            else:
                basket = await self.uow.baskets.get(request.basket_id)
                if basket is None:
                    raise EntityNotFoundException("Basket", request.basket_id)
                if not basket.belongs_to(request.buyer_id):
                    raise AuthorizationException("modify basket", f"basket:{basket.id}", request.buyer_id)
                if basket.buyer_id is None and request.buyer_id:
                    basket.buyer_id = request.buyer_id
                basket.add_item(product, request.quantity, request.variant_id)
                basket = await self.uow.baskets.save(basket)

            await self.uow.commit()
        return basket


@dataclass
class RemoveItemFromBasketRequest:
    basket_id: int
    product_id: int
    quantity: int = 1
    buyer_id: str | None = None
    variant_id: int | None = None


class RemoveItemFromBasketUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, request: RemoveItemFromBasketRequest) -> Basket:
        if request.quantity <= 0:
            raise ValidationException("Quantity must be positive", field="quantity")

        async with self.uow:
            basket = await self.uow.baskets.get(request.basket_id)
            if basket is None:
                raise EntityNotFoundException("Basket", request.basket_id)
            if not basket.belongs_to(request.buyer_id):
                raise AuthorizationException("modify basket", f"basket:{basket.id}", request.buyer_id)
            if not basket.remove_item(request.product_id, request.quantity, request.variant_id):
                raise EntityNotFoundException(
                    "BasketItem",
                    f"{request.product_id}:{request.variant_id}",
                )
            basket = await self.uow.baskets.save(basket)
            await self.uow.commit()
        return basket


class GetBasketUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, basket_id: int, buyer_id: str | None = None) -> Basket:
        async with self.uow:
            basket = await self.uow.baskets.get(basket_id)
        if basket is None:
            raise EntityNotFoundException("Basket", basket_id)
        if not basket.belongs_to(buyer_id):
            raise AuthorizationException("view basket", f"basket:{basket_id}", buyer_id)
        return basket
