"""
Basket Entity for E-commerce Domain

Shopping cart of line items that is turned into an order at checkout.
"""

from dataclasses import dataclass, field

from storefront.core.domain import AggregateRoot, Entity, Money, ValidationException

from .product import Product


@dataclass(eq=False)
class BasketItem(Entity[int]):
    """Basket line referencing a live product and, optionally, one of its variants."""

    product: Product | None = None
    variant_id: int | None = None
    quantity: int = 0

    @property
    def product_id(self) -> int | None:
        return self.product.id if self.product else None

    @property
    def unit_price(self) -> Money:
        if self.product is None:
            raise ValidationException("Basket item has no product", field="product")
        return self.product.unit_price_for(self.variant_id)

    @property
    def line_total(self) -> Money:
        return self.unit_price.multiply(self.quantity)


@dataclass(eq=False)
class Basket(AggregateRoot[int]):
    """
    Basket aggregate root.

    Holds the payment intent opened for it so repeated checkouts
    update the same intent instead of creating new ones.
    """

    buyer_id: str | None = None
    items: list[BasketItem] = field(default_factory=list)
    payment_intent_id: str | None = None
    client_secret: str | None = None

    def is_empty(self) -> bool:
        return not self.items

    def belongs_to(self, buyer_id: str | None) -> bool:
        """Anonymous baskets can be claimed by anyone."""
        return self.buyer_id is None or self.buyer_id == buyer_id

    def find_item(self, product_id: int, variant_id: int | None) -> BasketItem | None:
        for item in self.items:
            if item.product_id == product_id and item.variant_id == variant_id:
                return item
        return None

    def add_item(self, product: Product, quantity: int, variant_id: int | None = None) -> BasketItem:
        """
        Add a product (or variant) to the basket, merging with an existing line.

        Raises:
            ValidationException: On non-positive quantity, foreign variant or
                insufficient stock
        """
        if quantity <= 0:
            raise ValidationException("Quantity must be positive", field="quantity")
        if variant_id is not None and product.find_variant(variant_id) is None:
            raise ValidationException(
                f"Variant {variant_id} does not belong to product {product.id}",
                field="variant_id",
            )

        existing = self.find_item(product.id, variant_id)
        in_basket = existing.quantity if existing else 0
        available = product.stock_for(variant_id)
        if available is not None and in_basket + quantity > available:
            raise ValidationException(
                f"Insufficient stock: only {available} available, {in_basket} already in basket",
                field="quantity",
            )

        if existing:
            existing.quantity += quantity
            self.touch()
            return existing

        item = BasketItem(product=product, variant_id=variant_id, quantity=quantity)
        self.items.append(item)
        self.touch()
        return item

    def remove_item(self, product_id: int, quantity: int = 1, variant_id: int | None = None) -> bool:
        """Decrement a line; the line is dropped once its quantity reaches zero."""
        item = self.find_item(product_id, variant_id)
        if item is None:
            return False
        item.quantity -= quantity
        if item.quantity <= 0:
            self.items.remove(item)
        self.touch()
        return True

    def subtotal(self, currency: str) -> Money:
        total = Money.zero(currency)
        for item in self.items:
            total = total.add(item.line_total)
        return total

    def attach_payment_intent(self, intent_id: str, client_secret: str | None) -> None:
        self.payment_intent_id = intent_id
        self.client_secret = client_secret
        self.touch()
