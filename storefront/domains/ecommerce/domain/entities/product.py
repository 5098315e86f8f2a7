"""
Catalog Entities for E-commerce Domain

Products, their variants, and the attributes that distinguish variants.
"""

from dataclasses import dataclass, field

from storefront.core.domain import AggregateRoot, Entity, Money, ValidationException

from ..value_objects.order_status import ProductType


@dataclass(eq=False)
class Category(Entity[int]):
    name: str = ""
    description: str | None = None


@dataclass(eq=False)
class AttributeValue(Entity[int]):
    attribute_id: int | None = None
    value: str = ""


@dataclass(eq=False)
class Attribute(Entity[int]):
    """A variant dimension such as "Size" or "Color" and its allowed values."""

    name: str = ""
    values: list[AttributeValue] = field(default_factory=list)

    def add_value(self, value: str) -> AttributeValue:
        value = value.strip()
        if not value:
            raise ValidationException("Attribute value cannot be empty", field="values")
        for existing in self.values:
            if existing.value.lower() == value.lower():
                return existing
        attribute_value = AttributeValue(attribute_id=self.id, value=value)
        self.values.append(attribute_value)
        return attribute_value


@dataclass(eq=False)
class ProductVariant(Entity[int]):
    """
    A purchasable combination of attribute values of one product.

    Holds its own stock count and an optional price override.
    """

    product_id: int | None = None
    attribute_value_ids: frozenset[int] = field(default_factory=frozenset)
    quantity_in_stock: int = 0
    price_override: Money | None = None

    def has_combination(self, attribute_value_ids: frozenset[int]) -> bool:
        return self.attribute_value_ids == attribute_value_ids


@dataclass(eq=False)
class Product(AggregateRoot[int]):
    """
    Product aggregate root.

    Digital products carry the URL of the file delivered to buyers.

    Example:
        ```python
        ebook = Product(
            name="Field Guide",
            price=Money(1500, "USD"),
            product_type=ProductType.DIGITAL,
            digital_file_url="https://files.example.com/field-guide.pdf",
        )
        ebook.validate()
        ```
    """

    name: str = ""
    description: str | None = None
    price: Money = field(default_factory=Money.zero)
    picture_url: str | None = None
    category_id: int | None = None
    quantity_in_stock: int = 0
    product_type: ProductType = ProductType.PHYSICAL
    digital_file_url: str | None = None
    variants: list[ProductVariant] = field(default_factory=list)

    @property
    def is_digital(self) -> bool:
        return self.product_type == ProductType.DIGITAL

    @property
    def has_deliverable_file(self) -> bool:
        return self.is_digital and bool(self.digital_file_url and self.digital_file_url.strip())

    def validate(self) -> None:
        """
        Enforce catalog write invariants.

        Raises:
            ValidationException: If the product cannot be stored as-is
        """
        if not self.name or not self.name.strip():
            raise ValidationException("Product name is required", field="name")
        if self.quantity_in_stock < 0:
            raise ValidationException("Stock cannot be negative", field="quantity_in_stock")
        if self.is_digital and not self.has_deliverable_file:
            raise ValidationException(
                "Digital products require a file URL",
                field="digital_file_url",
            )

    def find_variant(self, variant_id: int) -> ProductVariant | None:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    def add_variant(
        self,
        attribute_value_ids: frozenset[int],
        quantity: int,
        price_override: Money | None = None,
    ) -> ProductVariant:
        """
        Add a variant, or top up stock of the variant with the same combination.

        Returns:
            The new or merged variant
        """
        if quantity < 0:
            raise ValidationException("Variant quantity cannot be negative", field="quantity")
        if not attribute_value_ids:
            raise ValidationException("A variant needs at least one attribute value", field="attribute_value_ids")

        for variant in self.variants:
            if variant.has_combination(attribute_value_ids):
                variant.quantity_in_stock += quantity
                variant.touch()
                self.touch()
                return variant

        variant = ProductVariant(
            product_id=self.id,
            attribute_value_ids=frozenset(attribute_value_ids),
            quantity_in_stock=quantity,
            price_override=price_override,
        )
        self.variants.append(variant)
        self.touch()
        return variant

    def stock_for(self, variant_id: int | None) -> int | None:
        """Units available for sale, or None when stock is not tracked (digital files)."""
        if self.is_digital:
            return None
        if variant_id is not None:
            variant = self.find_variant(variant_id)
            return variant.quantity_in_stock if variant else 0
        return self.quantity_in_stock

    def unit_price_for(self, variant_id: int | None) -> Money:
        """Variant price override when present, otherwise the product price."""
        if variant_id is not None:
            variant = self.find_variant(variant_id)
            if variant is None:
                raise ValidationException(
                    f"Variant {variant_id} does not belong to product {self.id}",
                    field="variant_id",
                )
            if variant.price_override is not None:
                return variant.price_override
        return self.price
