"""
Catalog models: categories, attributes, products and variants
"""

from sqlalchemy import BigInteger, Column, ForeignKey, Index, Integer, String, Table, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin

product_variant_attributes = Table(
    "product_variant_attributes",
    Base.metadata,
    Column("variant_id", Integer, ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "attribute_value_id",
        Integer,
        ForeignKey("attribute_values.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text)

    def __repr__(self):
        return f"<Category(name='{self.name}')>"


class Attribute(Base, TimestampMixin):
    __tablename__ = "attributes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    values = relationship(
        "AttributeValue",
        back_populates="attribute",
        cascade="all, delete-orphan",
        order_by="AttributeValue.id",
    )


class AttributeValue(Base, TimestampMixin):
    __tablename__ = "attribute_values"

    id = Column(Integer, primary_key=True, autoincrement=True)
    attribute_id = Column(Integer, ForeignKey("attributes.id", ondelete="CASCADE"), nullable=False)
    value = Column(String(100), nullable=False)

    attribute = relationship("Attribute", back_populates="values")

    __table_args__ = (UniqueConstraint("attribute_id", "value", name="uq_attribute_values_attribute_value"),)


class Product(Base, TimestampMixin):
    """Catalog products. Prices are integer minor units."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    picture_url = Column(String(500))
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    product_type = Column(String(20), nullable=False, default="physical")
    digital_file_url = Column(String(1000))

    category = relationship("Category")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    __table_args__ = (
        Index("idx_products_category", category_id),
        Index("idx_products_type", product_type),
    )

    def __repr__(self):
        return f"<Product(name='{self.name}', type='{self.product_type}', price={self.price})>"


class ProductVariant(Base, TimestampMixin):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    price_override = Column(BigInteger)

    product = relationship("Product", back_populates="variants")
    attribute_values = relationship("AttributeValue", secondary=product_variant_attributes)

    __table_args__ = (Index("idx_product_variants_product", product_id),)
