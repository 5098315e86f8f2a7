"""
Database models
"""

from .base import Base, TimestampMixin
from .baskets import Basket, BasketItem
from .catalog import (
    Attribute,
    AttributeValue,
    Category,
    Product,
    ProductVariant,
    product_variant_attributes,
)
from .orders import DigitalDownload, Order, OrderAddress, OrderItem, OrderStatusHistory, Payment

__all__ = [
    "Base",
    "TimestampMixin",
    "Attribute",
    "AttributeValue",
    "Basket",
    "BasketItem",
    "Category",
    "DigitalDownload",
    "Order",
    "OrderAddress",
    "OrderItem",
    "OrderStatusHistory",
    "Payment",
    "Product",
    "ProductVariant",
    "product_variant_attributes",
]
