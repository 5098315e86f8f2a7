"""
E-commerce Entities
"""

from .basket import Basket, BasketItem
from .digital_download import DigitalDownload
from .order import Order, OrderAddress, OrderItem, OrderStatusHistory
from .payment import Payment
from .product import Attribute, AttributeValue, Category, Product, ProductVariant

__all__ = [
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
]
