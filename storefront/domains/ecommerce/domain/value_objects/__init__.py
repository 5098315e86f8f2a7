"""
E-commerce Value Objects
"""

from .order_status import OrderStatus, PaymentStatus, ProductType, TransitionTrigger

__all__ = [
    "OrderStatus",
    "PaymentStatus",
    "ProductType",
    "TransitionTrigger",
]
