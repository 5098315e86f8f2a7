"""
E-commerce Application Services

Collaborators shared by several use cases.
"""

from .digital_delivery import DigitalDeliveryService
from .order_lifecycle import OrderLifecycleService, TransitionOutcome
from .order_notifications import OrderNotifier, build_download_message

__all__ = [
    "DigitalDeliveryService",
    "OrderLifecycleService",
    "OrderNotifier",
    "TransitionOutcome",
    "build_download_message",
]
