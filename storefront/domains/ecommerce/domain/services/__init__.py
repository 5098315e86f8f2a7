"""
E-commerce Domain Services
"""

from .pricing_service import CheckoutTotals, PricingService

__all__ = ["CheckoutTotals", "PricingService"]
