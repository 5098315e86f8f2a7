from storefront.core.shared.logger import configure_logging

__all__ = ["configure_logging"]
