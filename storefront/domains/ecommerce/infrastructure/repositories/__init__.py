"""
E-commerce Repositories

SQLAlchemy implementations of the e-commerce repository ports.
"""

from .basket_repository import SQLAlchemyBasketRepository
from .catalog_repository import SQLAlchemyCatalogRepository
from .digital_download_repository import SQLAlchemyDigitalDownloadRepository
from .order_repository import SQLAlchemyOrderRepository
from .payment_repository import SQLAlchemyPaymentRepository
from .sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork

__all__ = [
    "SQLAlchemyBasketRepository",
    "SQLAlchemyCatalogRepository",
    "SQLAlchemyDigitalDownloadRepository",
    "SQLAlchemyOrderRepository",
    "SQLAlchemyPaymentRepository",
    "SQLAlchemyUnitOfWork",
]
