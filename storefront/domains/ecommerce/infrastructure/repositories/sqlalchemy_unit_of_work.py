"""
SQLAlchemy Unit of Work

Groups the e-commerce repositories around one AsyncSession.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.ecommerce.application.ports import IUnitOfWork

from .basket_repository import SQLAlchemyBasketRepository
from .catalog_repository import SQLAlchemyCatalogRepository
from .digital_download_repository import SQLAlchemyDigitalDownloadRepository
from .order_repository import SQLAlchemyOrderRepository
from .payment_repository import SQLAlchemyPaymentRepository

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(IUnitOfWork):
    """
    Transactional scope over one session.

    The scope may be entered several times in sequence (bulk operations
    commit per item). Leaving a scope without ``commit`` rolls it back.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.catalog = SQLAlchemyCatalogRepository(session)
        self.baskets = SQLAlchemyBasketRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)
        self.payments = SQLAlchemyPaymentRepository(session)
        self.downloads = SQLAlchemyDigitalDownloadRepository(session)
        self._committed = False

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            logger.debug(f"Rolling back unit of work after {exc_type.__name__}")
            await self.rollback()
        elif not self._committed:
            await self.rollback()

    async def commit(self) -> None:
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self.session.rollback()
