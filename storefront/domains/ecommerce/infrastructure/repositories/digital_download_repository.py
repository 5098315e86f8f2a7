"""
Digital Download Repository Implementation

The unique constraint on ``order_item_id`` is the final guard against
duplicate grants from concurrent deliveries.
"""

import logging
from typing import cast

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.ecommerce.application.ports import IDigitalDownloadRepository
from storefront.domains.ecommerce.domain.entities import DigitalDownload
from storefront.models.db import DigitalDownload as DigitalDownloadModel

logger = logging.getLogger(__name__)


class SQLAlchemyDigitalDownloadRepository(IDigitalDownloadRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, download_id: int) -> DigitalDownload | None:
        model = await self.session.get(DigitalDownloadModel, download_id, populate_existing=True)
        return self._to_entity(model) if model else None

    async def get_by_token(self, token: str) -> DigitalDownload | None:
        result = await self.session.execute(
            select(DigitalDownloadModel).where(DigitalDownloadModel.download_token == token)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def exists_for_item(self, order_item_id: int) -> bool:
        result = await self.session.execute(
            select(exists().where(DigitalDownloadModel.order_item_id == order_item_id))
        )
        return bool(result.scalar())

    async def add_if_absent(self, download: DigitalDownload) -> DigitalDownload | None:
        model = DigitalDownloadModel(
            order_item_id=download.order_item_id,
            order_id=download.order_id,
            product_id=download.product_id,
            buyer_id=download.buyer_id,
            product_name=download.product_name,
            download_url=download.download_url,
            expires_at=download.expires_at,
            downloaded_at=download.downloaded_at,
            download_count=download.download_count,
            max_downloads=download.max_downloads,
            is_completed=download.is_completed,
            download_token=download.download_token,
            created_at=download.created_at,
            updated_at=download.updated_at,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(model)
                await self.session.flush()
        except IntegrityError:
            logger.info(f"Download grant for order item {download.order_item_id} already exists")
            return None
        download.id = cast(int, model.id)
        return download

    # Download counts are only written by save_redemption.
    async def save(self, download: DigitalDownload) -> DigitalDownload:
        await self.session.execute(
            update(DigitalDownloadModel)
            .where(DigitalDownloadModel.id == download.id)
            .values(
                download_url=download.download_url,
                is_completed=download.is_completed,
                download_token=download.download_token,
                updated_at=download.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return download

    async def save_redemption(self, download: DigitalDownload, token: str, previous_count: int) -> bool:
        result = await self.session.execute(
            update(DigitalDownloadModel)
            .where(
                DigitalDownloadModel.id == download.id,
                DigitalDownloadModel.download_token == token,
                DigitalDownloadModel.download_count == previous_count,
            )
            .values(
                downloaded_at=download.downloaded_at,
                download_count=download.download_count,
                download_token=download.download_token,
                updated_at=download.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_by_buyer(self, buyer_id: str) -> list[DigitalDownload]:
        result = await self.session.execute(
            select(DigitalDownloadModel)
            .where(DigitalDownloadModel.buyer_id == buyer_id)
            .order_by(DigitalDownloadModel.created_at.desc(), DigitalDownloadModel.id.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_by_order(self, order_id: int) -> list[DigitalDownload]:
        result = await self.session.execute(
            select(DigitalDownloadModel)
            .where(DigitalDownloadModel.order_id == order_id)
            .order_by(DigitalDownloadModel.id)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def list_open(self) -> list[DigitalDownload]:
        result = await self.session.execute(
            select(DigitalDownloadModel)
            .where(DigitalDownloadModel.is_completed.is_(False))
            .order_by(DigitalDownloadModel.id)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    def _to_entity(self, model: DigitalDownloadModel) -> DigitalDownload:
        return DigitalDownload(
            id=cast(int, model.id),
            order_item_id=cast(int, model.order_item_id),
            order_id=cast(int, model.order_id),
            product_id=cast(int | None, model.product_id),
            buyer_id=cast(str, model.buyer_id),
            product_name=cast(str, model.product_name),
            download_url=cast(str, model.download_url),
            expires_at=model.expires_at,
            downloaded_at=model.downloaded_at,
            download_count=cast(int, model.download_count) or 0,
            max_downloads=cast(int, model.max_downloads),
            is_completed=bool(model.is_completed),
            download_token=cast(str | None, model.download_token),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
