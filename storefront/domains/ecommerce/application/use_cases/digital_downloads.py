"""
Digital Download Use Cases

Buyer access to download grants plus admin maintenance operations.
"""

import logging
from dataclasses import dataclass

from storefront.core.domain import AuthorizationException, EntityNotFoundException
from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.application.services import (
    DigitalDeliveryService,
    OrderLifecycleService,
)
from storefront.domains.ecommerce.domain.entities import DigitalDownload, Order

logger = logging.getLogger(__name__)


async def _load_owned(uow: IUnitOfWork, download_id: int, buyer_id: str) -> DigitalDownload:
    download = await uow.downloads.get(download_id)
    if download is None:
        raise EntityNotFoundException("DigitalDownload", download_id)
    if download.buyer_id != buyer_id:
        raise AuthorizationException("access download", f"download:{download_id}", buyer_id)
    return download


class ListBuyerDownloadsUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, buyer_id: str) -> list[DigitalDownload]:
        async with self.uow:
            return await self.uow.downloads.list_by_buyer(buyer_id)


class IssueDownloadTokenUseCase:
    """Issue a one-time token for a grant that still allows downloads."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, download_id: int, buyer_id: str) -> str:
        async with self.uow:
            download = await _load_owned(self.uow, download_id, buyer_id)
            token = download.issue_token()
            await self.uow.downloads.save(download)
            await self.uow.commit()
        return token


@dataclass
class RedeemedDownload:
    download: DigitalDownload
    url: str


class RedeemDownloadTokenUseCase:
    """
    Exchange a token for the file URL.

    Counts one download and clears the token, so each token works once.
    The write only succeeds while the token and count are still the ones
    read, so concurrent redemptions of one token yield a single URL.
    """

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, token: str) -> RedeemedDownload:
        async with self.uow:
            download = await self.uow.downloads.get_by_token(token) if token else None
            if download is None:
                raise EntityNotFoundException("DownloadToken", "***", message="Invalid or used download token")
            previous_count = download.download_count
            url = download.redeem()
            if not await self.uow.downloads.save_redemption(download, token, previous_count):
                logger.warning(f"Download {download.id} token was redeemed concurrently")
                raise EntityNotFoundException("DownloadToken", "***", message="Invalid or used download token")
            await self.uow.commit()
        logger.info(f"Download {download.id} used {download.download_count}/{download.max_downloads}")
        return RedeemedDownload(download=download, url=url)


class MarkDownloadCompletedUseCase:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self, download_id: int, buyer_id: str) -> DigitalDownload:
        async with self.uow:
            download = await _load_owned(self.uow, download_id, buyer_id)
            download.mark_completed()
            download = await self.uow.downloads.save(download)
            await self.uow.commit()
        return download


class ProcessDigitalOrderUseCase:
    """
    Deliver a paid digital-only order by ID.

    Returns the order unchanged when it does not qualify.
    """

    def __init__(self, uow: IUnitOfWork, lifecycle: OrderLifecycleService):
        self.uow = uow
        self.lifecycle = lifecycle

    async def execute(self, order_id: int) -> Order:
        async with self.uow:
            order = await self.uow.orders.get(order_id)
            if order is None:
                raise EntityNotFoundException("Order", order_id)
            outcome = await self.lifecycle.complete_digital_order(self.uow, order)
            await self.uow.commit()
        await self.lifecycle.publish(outcome)
        return order


@dataclass
class BackfillResult:
    orders_checked: int = 0
    downloads_created: int = 0


class BackfillDigitalDownloadsUseCase:
    """Create missing grants for delivered orders that contain digital products."""

    def __init__(self, uow: IUnitOfWork, delivery: DigitalDeliveryService):
        self.uow = uow
        self.delivery = delivery

    async def execute(self) -> BackfillResult:
        result = BackfillResult()
        async with self.uow:
            for order in await self.uow.orders.list_delivered_with_digital():
                result.orders_checked += 1
                created = await self.delivery.create_digital_downloads(self.uow, order)
                result.downloads_created += len(created)
            await self.uow.commit()
        logger.info(
            f"Backfill checked {result.orders_checked} orders, created {result.downloads_created} grants"
        )
        return result


@dataclass
class SyncUrlsResult:
    total: int = 0
    updated: int = 0


class SyncDownloadUrlsUseCase:
    """Point open grants at the product's current file URL."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self) -> SyncUrlsResult:
        result = SyncUrlsResult()
        async with self.uow:
            downloads = await self.uow.downloads.list_open()
            result.total = len(downloads)
            product_ids = sorted({d.product_id for d in downloads if d.product_id is not None})
            products = {p.id: p for p in await self.uow.catalog.get_products(product_ids)} if product_ids else {}

            for download in downloads:
                product = products.get(download.product_id)
                if product is None or not product.has_deliverable_file:
                    continue
                if download.download_url != product.digital_file_url:
                    download.download_url = product.digital_file_url
                    await self.uow.downloads.save(download)
                    result.updated += 1
            await self.uow.commit()
        logger.info(f"Synced {result.updated} of {result.total} download URLs")
        return result
