"""
Digital Delivery Service

Creates download grants for the digital items of an order.
"""

import logging

from storefront.domains.ecommerce.application.ports import IUnitOfWork
from storefront.domains.ecommerce.domain.entities import DigitalDownload, Order, OrderItem

logger = logging.getLogger(__name__)


class DigitalDeliveryService:
    """
    Grants downloads for digital order items.

    Granting is idempotent per order item: an existing grant is skipped and a
    concurrent duplicate insert is absorbed by the repository.
    """

    def __init__(self, expiry_days: int = 30, max_downloads: int = 3):
        self.expiry_days = expiry_days
        self.max_downloads = max_downloads

    async def select_deliverable_items(self, uow: IUnitOfWork, order: Order) -> list[tuple[OrderItem, str]]:
        """
        Pair each qualifying order item with the URL to deliver.

        Snapshot fields decide first. Orders snapshotted before type/url were
        recorded fall back to the live catalog.
        """
        selected = [(item, item.digital_file_url) for item in order.digital_items]
        if selected:
            return selected

        product_ids = [item.product_id for item in order.items if item.product_id is not None]
        if not product_ids:
            return []
        products = {p.id: p for p in await uow.catalog.get_products(product_ids)}
        for item in order.items:
            product = products.get(item.product_id)
            if product is not None and product.has_deliverable_file:
                selected.append((item, product.digital_file_url))
        if selected:
            logger.info(f"Order {order.order_number}: digital items resolved from live catalog")
        return selected

    async def create_digital_downloads(self, uow: IUnitOfWork, order: Order) -> list[DigitalDownload]:
        """
        Create grants for the order's digital items that do not have one yet.

        Returns:
            Newly created grants only
        """
        if not order.buyer_id:
            logger.info(f"Order {order.order_number} has no buyer; skipping download grants")
            return []

        created: list[DigitalDownload] = []
        for item, url in await self.select_deliverable_items(uow, order):
            if await uow.downloads.exists_for_item(item.id):
                continue
            grant = DigitalDownload.grant(
                order_item_id=item.id,
                order_id=order.id,
                product_id=item.product_id,
                buyer_id=order.buyer_id,
                product_name=item.product_name,
                download_url=url,
                expiry_days=self.expiry_days,
                max_downloads=self.max_downloads,
            )
            stored = await uow.downloads.add_if_absent(grant)
            if stored is not None:
                created.append(stored)

        if created:
            logger.info(f"Created {len(created)} download grant(s) for order {order.order_number}")
        return created
