"""
Unit Tests for Digital Download Use Cases
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from storefront.core.domain import (
    AuthorizationException,
    BusinessRuleViolationException,
    EntityNotFoundException,
    utc_now,
)
from storefront.domains.ecommerce.application.use_cases import (
    BackfillDigitalDownloadsUseCase,
    IssueDownloadTokenUseCase,
    ListBuyerDownloadsUseCase,
    MarkDownloadCompletedUseCase,
    ProcessDigitalOrderUseCase,
    RedeemDownloadTokenUseCase,
    SyncDownloadUrlsUseCase,
)
from storefront.domains.ecommerce.domain.value_objects import OrderStatus, PaymentStatus, TransitionTrigger
from tests.utils import OrderBuilder, ProductBuilder, seed_order, seed_product


async def _grant(uow, delivery, buyer_id: str = "buyer-1", number: str = "ORD-20260101-GRANT00001"):
    order = (
        OrderBuilder().with_number(number).for_buyer(buyer_id).with_digital_item().with_status(OrderStatus.DELIVERED)
    )
    order = await seed_order(uow, order.build())
    created = await delivery.create_digital_downloads(uow, order)
    return created[0]


class TestDownloadTokens:
    """Test the issue and redeem cycle of download tokens."""

    @pytest.mark.asyncio
    async def test_token_redeems_once(self, uow, delivery):
        # Arrange
        grant = await _grant(uow, delivery)
        token = await IssueDownloadTokenUseCase(uow).execute(grant.id, "buyer-1")
        redeem = RedeemDownloadTokenUseCase(uow)

        # Act
        redeemed = await redeem.execute(token)

        # Assert
        assert redeemed.url == "https://files.example.com/ebook.pdf"
        assert redeemed.download.download_count == 1
        assert redeemed.download.downloaded_at is not None
        with pytest.raises(EntityNotFoundException):
            await redeem.execute(token)

    @pytest.mark.asyncio
    async def test_concurrent_redemption_of_one_token(self, uow, delivery):
        # Arrange
        grant = await _grant(uow, delivery)
        token = await IssueDownloadTokenUseCase(uow).execute(grant.id, "buyer-1")
        read_before_first_redeem = await uow.downloads.get_by_token(token)
        redeem = RedeemDownloadTokenUseCase(uow)
        await redeem.execute(token)
        uow.downloads.get_by_token = AsyncMock(return_value=read_before_first_redeem)

        # Act & Assert
        with pytest.raises(EntityNotFoundException):
            await redeem.execute(token)

        assert (await uow.downloads.get(grant.id)).download_count == 1

    @pytest.mark.asyncio
    async def test_reissuing_token_keeps_download_count(self, uow, delivery):
        grant = await _grant(uow, delivery)
        issue = IssueDownloadTokenUseCase(uow)
        await RedeemDownloadTokenUseCase(uow).execute(await issue.execute(grant.id, "buyer-1"))

        await issue.execute(grant.id, "buyer-1")

        assert (await uow.downloads.get(grant.id)).download_count == 1

    @pytest.mark.asyncio
    async def test_reissuing_invalidates_previous_token(self, uow, delivery):
        grant = await _grant(uow, delivery)
        issue = IssueDownloadTokenUseCase(uow)
        old_token = await issue.execute(grant.id, "buyer-1")
        new_token = await issue.execute(grant.id, "buyer-1")

        with pytest.raises(EntityNotFoundException):
            await RedeemDownloadTokenUseCase(uow).execute(old_token)
        assert (await RedeemDownloadTokenUseCase(uow).execute(new_token)).download.download_count == 1

    @pytest.mark.asyncio
    async def test_limit_reached(self, uow, delivery):
        # Arrange
        grant = await _grant(uow, delivery)
        issue = IssueDownloadTokenUseCase(uow)
        redeem = RedeemDownloadTokenUseCase(uow)
        for _ in range(grant.max_downloads):
            await redeem.execute(await issue.execute(grant.id, "buyer-1"))

        # Act & Assert
        with pytest.raises(BusinessRuleViolationException):
            await issue.execute(grant.id, "buyer-1")

        assert (await uow.downloads.get(grant.id)).download_count == grant.max_downloads

    @pytest.mark.asyncio
    async def test_expired_grant(self, uow, delivery):
        grant = await _grant(uow, delivery)
        uow.downloads.downloads[grant.id].expires_at = utc_now() - timedelta(minutes=1)

        with pytest.raises(BusinessRuleViolationException):
            await IssueDownloadTokenUseCase(uow).execute(grant.id, "buyer-1")

    @pytest.mark.asyncio
    async def test_token_expiring_before_redeem(self, uow, delivery):
        grant = await _grant(uow, delivery)
        token = await IssueDownloadTokenUseCase(uow).execute(grant.id, "buyer-1")
        uow.downloads.downloads[grant.id].expires_at = utc_now() - timedelta(seconds=1)

        with pytest.raises(BusinessRuleViolationException):
            await RedeemDownloadTokenUseCase(uow).execute(token)

        assert (await uow.downloads.get(grant.id)).download_count == 0

    @pytest.mark.asyncio
    async def test_other_buyer_cannot_issue(self, uow, delivery):
        grant = await _grant(uow, delivery)

        with pytest.raises(AuthorizationException):
            await IssueDownloadTokenUseCase(uow).execute(grant.id, "buyer-2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "not-a-token"])
    async def test_unknown_token(self, uow, token):
        with pytest.raises(EntityNotFoundException):
            await RedeemDownloadTokenUseCase(uow).execute(token)


class TestBuyerDownloads:
    @pytest.mark.asyncio
    async def test_lists_only_own_grants(self, uow, delivery):
        mine = await _grant(uow, delivery)
        await _grant(uow, delivery, buyer_id="buyer-2", number="ORD-20260101-GRANT00002")

        downloads = await ListBuyerDownloadsUseCase(uow).execute("buyer-1")

        assert [d.id for d in downloads] == [mine.id]

    @pytest.mark.asyncio
    async def test_mark_completed(self, uow, delivery):
        grant = await _grant(uow, delivery)

        completed = await MarkDownloadCompletedUseCase(uow).execute(grant.id, "buyer-1")

        assert completed.is_completed is True
        assert (await uow.downloads.get(grant.id)).is_completed is True

    @pytest.mark.asyncio
    async def test_mark_completed_missing(self, uow):
        with pytest.raises(EntityNotFoundException):
            await MarkDownloadCompletedUseCase(uow).execute(5, "buyer-1")


class TestProcessDigitalOrderUseCase:
    @pytest.mark.asyncio
    async def test_paid_order_is_delivered(self, uow, lifecycle):
        # Arrange
        order = await seed_order(
            uow,
            OrderBuilder()
            .with_digital_item()
            .with_status(OrderStatus.PAYMENT_RECEIVED)
            .with_payment_status(PaymentStatus.SUCCEEDED)
            .build(),
        )

        # Act
        result = await ProcessDigitalOrderUseCase(uow, lifecycle).execute(order.id)

        # Assert
        assert result.status == OrderStatus.DELIVERED
        history = await uow.orders.get_history(order.id)
        assert history[-1].trigger == TransitionTrigger.DIGITAL_FULFILMENT
        assert len(await uow.downloads.list_by_order(order.id)) == 1

    @pytest.mark.asyncio
    async def test_unpaid_order_is_left_alone(self, uow, lifecycle):
        order = await seed_order(uow, OrderBuilder().with_digital_item().build())

        result = await ProcessDigitalOrderUseCase(uow, lifecycle).execute(order.id)

        assert result.status == OrderStatus.PENDING
        assert await uow.orders.get_history(order.id) == []

    @pytest.mark.asyncio
    async def test_missing_order(self, uow, lifecycle):
        with pytest.raises(EntityNotFoundException):
            await ProcessDigitalOrderUseCase(uow, lifecycle).execute(77)


class TestMaintenanceUseCases:
    @pytest.mark.asyncio
    async def test_backfill_creates_only_missing_grants(self, uow, delivery):
        # Arrange
        await _grant(uow, delivery)
        await seed_order(
            uow,
            OrderBuilder().with_number("ORD-MISSING").with_digital_item().with_status(OrderStatus.DELIVERED).build(),
        )
        await seed_order(uow, OrderBuilder().with_number("ORD-PENDING").with_digital_item().build())

        # Act
        result = await BackfillDigitalDownloadsUseCase(uow, delivery).execute()

        # Assert
        assert result.orders_checked == 2
        assert result.downloads_created == 1
        assert len(uow.downloads.downloads) == 2

    @pytest.mark.asyncio
    async def test_backfill_twice_creates_nothing_new(self, uow, delivery):
        await seed_order(uow, OrderBuilder().with_digital_item().with_status(OrderStatus.DELIVERED).build())
        use_case = BackfillDigitalDownloadsUseCase(uow, delivery)

        await use_case.execute()
        second = await use_case.execute()

        assert second.downloads_created == 0

    @pytest.mark.asyncio
    async def test_sync_urls_follows_catalog(self, uow, delivery):
        # Arrange
        product = await seed_product(uow, ProductBuilder().digital("https://files.example.com/v1.pdf").build())
        order = await seed_order(
            uow,
            OrderBuilder()
            .with_digital_item(file_url="https://files.example.com/v1.pdf", product_id=product.id)
            .with_status(OrderStatus.DELIVERED)
            .build(),
        )
        grant = (await delivery.create_digital_downloads(uow, order))[0]
        product.digital_file_url = "https://files.example.com/v2.pdf"
        await uow.catalog.save_product(product)

        # Act
        result = await SyncDownloadUrlsUseCase(uow).execute()

        # Assert
        assert result.total == 1
        assert result.updated == 1
        assert (await uow.downloads.get(grant.id)).download_url == "https://files.example.com/v2.pdf"

    @pytest.mark.asyncio
    async def test_sync_urls_skips_completed_and_current(self, uow, delivery):
        # Arrange
        product = await seed_product(uow, ProductBuilder().digital("https://files.example.com/v1.pdf").build())
        for number in ("ORD-1", "ORD-2"):
            await seed_order(
                uow,
                OrderBuilder()
                .with_number(number)
                .with_digital_item(file_url="https://files.example.com/v1.pdf", product_id=product.id)
                .with_status(OrderStatus.DELIVERED)
                .build(),
            )
        await BackfillDigitalDownloadsUseCase(uow, delivery).execute()
        first_id = min(uow.downloads.downloads)
        await MarkDownloadCompletedUseCase(uow).execute(first_id, "buyer-1")

        # Act
        result = await SyncDownloadUrlsUseCase(uow).execute()

        # Assert
        assert result.total == 1
        assert result.updated == 0
