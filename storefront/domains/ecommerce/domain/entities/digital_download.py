"""
Digital Download Entity for E-commerce Domain

A time- and use-limited grant to download the file of one digital order item.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from storefront.core.domain import BusinessRuleViolationException, Entity, utc_now


@dataclass(eq=False)
class DigitalDownload(Entity[int]):
    """
    Download grant for one order item.

    ``can_download`` is the single gate for issuing and redeeming tokens.
    """

    order_item_id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    buyer_id: str = ""
    product_name: str = ""
    download_url: str = ""
    expires_at: datetime | None = None
    downloaded_at: datetime | None = None
    download_count: int = 0
    max_downloads: int = 3
    is_completed: bool = False
    download_token: str | None = None

    @classmethod
    def grant(
        cls,
        order_item_id: int,
        order_id: int,
        product_id: int | None,
        buyer_id: str,
        product_name: str,
        download_url: str,
        expiry_days: int,
        max_downloads: int,
    ) -> "DigitalDownload":
        now = utc_now()
        return cls(
            order_item_id=order_item_id,
            order_id=order_id,
            product_id=product_id,
            buyer_id=buyer_id,
            product_name=product_name,
            download_url=download_url,
            expires_at=now + timedelta(days=expiry_days),
            max_downloads=max_downloads,
            created_at=now,
            updated_at=now,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        return self.expires_at is not None and now >= self.expires_at

    def can_download(self, now: datetime | None = None) -> bool:
        return not self.is_expired(now) and self.download_count < self.max_downloads

    def _ensure_downloadable(self) -> None:
        if self.is_expired():
            raise BusinessRuleViolationException("download_not_expired", "Download link has expired")
        if self.download_count >= self.max_downloads:
            raise BusinessRuleViolationException("download_limit", "Download limit reached")

    def issue_token(self) -> str:
        self._ensure_downloadable()
        self.download_token = secrets.token_urlsafe(32)
        self.touch()
        return self.download_token

    def redeem(self) -> str:
        """Consume one download; the token is single use."""
        self._ensure_downloadable()
        self.download_count += 1
        self.downloaded_at = utc_now()
        self.download_token = None
        self.touch()
        return self.download_url

    def mark_completed(self) -> None:
        self.is_completed = True
        self.touch()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_item_id": self.order_item_id,
            "product_name": self.product_name,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "downloaded_at": self.downloaded_at.isoformat() if self.downloaded_at else None,
            "download_count": self.download_count,
            "max_downloads": self.max_downloads,
            "is_completed": self.is_completed,
            "can_download": self.can_download(),
        }
