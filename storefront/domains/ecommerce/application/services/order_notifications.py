"""
Order Notifications

Fans order events out to the push channel and email. Delivery is
best-effort: a failing channel is logged and never fails the operation
that already committed.
"""

import logging
from html import escape
from typing import Iterable

from storefront.domains.ecommerce.application.ports import IEmailSender, INotificationSink
from storefront.domains.ecommerce.domain.entities import DigitalDownload, Order, OrderStatusHistory

logger = logging.getLogger(__name__)

STATUS_TITLES = {
    "pending": "Order received",
    "confirmed": "Order confirmed",
    "payment_received": "Payment received",
    "processing": "Order is being prepared",
    "shipped": "Order shipped",
    "delivered": "Order delivered",
    "cancelled": "Order cancelled",
    "returned": "Order returned",
}


def build_download_message(order: Order, downloads: Iterable[DigitalDownload]) -> str:
    lines = [f"{d.product_name}: {d.download_url}" for d in downloads]
    return (
        "Your digital products are ready for download:\n\n"
        + "\n".join(lines)
        + f"\n\nOrder: {order.order_number}"
    )


class OrderNotifier:
    """
    Sends status-change and download-link messages for orders.

    Example:
        ```python
        notifier = OrderNotifier(push_sink, email_sender, admin_group="admins")
        await notifier.notify_status_change(order, history_entry)
        ```
    """

    def __init__(
        self,
        push: INotificationSink | None,
        email: IEmailSender | None = None,
        admin_group: str | None = None,
    ):
        self.push = push
        self.email = email
        self.admin_group = admin_group

    async def notify_status_change(self, order: Order, entry: OrderStatusHistory) -> None:
        title = STATUS_TITLES.get(entry.to_status.value, "Order updated")
        message = f"Order {order.order_number} is now {entry.to_status.value.replace('_', ' ')}"
        if entry.tracking_number:
            message += f" (tracking number {entry.tracking_number})"
        data = {
            "order_id": order.id,
            "order_number": order.order_number,
            "from_status": entry.from_status.value,
            "to_status": entry.to_status.value,
        }

        if self.push is not None:
            if order.buyer_id:
                await self._push_user(order.buyer_id, title, message, data)
            if self.admin_group:
                await self._push_group(self.admin_group, title, message, data)

        if order.buyer_email:
            await self._send_email(order.buyer_email, f"{title}: {order.order_number}", message)

    async def send_digital_links(self, order: Order, downloads: list[DigitalDownload]) -> None:
        """One message listing every new download link, addressed to the buyer or "guest"."""
        if not downloads:
            return
        title = "Digital Products Ready"
        message = build_download_message(order, downloads)
        data = {"order_id": order.id, "order_number": order.order_number, "download_ids": [d.id for d in downloads]}

        if self.push is not None:
            await self._push_user(order.buyer_id or "guest", title, message, data)
        if order.buyer_email:
            await self._send_email(order.buyer_email, title, message)

    async def _push_user(self, user_id: str, title: str, message: str, data: dict) -> None:
        try:
            await self.push.send_to_user(user_id, title, message, data)
        except Exception as e:
            logger.error(f"Push notification to user {user_id} failed: {e}")

    async def _push_group(self, group: str, title: str, message: str, data: dict) -> None:
        try:
            await self.push.send_to_group(group, title, message, data)
        except Exception as e:
            logger.error(f"Push notification to group {group} failed: {e}")

    async def _send_email(self, to: str, subject: str, message: str) -> None:
        if self.email is None:
            return
        body = "<br>".join(escape(line) for line in message.split("\n"))
        html_body = f"<html><body><p>{body}</p></body></html>"
        try:
            await self.email.send(to, subject, html_body)
        except Exception as e:
            logger.error(f"Email to {to} failed: {e}")
