"""
Order management models: orders, items, history, payments and download grants
"""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin


class OrderAddress(Base, TimestampMixin):
    """Address snapshot captured at checkout."""

    __tablename__ = "order_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    company = Column(String(200))
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255))
    city = Column(String(100), nullable=False)
    state = Column(String(100))
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    phone = Column(String(50))


class Order(Base, TimestampMixin):
    """Orders. Monetary columns are integer minor units."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), unique=True, nullable=False)
    buyer_id = Column(String(100))
    buyer_email = Column(String(255), nullable=False)
    shipping_address_id = Column(Integer, ForeignKey("order_addresses.id"))
    billing_address_id = Column(Integer, ForeignKey("order_addresses.id"))

    currency = Column(String(3), nullable=False, default="USD")
    subtotal = Column(BigInteger, nullable=False, default=0)
    shipping_cost = Column(BigInteger, nullable=False, default=0)
    tax_amount = Column(BigInteger, nullable=False, default=0)
    total_amount = Column(BigInteger, nullable=False, default=0)

    status = Column(String(30), nullable=False, default="pending")
    payment_status = Column(String(30), nullable=False, default="pending")
    contains_digital_products = Column(Boolean, nullable=False, default=False)
    requires_shipping = Column(Boolean, nullable=False, default=True)
    payment_intent_id = Column(String(100))
    tracking_number = Column(String(100))
    notes = Column(Text)
    order_date = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Optimistic concurrency token
    version = Column(Integer, nullable=False, default=0)

    shipping_address = relationship("OrderAddress", foreign_keys=[shipping_address_id])
    billing_address = relationship("OrderAddress", foreign_keys=[billing_address_id])
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("idx_orders_buyer", buyer_id),
        Index("idx_orders_status", status),
        Index("idx_orders_payment_intent", payment_intent_id),
        Index("idx_orders_date", order_date),
    )

    def __repr__(self):
        return f"<Order(number='{self.order_number}', status='{self.status}', total={self.total_amount})>"


class OrderItem(Base, TimestampMixin):
    """Point-in-time product snapshot."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"))
    product_name = Column(String(200), nullable=False)
    product_description = Column(Text)
    unit_price = Column(BigInteger, nullable=False)
    quantity = Column(Integer, nullable=False)
    picture_url = Column(String(500))
    product_type = Column(String(20), nullable=False, default="physical")
    digital_file_url = Column(String(1000))

    order = relationship("Order", back_populates="items")

    __table_args__ = (Index("idx_order_items_order", order_id),)


class OrderStatusHistory(Base):
    """Append-only status transitions."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    transition_trigger = Column(String(50), nullable=False)
    note = Column(Text)
    tracking_number = Column(String(100))
    updated_by = Column(String(100), nullable=False, default="System")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("idx_order_status_history_order", order_id, created_at),)


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    payment_intent_id = Column(String(100), nullable=False, unique=True)
    amount = Column(BigInteger, nullable=False)
    refunded_amount = Column(BigInteger, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(30), nullable=False, default="pending")
    payment_method = Column(String(50))
    processed_at = Column(DateTime(timezone=True))

    __table_args__ = (Index("idx_payments_order", order_id),)


class DigitalDownload(Base, TimestampMixin):
    """Download grants, at most one per order item."""

    __tablename__ = "digital_downloads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, unique=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    buyer_id = Column(String(100), nullable=False)
    product_name = Column(String(200), nullable=False)
    download_url = Column(String(1000), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    downloaded_at = Column(DateTime(timezone=True))
    download_count = Column(Integer, nullable=False, default=0)
    max_downloads = Column(Integer, nullable=False, default=3)
    is_completed = Column(Boolean, nullable=False, default=False)
    download_token = Column(String(100), unique=True)

    __table_args__ = (
        Index("idx_digital_downloads_buyer", buyer_id),
        Index("idx_digital_downloads_order", order_id),
    )
