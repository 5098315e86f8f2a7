"""
Shopping basket models
"""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin


class Basket(Base, TimestampMixin):
    __tablename__ = "baskets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    buyer_id = Column(String(100))
    payment_intent_id = Column(String(100))
    client_secret = Column(String(255))

    items = relationship(
        "BasketItem",
        back_populates="basket",
        cascade="all, delete-orphan",
        order_by="BasketItem.id",
    )

    __table_args__ = (Index("idx_baskets_buyer", buyer_id),)


class BasketItem(Base, TimestampMixin):
    __tablename__ = "basket_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    basket_id = Column(Integer, ForeignKey("baskets.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="CASCADE"))
    quantity = Column(Integer, nullable=False)

    basket = relationship("Basket", back_populates="items")
    product = relationship("Product")
