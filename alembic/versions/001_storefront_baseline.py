"""Storefront baseline schema.

Revision ID: 001_storefront_baseline
Revises: None
Create Date: 2026-10-17

Tables:
- catalog: categories, attributes, attribute_values, products,
  product_variants, product_variant_attributes
- baskets: baskets, basket_items
- orders: order_addresses, orders, order_items, order_status_history,
  payments, digital_downloads
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_storefront_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Catalog
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        *_timestamps(),
    )
    op.create_table(
        "attributes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "attribute_values",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("attribute_id", sa.Integer(), sa.ForeignKey("attributes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("value", sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("attribute_id", "value", name="uq_attribute_values_attribute_value"),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("picture_url", sa.String(500)),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="SET NULL")),
        sa.Column("quantity_in_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_type", sa.String(20), nullable=False, server_default="physical"),
        sa.Column("digital_file_url", sa.String(1000)),
        *_timestamps(),
    )
    op.create_index("idx_products_category", "products", ["category_id"])
    op.create_index("idx_products_type", "products", ["product_type"])

    op.create_table(
        "product_variants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity_in_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price_override", sa.BigInteger()),
        *_timestamps(),
    )
    op.create_index("idx_product_variants_product", "product_variants", ["product_id"])

    op.create_table(
        "product_variant_attributes",
        sa.Column(
            "variant_id", sa.Integer(), sa.ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True
        ),
        sa.Column(
            "attribute_value_id",
            sa.Integer(),
            sa.ForeignKey("attribute_values.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    # Baskets
    op.create_table(
        "baskets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("buyer_id", sa.String(100)),
        sa.Column("payment_intent_id", sa.String(100)),
        sa.Column("client_secret", sa.String(255)),
        *_timestamps(),
    )
    op.create_index("idx_baskets_buyer", "baskets", ["buyer_id"])

    op.create_table(
        "basket_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("basket_id", sa.Integer(), sa.ForeignKey("baskets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.id", ondelete="CASCADE")),
        sa.Column("quantity", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    # Orders
    op.create_table(
        "order_addresses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("company", sa.String(200)),
        sa.Column("address_line1", sa.String(255), nullable=False),
        sa.Column("address_line2", sa.String(255)),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100)),
        sa.Column("postal_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50)),
        *_timestamps(),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_number", sa.String(50), nullable=False, unique=True),
        sa.Column("buyer_id", sa.String(100)),
        sa.Column("buyer_email", sa.String(255), nullable=False),
        sa.Column("shipping_address_id", sa.Integer(), sa.ForeignKey("order_addresses.id")),
        sa.Column("billing_address_id", sa.Integer(), sa.ForeignKey("order_addresses.id")),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("subtotal", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("shipping_cost", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("contains_digital_products", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("requires_shipping", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("payment_intent_id", sa.String(100)),
        sa.Column("tracking_number", sa.String(100)),
        sa.Column("notes", sa.Text()),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("idx_orders_buyer", "orders", ["buyer_id"])
    op.create_index("idx_orders_status", "orders", ["status"])
    op.create_index("idx_orders_payment_intent", "orders", ["payment_intent_id"])
    op.create_index("idx_orders_date", "orders", ["order_date"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="SET NULL")),
        sa.Column("variant_id", sa.Integer(), sa.ForeignKey("product_variants.id", ondelete="SET NULL")),
        sa.Column("product_name", sa.String(200), nullable=False),
        sa.Column("product_description", sa.Text()),
        sa.Column("unit_price", sa.BigInteger(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("picture_url", sa.String(500)),
        sa.Column("product_type", sa.String(20), nullable=False, server_default="physical"),
        sa.Column("digital_file_url", sa.String(1000)),
        *_timestamps(),
    )
    op.create_index("idx_order_items_order", "order_items", ["order_id"])

    op.create_table(
        "order_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_status", sa.String(30), nullable=False),
        sa.Column("to_status", sa.String(30), nullable=False),
        sa.Column("transition_trigger", sa.String(50), nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("tracking_number", sa.String(100)),
        sa.Column("updated_by", sa.String(100), nullable=False, server_default="System"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_order_status_history_order", "order_status_history", ["order_id", "created_at"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("payment_intent_id", sa.String(100), nullable=False, unique=True),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("refunded_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("idx_payments_order", "payments", ["order_id"])

    op.create_table(
        "digital_downloads",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "order_item_id",
            sa.Integer(),
            sa.ForeignKey("order_items.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id", ondelete="SET NULL")),
        sa.Column("buyer_id", sa.String(100), nullable=False),
        sa.Column("product_name", sa.String(200), nullable=False),
        sa.Column("download_url", sa.String(1000), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("downloaded_at", sa.DateTime(timezone=True)),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_downloads", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("download_token", sa.String(100), unique=True),
        *_timestamps(),
    )
    op.create_index("idx_digital_downloads_buyer", "digital_downloads", ["buyer_id"])
    op.create_index("idx_digital_downloads_order", "digital_downloads", ["order_id"])


def downgrade() -> None:
    for table in (
        "digital_downloads",
        "payments",
        "order_status_history",
        "order_items",
        "orders",
        "order_addresses",
        "basket_items",
        "baskets",
        "product_variant_attributes",
        "product_variants",
        "products",
        "attribute_values",
        "attributes",
        "categories",
    ):
        op.drop_table(table)
