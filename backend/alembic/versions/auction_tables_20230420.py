"""Create auction listing, threshold and bid tables

Revision ID: auction_tables_20230420
Revises:
Create Date: 2023-04-20

The products and customers tables belong to the retail catalog; they are
created here only when missing so a fresh database can run the service.
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "auction_tables_20230420"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.Numeric(19, 4)


def upgrade() -> None:
    """Create the auction tables (and catalog tables when absent)."""

    existing = set(sa.inspect(op.get_bind()).get_table_names())

    if "products" not in existing:
        op.create_table(
            "products",
            sa.Column("product_id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("list_price", MONEY, nullable=False),
            sa.Column("make_flag", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("sell_start_date", sa.DateTime(), nullable=True),
            sa.Column("sell_end_date", sa.DateTime(), nullable=True),
            sa.Column("discontinued_date", sa.DateTime(), nullable=True),
        )

    if "customers" not in existing:
        op.create_table(
            "customers",
            sa.Column("customer_id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(length=100), nullable=True),
        )

    op.create_table(
        "auction_listings",
        sa.Column("auction_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("initial_bid_price", MONEY, nullable=True),
        sa.Column("expire_date", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.ForeignKeyConstraint(["product_id"], ["products.product_id"], name="fk_auction_listings_product"),
    )
    op.create_index("ix_auction_listings_product_id", "auction_listings", ["product_id"], unique=True)
    op.create_index("ix_auction_listings_expire_date", "auction_listings", ["expire_date"])

    op.create_table(
        "auction_thresholds",
        sa.Column("product_id", sa.Integer(), primary_key=True),
        sa.Column("list_price", MONEY, nullable=False),
        sa.Column("make_flag", sa.Boolean(), nullable=True),
        sa.Column("min_bid", MONEY, nullable=False, server_default="0.05"),
        sa.Column("max_bid", MONEY, nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.product_id"], name="fk_auction_thresholds_product"),
    )

    op.create_table(
        "auction_bids",
        sa.Column("bid_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("bid_amount", MONEY, nullable=False),
        sa.Column("current_price", MONEY, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Active"),
        sa.Column("bid_time", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("expire_date", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.product_id"], name="fk_auction_bids_product"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.customer_id"], name="fk_auction_bids_customer"),
    )
    op.create_index("idx_auction_bids_product_time", "auction_bids", ["product_id", "bid_time"])
    op.create_index("idx_auction_bids_customer_time", "auction_bids", ["customer_id", "bid_time"])
    op.create_index("idx_auction_bids_status", "auction_bids", ["status"])


def downgrade() -> None:
    """Drop the auction tables; catalog tables are left in place."""

    op.drop_index("idx_auction_bids_status", table_name="auction_bids")
    op.drop_index("idx_auction_bids_customer_time", table_name="auction_bids")
    op.drop_index("idx_auction_bids_product_time", table_name="auction_bids")
    op.drop_table("auction_bids")
    op.drop_table("auction_thresholds")
    op.drop_index("ix_auction_listings_expire_date", table_name="auction_listings")
    op.drop_index("ix_auction_listings_product_id", table_name="auction_listings")
    op.drop_table("auction_listings")
