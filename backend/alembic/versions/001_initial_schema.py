"""Initial database schema - countries, categories, stores, deals, join tables

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-02
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEAL_TYPES = ("discount", "amountOff", "bogo", "freeShipping")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    deal_type = postgresql.ENUM(*DEAL_TYPES, name="deal_type", create_type=False)
    deal_type.create(op.get_bind(), checkfirst=True)

    # --- Countries ---
    op.create_table(
        "countries",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("value", sa.String(100), nullable=False),
        sa.Column("code", sa.String(2), unique=True),
        sa.Column("image_url", sa.Text),
        sa.Column("currency", postgresql.JSONB),
        sa.Column("currency_code", postgresql.JSONB),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_countries_value", "countries", ["value"])

    # --- Categories ---
    op.create_table(
        "categories",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("image_url", sa.Text),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="uq_categories_slug"),
    )
    op.create_index("ix_categories_title", "categories", ["title"])
    op.create_index("ix_categories_slug", "categories", ["slug"])

    # --- Stores (discount_id FK added after deals exists) ---
    op.create_table(
        "stores",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("address", sa.Text),
        sa.Column("phone", sa.String(20)),
        sa.Column("email", sa.String(255)),
        sa.Column("website", sa.Text),
        sa.Column("profile_picture_url", sa.Text),
        sa.Column("cover_url", sa.Text),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("country_id", sa.BigInteger, sa.ForeignKey("countries.id", ondelete="SET NULL")),
        sa.Column("total_offers", sa.Integer, nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(12, 2)),
        sa.Column("discount_unit", sa.String(10)),
        sa.Column("discount_type", deal_type),
        sa.Column("discount_id", sa.BigInteger),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="uq_stores_slug"),
    )
    op.create_index("ix_stores_title", "stores", ["title"])
    op.create_index("ix_stores_slug", "stores", ["slug"])
    op.create_index("ix_stores_country_id", "stores", ["country_id"])

    # --- Deals ---
    op.create_table(
        "deals",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("code", sa.String(100)),
        sa.Column("description", sa.Text),
        sa.Column("url", sa.Text),
        sa.Column("type", deal_type, nullable=False),
        sa.Column("discount", sa.Numeric(12, 2)),
        sa.Column("discount_unit", sa.String(10)),
        sa.Column("expiry_date", sa.DateTime(timezone=True)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("is_featured", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_trending", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("store_id", sa.BigInteger, sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("country_id", sa.BigInteger, sa.ForeignKey("countries.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_deals_title", "deals", ["title"])
    op.create_index("ix_deals_slug", "deals", ["slug"])
    op.create_index("ix_deals_store_id", "deals", ["store_id"])
    op.create_index("ix_deals_country_id", "deals", ["country_id"])
    op.create_index("ix_deals_store_type", "deals", ["store_id", "type"])

    op.create_foreign_key(
        "fk_stores_discount_id", "stores", "deals", ["discount_id"], ["id"], ondelete="SET NULL"
    )

    # --- Join tables ---
    op.create_table(
        "deal_categories",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("deal_id", sa.BigInteger, sa.ForeignKey("deals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.BigInteger, sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("deal_id", "category_id", name="uq_deal_categories_deal_category"),
    )
    op.create_index("ix_deal_categories_deal_id", "deal_categories", ["deal_id"])
    op.create_index("ix_deal_categories_category_id", "deal_categories", ["category_id"])

    op.create_table(
        "store_categories",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("store_id", sa.BigInteger, sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.BigInteger, sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("store_id", "category_id", name="uq_store_categories_store_category"),
    )
    op.create_index("ix_store_categories_store_id", "store_categories", ["store_id"])
    op.create_index("ix_store_categories_category_id", "store_categories", ["category_id"])


def downgrade() -> None:
    op.drop_table("store_categories")
    op.drop_table("deal_categories")
    op.drop_constraint("fk_stores_discount_id", "stores", type_="foreignkey")
    op.drop_table("deals")
    op.drop_table("stores")
    op.drop_table("categories")
    op.drop_table("countries")
    postgresql.ENUM(name="deal_type").drop(op.get_bind(), checkfirst=True)
