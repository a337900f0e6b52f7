"""Category model and the deal/store join tables."""

from sqlalchemy import BigInteger, String, Integer, Boolean, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import IntegerPrimaryKeyMixin, TimestampMixin


class Category(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "categories"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Category {self.slug}>"


class DealCategory(IntegerPrimaryKeyMixin, Base):
    __tablename__ = "deal_categories"
    __table_args__ = (
        UniqueConstraint("deal_id", "category_id", name="uq_deal_categories_deal_category"),
    )

    deal_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )


class StoreCategory(IntegerPrimaryKeyMixin, Base):
    __tablename__ = "store_categories"
    __table_args__ = (
        UniqueConstraint("store_id", "category_id", name="uq_store_categories_store_category"),
    )

    store_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
