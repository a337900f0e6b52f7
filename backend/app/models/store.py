"""Store model, including the cached summary of its best deal."""

from decimal import Decimal

from sqlalchemy import BigInteger, String, Boolean, Text, Integer, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.deal import DealType, deal_type_enum
from app.models.mixins import IntegerPrimaryKeyMixin, TimestampMixin


class Store(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "stores"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    website: Mapped[str | None] = mapped_column(Text)
    profile_picture_url: Mapped[str | None] = mapped_column(Text)
    cover_url: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    country_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("countries.id", ondelete="SET NULL"), index=True
    )

    # Derived from the store's deals by app.services.store_summary, never client-written
    total_offers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    discount_unit: Mapped[str | None] = mapped_column(String(10))
    discount_type: Mapped[DealType | None] = mapped_column(deal_type_enum)
    discount_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("deals.id", ondelete="SET NULL", use_alter=True, name="fk_stores_discount_id"),
    )

    def __repr__(self) -> str:
        return f"<Store {self.slug}: {self.title}>"
