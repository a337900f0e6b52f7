"""Deal model."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, String, Text, Numeric, Boolean, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import IntegerPrimaryKeyMixin, TimestampMixin


class DealType(str, enum.Enum):
    DISCOUNT = "discount"
    AMOUNT_OFF = "amountOff"
    BOGO = "bogo"
    FREE_SHIPPING = "freeShipping"


# Types carrying a numeric discount compete on value; the rest only fill in
RANKED_TYPES = frozenset({DealType.DISCOUNT, DealType.AMOUNT_OFF})
FALLBACK_TYPES = frozenset({DealType.BOGO, DealType.FREE_SHIPPING})

deal_type_enum = Enum(
    DealType,
    name="deal_type",
    values_callable=lambda members: [m.value for m in members],
)


class Deal(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "deals"
    __table_args__ = (
        Index("ix_deals_store_type", "store_id", "type"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    url: Mapped[str | None] = mapped_column(Text)
    type: Mapped[DealType] = mapped_column(deal_type_enum, nullable=False)
    discount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    discount_unit: Mapped[str | None] = mapped_column(String(10))
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_trending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Foreign keys
    store_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True
    )
    country_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("countries.id", ondelete="SET NULL"), index=True
    )

    def __repr__(self) -> str:
        return f"<Deal {self.id} {self.type} store={self.store_id}>"
