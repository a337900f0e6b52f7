"""Country model - currency labels are stored per locale."""

from sqlalchemy import String, Boolean, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.mixins import IntegerPrimaryKeyMixin, TimestampMixin


class Country(IntegerPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "countries"

    value: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(2), unique=True)
    image_url: Mapped[str | None] = mapped_column(Text)
    # e.g. {"en": "$"} and {"en": "USD"}
    currency: Mapped[dict | None] = mapped_column(JSONB, default=None)
    currency_code: Mapped[dict | None] = mapped_column(JSONB, default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def localized(self, column: str, locale: str) -> str | None:
        """Read one locale out of a JSON label column."""
        labels = getattr(self, column) or {}
        if not isinstance(labels, dict):
            return None
        return labels.get(locale)

    def __repr__(self) -> str:
        return f"<Country {self.code}: {self.value}>"
