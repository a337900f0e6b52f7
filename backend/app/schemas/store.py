"""Store schemas for API request/response."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, ConfigDict, model_validator

from app.models.deal import DealType
from app.models.store import Store
from app.schemas.common import SLUG_PATTERN, PHONE_PATTERN, URL_PATTERN, reject_nulls


class StoreBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    name: str | None = Field(None, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: str | None = None
    address: str | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    website: str | None = Field(None, pattern=URL_PATTERN)
    country_id: int | None = None
    is_active: bool = True


class StoreCreate(StoreBase):
    category_ids: list[int] = Field(default_factory=list)


class StoreUpdate(BaseModel):
    """Editable store fields. The deal summary is derived and cannot be set."""
    title: str | None = Field(None, min_length=1, max_length=255)
    name: str | None = Field(None, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: str | None = None
    address: str | None = None
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    website: str | None = Field(None, pattern=URL_PATTERN)
    country_id: int | None = None
    is_active: bool | None = None
    category_ids: list[int] | None = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "StoreUpdate":
        reject_nulls(self, ("title", "slug", "is_active"))
        return self


class StoreSummaryResponse(BaseModel):
    store_id: int
    total_offers: int
    discount: Decimal | None = None
    discount_unit: str | None = None
    discount_type: DealType | None = None
    discount_id: int | None = None

    @classmethod
    def from_store(cls, store: Store) -> "StoreSummaryResponse":
        return cls(
            store_id=store.id,
            total_offers=store.total_offers or 0,
            discount=store.discount,
            discount_unit=store.discount_unit,
            discount_type=store.discount_type,
            discount_id=store.discount_id,
        )


class StoreResponse(StoreBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    # Stored values are returned as-is, input patterns are not re-applied
    slug: str
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    profile_picture_url: str | None = None
    cover_url: str | None = None
    total_offers: int = 0
    discount: Decimal | None = None
    discount_unit: str | None = None
    discount_type: DealType | None = None
    discount_id: int | None = None
    category_ids: list[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class StoreListResponse(BaseModel):
    items: list[StoreResponse]
    total: int
    page: int
    size: int
