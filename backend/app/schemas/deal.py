"""Deal schemas for API request/response."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, ConfigDict, model_validator

from app.models.deal import DealType
from app.schemas.common import SLUG_PATTERN, CODE_PATTERN, URL_PATTERN, reject_nulls
from app.schemas.store import StoreSummaryResponse

MAX_PERCENT = Decimal("100")

# NOT NULL columns a PATCH may change but not clear
REQUIRED_DEAL_FIELDS = ("title", "slug", "store_id", "type", "is_active", "is_featured", "is_trending")


def normalize_discount(
    deal_type: DealType | str,
    discount: Decimal | None,
    discount_unit: str | None,
) -> tuple[Decimal | None, str | None]:
    """Validate a deal's discount against its type and fill in the unit.

    Raises ValueError with a user-facing message on invalid input.
    """
    deal_type = DealType(deal_type)
    if deal_type == DealType.DISCOUNT:
        if discount is None or not (1 <= discount <= MAX_PERCENT):
            raise ValueError("Discount must be between 1 and 100")
        return discount, "%"
    if deal_type == DealType.AMOUNT_OFF:
        if discount is None or discount <= 0:
            raise ValueError("Amount must be positive")
        return discount, discount_unit or "$"
    # BOGO and free shipping carry no amount
    return None, None


class DealBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    code: str | None = Field(None, max_length=100, pattern=CODE_PATTERN)
    description: str | None = None
    url: str | None = Field(None, pattern=URL_PATTERN)
    store_id: int
    country_id: int | None = None
    type: DealType
    discount: Decimal | None = Field(None, ge=0, decimal_places=2)
    discount_unit: str | None = Field(None, max_length=10)
    expiry_date: datetime | None = None
    is_active: bool = True
    is_featured: bool = False
    is_trending: bool = False


class DealCreate(DealBase):
    category_ids: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_discount(self) -> "DealCreate":
        self.discount, self.discount_unit = normalize_discount(
            self.type, self.discount, self.discount_unit
        )
        return self


class DealUpdate(BaseModel):
    """Partial update; discount rules are checked against the merged deal."""
    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    code: str | None = Field(None, max_length=100, pattern=CODE_PATTERN)
    description: str | None = None
    url: str | None = Field(None, pattern=URL_PATTERN)
    store_id: int | None = None
    country_id: int | None = None
    type: DealType | None = None
    discount: Decimal | None = Field(None, ge=0, decimal_places=2)
    discount_unit: str | None = Field(None, max_length=10)
    expiry_date: datetime | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    is_trending: bool | None = None
    category_ids: list[int] | None = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "DealUpdate":
        reject_nulls(self, REQUIRED_DEAL_FIELDS)
        return self


class DealResponse(DealBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    code: str | None = None
    url: str | None = None
    discount: Decimal | None = None
    category_ids: list[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class DealMutationResponse(BaseModel):
    """A written deal together with the store summary it produced."""
    deal: DealResponse | None = None
    store_summary: StoreSummaryResponse
    previous_store_summary: StoreSummaryResponse | None = None


class DealListResponse(BaseModel):
    items: list[DealResponse]
    total: int
    page: int
    size: int
