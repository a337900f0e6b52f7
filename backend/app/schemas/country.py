"""Country schemas for API responses (countries are read-only here)."""

from pydantic import BaseModel, ConfigDict


class CountryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    value: str
    code: str | None = None
    image_url: str | None = None
    currency: dict | None = None
    currency_code: dict | None = None
    is_active: bool
    # Resolved for the configured locale
    currency_symbol: str | None = None
    currency_iso: str | None = None


class CountryListResponse(BaseModel):
    items: list[CountryResponse]
    total: int
    page: int
    size: int
