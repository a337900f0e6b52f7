"""Category schemas for API request/response."""

from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict, model_validator

from app.schemas.common import SLUG_PATTERN, reject_nulls


class CategoryBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int = Field(0, ge=0)
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    sort_order: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_required_not_null(self) -> "CategoryUpdate":
        reject_nulls(self, ("title", "slug", "sort_order", "is_active"))
        return self


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    sort_order: int = 0
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class CategoryListResponse(BaseModel):
    items: list[CategoryResponse]
    total: int
    page: int
    size: int
