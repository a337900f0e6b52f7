"""Country lookup endpoints (read-only)."""

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.common import apply_search, paginate
from app.core.config import settings
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.country import Country
from app.schemas.auth import CurrentAdmin
from app.schemas.country import CountryResponse, CountryListResponse

router = APIRouter(prefix="/countries", tags=["countries"])


def to_response(country: Country) -> CountryResponse:
    response = CountryResponse.model_validate(country)
    response.currency_symbol = country.localized("currency", settings.CURRENCY_LOCALE)
    response.currency_iso = country.localized("currency_code", settings.CURRENCY_LOCALE)
    return response


@router.get("", response_model=CountryListResponse)
async def list_countries(
    page: int = Query(1, ge=1),
    size: int = Query(100, ge=1, le=500),
    search: str | None = None,
    is_active: bool | None = None,
    current_admin: CurrentAdmin = Depends(require_permission("country:read")),
    db: AsyncSession = Depends(get_db),
):
    """List countries, alphabetically."""
    query = select(Country)
    if is_active is not None:
        query = query.where(Country.is_active == is_active)
    query = apply_search(query, search, Country.value, Country.code)
    query = query.order_by(Country.value)

    total, items = await paginate(db, query, page, size)
    return CountryListResponse(
        items=[to_response(c) for c in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{country_id}", response_model=CountryResponse)
async def get_country(
    country_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("country:read")),
    db: AsyncSession = Depends(get_db),
):
    country = await db.get(Country, country_id)
    if not country:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Country not found",
        )
    return to_response(country)
