"""Deal CRUD endpoints.

Every write locks the owning store row, applies the deal change and its
category links, re-derives the store summary and commits once. A failure at
any step rolls the whole mutation back, so a deal never exists without its
store summary reflecting it.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.common import apply_search, apply_sort, paginate, transaction
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.category import DealCategory
from app.models.country import Country
from app.models.deal import Deal, DealType
from app.models.store import Store
from app.schemas.auth import CurrentAdmin
from app.schemas.common import SortOrder
from app.schemas.deal import (
    DealCreate,
    DealUpdate,
    DealResponse,
    DealListResponse,
    DealMutationResponse,
    normalize_discount,
)
from app.schemas.store import StoreSummaryResponse
from app.services.category_sync import get_category_ids, sync_deal_categories
from app.services.store_summary import lock_stores, recompute_store_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["deals"])

SORTABLE = {
    "title": Deal.title,
    "discount": Deal.discount,
    "expiry_date": Deal.expiry_date,
    "created_at": Deal.created_at,
}


async def _get_deal_or_404(db: AsyncSession, deal_id: int) -> Deal:
    deal = await db.get(Deal, deal_id)
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )
    return deal


async def _lock_deal_or_404(db: AsyncSession, deal_id: int) -> Deal:
    result = await db.execute(
        select(Deal)
        .where(Deal.id == deal_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    deal = result.scalar_one_or_none()
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )
    return deal


def _apply_discount_rules(deal: Deal, update_data: dict) -> None:
    """Validate the discount of the deal as it will be stored, in place."""
    merged_type = DealType(update_data.get("type", deal.type))
    # A unit only carries over when the type is unchanged
    current_unit = deal.discount_unit if merged_type == DealType(deal.type) else None
    try:
        discount, discount_unit = normalize_discount(
            merged_type,
            update_data.get("discount", deal.discount),
            update_data.get("discount_unit", current_unit),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    update_data["discount"], update_data["discount_unit"] = discount, discount_unit


async def _lock_store_or_404(db: AsyncSession, *store_ids: int) -> dict[int, Store]:
    stores = await lock_stores(db, store_ids)
    missing = [store_id for store_id in store_ids if store_id not in stores]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Store not found",
        )
    return stores


async def _ensure_country_exists(db: AsyncSession, country_id: int | None) -> None:
    if country_id is not None and not await db.get(Country, country_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Country not found",
        )


async def _to_response(db: AsyncSession, deal: Deal) -> DealResponse:
    response = DealResponse.model_validate(deal)
    response.category_ids = await get_category_ids(db, DealCategory, "deal_id", deal.id)
    return response


@router.get("", response_model=DealListResponse)
async def list_deals(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = None,
    store_id: int | None = None,
    country_id: int | None = None,
    category_id: int | None = None,
    type: DealType | None = None,
    is_active: bool | None = None,
    is_featured: bool | None = None,
    is_trending: bool | None = None,
    expired: bool | None = None,
    sort: str | None = Query(None, description="title | discount | expiry_date | created_at"),
    order: SortOrder = "desc",
    current_admin: CurrentAdmin = Depends(require_permission("deal:read")),
    db: AsyncSession = Depends(get_db),
):
    """List deals with pagination, search and filters."""
    query = select(Deal)

    # Apply filters
    if store_id is not None:
        query = query.where(Deal.store_id == store_id)
    if country_id is not None:
        query = query.where(Deal.country_id == country_id)
    if type is not None:
        query = query.where(Deal.type == type)
    if is_active is not None:
        query = query.where(Deal.is_active == is_active)
    if is_featured is not None:
        query = query.where(Deal.is_featured == is_featured)
    if is_trending is not None:
        query = query.where(Deal.is_trending == is_trending)
    if category_id is not None:
        query = query.where(
            Deal.id.in_(select(DealCategory.deal_id).where(DealCategory.category_id == category_id))
        )
    if expired is not None:
        now = datetime.now(timezone.utc)
        if expired:
            query = query.where(Deal.expiry_date < now)
        else:
            query = query.where((Deal.expiry_date.is_(None)) | (Deal.expiry_date >= now))
    query = apply_search(query, search, Deal.title, Deal.code, Deal.slug)
    query = apply_sort(query, SORTABLE, sort, order, default=Deal.created_at.desc())

    total, items = await paginate(db, query, page, size)
    return DealListResponse(
        items=[DealResponse.model_validate(d) for d in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{deal_id}", response_model=DealResponse)
async def get_deal(
    deal_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("deal:read")),
    db: AsyncSession = Depends(get_db),
):
    """Get a single deal with its category ids."""
    deal = await _get_deal_or_404(db, deal_id)
    return await _to_response(db, deal)


@router.post("", response_model=DealMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    body: DealCreate,
    current_admin: CurrentAdmin = Depends(require_permission("deal:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a deal and refresh its store's summary in the same transaction."""
    await _ensure_country_exists(db, body.country_id)

    deal = Deal(**body.model_dump(exclude={"category_ids"}))
    async with transaction(db):
        stores = await _lock_store_or_404(db, body.store_id)
        db.add(deal)
        await db.flush()  # get deal.id
        await sync_deal_categories(db, deal.id, body.category_ids)
        await recompute_store_summary(db, body.store_id, stores[body.store_id])
    await db.refresh(deal)

    logger.info("Created deal %s for store %s", deal.id, deal.store_id)
    return DealMutationResponse(
        deal=await _to_response(db, deal),
        store_summary=StoreSummaryResponse.from_store(stores[body.store_id]),
    )


@router.patch("/{deal_id}", response_model=DealMutationResponse)
async def update_deal(
    deal_id: int,
    body: DealUpdate,
    current_admin: CurrentAdmin = Depends(require_permission("deal:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update a deal; moving it to another store refreshes both stores."""
    update_data = body.model_dump(exclude_unset=True)
    category_ids = update_data.pop("category_ids", None)

    if update_data.get("country_id") is not None:
        await _ensure_country_exists(db, update_data["country_id"])

    async with transaction(db):
        # Lock the deal, then the store(s) it belongs to
        deal = await _lock_deal_or_404(db, deal_id)
        _apply_discount_rules(deal, update_data)

        old_store_id = deal.store_id
        new_store_id = update_data.get("store_id", old_store_id)
        stores = await _lock_store_or_404(db, old_store_id, new_store_id)
        for field, value in update_data.items():
            setattr(deal, field, value)
        await db.flush()
        if category_ids is not None:
            await sync_deal_categories(db, deal.id, category_ids)
        await recompute_store_summary(db, new_store_id, stores[new_store_id])
        if old_store_id != new_store_id:
            await recompute_store_summary(db, old_store_id, stores[old_store_id])
    await db.refresh(deal)

    previous = None
    if old_store_id != new_store_id:
        logger.info("Moved deal %s from store %s to %s", deal.id, old_store_id, new_store_id)
        previous = StoreSummaryResponse.from_store(stores[old_store_id])
    return DealMutationResponse(
        deal=await _to_response(db, deal),
        store_summary=StoreSummaryResponse.from_store(stores[new_store_id]),
        previous_store_summary=previous,
    )


@router.delete("/{deal_id}", response_model=DealMutationResponse)
async def delete_deal(
    deal_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("deal:delete")),
    db: AsyncSession = Depends(get_db),
):
    """Delete a deal and refresh its store's summary in the same transaction."""
    async with transaction(db):
        deal = await _lock_deal_or_404(db, deal_id)
        store_id = deal.store_id
        stores = await _lock_store_or_404(db, store_id)
        await db.delete(deal)
        await db.flush()
        await recompute_store_summary(db, store_id, stores[store_id])

    logger.info("Deleted deal %s from store %s", deal_id, store_id)
    return DealMutationResponse(store_summary=StoreSummaryResponse.from_store(stores[store_id]))
