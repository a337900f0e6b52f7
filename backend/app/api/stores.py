"""Store CRUD endpoints with RBAC enforcement.

The deal summary columns on a store are maintained by
``app.services.store_summary`` and are read-only here.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.common import apply_search, apply_sort, paginate, read_image_upload, transaction
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.category import StoreCategory
from app.models.country import Country
from app.models.store import Store
from app.schemas.auth import CurrentAdmin
from app.schemas.common import SortOrder
from app.schemas.store import (
    StoreCreate,
    StoreUpdate,
    StoreResponse,
    StoreListResponse,
    StoreSummaryResponse,
)
from app.services.category_sync import get_category_ids, sync_store_categories
from app.services.storage import COVERS, PROFILE_PICTURES, StorageClient, get_storage
from app.services.store_summary import lock_stores, recompute_store_summary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stores", tags=["stores"])

SORTABLE = {
    "title": Store.title,
    "total_offers": Store.total_offers,
    "discount": Store.discount,
    "created_at": Store.created_at,
}


async def _get_store_or_404(db: AsyncSession, store_id: int) -> Store:
    store = await db.get(Store, store_id)
    if not store:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Store not found",
        )
    return store


async def _ensure_slug_free(db: AsyncSession, slug: str, exclude_id: int | None = None) -> None:
    query = select(Store).where(Store.slug == slug)
    if exclude_id is not None:
        query = query.where(Store.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Store with this slug already exists",
        )


async def _ensure_country_exists(db: AsyncSession, country_id: int | None) -> None:
    if country_id is not None and not await db.get(Country, country_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Country not found",
        )


async def _to_response(db: AsyncSession, store: Store) -> StoreResponse:
    response = StoreResponse.model_validate(store)
    response.category_ids = await get_category_ids(db, StoreCategory, "store_id", store.id)
    return response


@router.get("", response_model=StoreListResponse)
async def list_stores(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = None,
    country_id: int | None = None,
    category_id: int | None = None,
    is_active: bool | None = None,
    sort: str | None = Query(None, description="title | total_offers | discount | created_at"),
    order: SortOrder = "desc",
    current_admin: CurrentAdmin = Depends(require_permission("store:read")),
    db: AsyncSession = Depends(get_db),
):
    """List stores with search, filters and sort."""
    query = select(Store)

    # Apply filters
    if country_id is not None:
        query = query.where(Store.country_id == country_id)
    if is_active is not None:
        query = query.where(Store.is_active == is_active)
    if category_id is not None:
        query = query.where(
            Store.id.in_(
                select(StoreCategory.store_id).where(StoreCategory.category_id == category_id)
            )
        )
    query = apply_search(query, search, Store.title, Store.name, Store.slug)
    query = apply_sort(query, SORTABLE, sort, order, default=Store.created_at.desc())

    total, items = await paginate(db, query, page, size)
    return StoreListResponse(
        items=[StoreResponse.model_validate(s) for s in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store(
    store_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("store:read")),
    db: AsyncSession = Depends(get_db),
):
    """Get a single store with its category ids."""
    store = await _get_store_or_404(db, store_id)
    return await _to_response(db, store)


@router.post("", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    body: StoreCreate,
    current_admin: CurrentAdmin = Depends(require_permission("store:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a store (requires store:create permission). It starts with no offers."""
    await _ensure_slug_free(db, body.slug)
    await _ensure_country_exists(db, body.country_id)

    store = Store(**body.model_dump(exclude={"category_ids"}), total_offers=0)
    async with transaction(db):
        db.add(store)
        await db.flush()  # get store.id
        await sync_store_categories(db, store.id, body.category_ids)
    await db.refresh(store)

    logger.info("Created store %s (%s)", store.id, store.slug)
    return await _to_response(db, store)


@router.patch("/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: int,
    body: StoreUpdate,
    current_admin: CurrentAdmin = Depends(require_permission("store:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update store details and, when given, its category set."""
    store = await _get_store_or_404(db, store_id)

    update_data = body.model_dump(exclude_unset=True)
    category_ids = update_data.pop("category_ids", None)

    if "slug" in update_data and update_data["slug"] != store.slug:
        await _ensure_slug_free(db, update_data["slug"], exclude_id=store_id)
    if update_data.get("country_id") is not None:
        await _ensure_country_exists(db, update_data["country_id"])

    async with transaction(db):
        for field, value in update_data.items():
            setattr(store, field, value)
        if category_ids is not None:
            await sync_store_categories(db, store.id, category_ids)
        if "country_id" in update_data:
            # Currency code of "$" amounts may depend on the store's country
            await recompute_store_summary(db, store.id)
    await db.refresh(store)

    return await _to_response(db, store)


@router.delete("/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store(
    store_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("store:delete")),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Delete a store with its deals and category links, then its artwork."""
    store = await _get_store_or_404(db, store_id)
    artwork = [store.profile_picture_url, store.cover_url]

    async with transaction(db):
        await db.delete(store)

    logger.info("Deleted store %s", store_id)
    await storage.remove_urls(artwork)


@router.post("/{store_id}/recompute", response_model=StoreSummaryResponse)
async def recompute_summary(
    store_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("store:update")),
    db: AsyncSession = Depends(get_db),
):
    """Re-derive the store's best deal and offer count from its deals."""
    async with transaction(db):
        locked = await lock_stores(db, [store_id])
        store = locked.get(store_id)
        if store is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Store not found",
            )
        await recompute_store_summary(db, store_id, store)

    return StoreSummaryResponse.from_store(store)


async def _upload_store_asset(
    db: AsyncSession,
    storage: StorageClient,
    store_id: int,
    file: UploadFile,
    prefix: str,
    column: str,
) -> StoreResponse:
    store = await _get_store_or_404(db, store_id)
    content = await read_image_upload(file)

    async with transaction(db):
        url = await storage.upload_and_sign(
            prefix,
            store.slug,
            file.filename,
            content,
            file.content_type,
            previous_url=getattr(store, column),
        )
        setattr(store, column, url)
    await db.refresh(store)

    return await _to_response(db, store)


@router.post("/{store_id}/profile-picture", response_model=StoreResponse)
async def upload_profile_picture(
    store_id: int,
    file: UploadFile = File(...),
    current_admin: CurrentAdmin = Depends(require_permission("store:update", "asset:upload")),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Upload ``{slug}_profile_picture.{ext}`` and store its signed URL."""
    return await _upload_store_asset(db, storage, store_id, file, PROFILE_PICTURES, "profile_picture_url")


@router.post("/{store_id}/cover", response_model=StoreResponse)
async def upload_cover(
    store_id: int,
    file: UploadFile = File(...),
    current_admin: CurrentAdmin = Depends(require_permission("store:update", "asset:upload")),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Upload ``{slug}_cover.{ext}`` and store its signed URL."""
    return await _upload_store_asset(db, storage, store_id, file, COVERS, "cover_url")
