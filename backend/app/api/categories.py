"""Category CRUD endpoints with RBAC enforcement."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.common import apply_search, apply_sort, paginate, read_image_upload, transaction
from app.core.deps import require_permission
from app.db.base import get_db
from app.models.category import Category
from app.schemas.auth import CurrentAdmin
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryListResponse,
)
from app.schemas.common import SortOrder
from app.services.storage import CATEGORY_IMAGES, StorageClient, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])

SORTABLE = {
    "sort_order": Category.sort_order,
    "title": Category.title,
    "created_at": Category.created_at,
}


async def _get_category_or_404(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return category


async def _ensure_slug_free(db: AsyncSession, slug: str, exclude_id: int | None = None) -> None:
    query = select(Category).where(Category.slug == slug)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category with this slug already exists",
        )


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = None,
    is_active: bool | None = None,
    sort: str | None = Query(None, description="sort_order | title | created_at"),
    order: SortOrder = "asc",
    current_admin: CurrentAdmin = Depends(require_permission("category:read")),
    db: AsyncSession = Depends(get_db),
):
    """List categories with search, filter and sort."""
    query = select(Category)
    if is_active is not None:
        query = query.where(Category.is_active == is_active)
    query = apply_search(query, search, Category.title, Category.slug)
    query = apply_sort(query, SORTABLE, sort, order, default=Category.sort_order)

    total, items = await paginate(db, query, page, size)
    return CategoryListResponse(
        items=[CategoryResponse.model_validate(c) for c in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("category:read")),
    db: AsyncSession = Depends(get_db),
):
    """Get a single category by ID."""
    category = await _get_category_or_404(db, category_id)
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    current_admin: CurrentAdmin = Depends(require_permission("category:create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a new category (requires category:create permission)."""
    await _ensure_slug_free(db, body.slug)

    category = Category(**body.model_dump())
    async with transaction(db):
        db.add(category)
    await db.refresh(category)

    logger.info("Created category %s (%s)", category.id, category.slug)

    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    body: CategoryUpdate,
    current_admin: CurrentAdmin = Depends(require_permission("category:update")),
    db: AsyncSession = Depends(get_db),
):
    """Update a category (requires category:update permission)."""
    category = await _get_category_or_404(db, category_id)

    if body.slug and body.slug != category.slug:
        await _ensure_slug_free(db, body.slug, exclude_id=category_id)

    async with transaction(db):
        for field, value in body.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
    await db.refresh(category)

    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    current_admin: CurrentAdmin = Depends(require_permission("category:delete")),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Delete a category; its deal/store links go with it, then its image."""
    category = await _get_category_or_404(db, category_id)
    image_url = category.image_url

    async with transaction(db):
        await db.delete(category)

    logger.info("Deleted category %s", category_id)

    await storage.remove_urls([image_url])


@router.post("/{category_id}/image", response_model=CategoryResponse)
async def upload_category_image(
    category_id: int,
    file: UploadFile = File(...),
    current_admin: CurrentAdmin = Depends(require_permission("category:update", "asset:upload")),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """Upload ``{slug}_category_img.{ext}`` and store its signed URL."""
    category = await _get_category_or_404(db, category_id)
    content = await read_image_upload(file)

    async with transaction(db):
        category.image_url = await storage.upload_and_sign(
            CATEGORY_IMAGES,
            category.slug,
            file.filename,
            content,
            file.content_type,
            previous_url=category.image_url,
        )
    await db.refresh(category)

    return CategoryResponse.model_validate(category)
