"""Unit tests for Category Management API."""

from datetime import datetime, timezone
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException, UploadFile
from pydantic import ValidationError
from starlette.datastructures import Headers

from app.core.rbac import permissions_for
from app.models.category import Category
from app.schemas.auth import CurrentAdmin
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.services.storage import CATEGORY_IMAGES

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def make_admin(role="editor"):
    return CurrentAdmin(id="user-1", email="e@example.com", role=role, permissions=permissions_for(role))


def make_category(id=1, slug="electronics", image_url=None):
    return Category(
        id=id,
        title="Electronics",
        slug=slug,
        sort_order=0,
        is_active=True,
        image_url=image_url,
        created_at=NOW,
        updated_at=NOW,
    )


def upload(content=b"\x89PNG...", filename="Photo.PNG", content_type="image/png"):
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.asyncio
async def test_create_category_duplicate_slug():
    """Creating category with existing slug should fail."""
    from app.api.categories import create_category

    mock_db = AsyncMock()

    # Mock existing category
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = make_category()
    mock_db.execute.return_value = mock_result

    with pytest.raises(HTTPException) as exc_info:
        await create_category(
            CategoryCreate(title="Electronics", slug="electronics"), make_admin(), mock_db
        )

    assert exc_info.value.status_code == 409
    assert "already exists" in str(exc_info.value.detail).lower()
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_category():
    from app.api.categories import create_category

    mock_db = AsyncMock()
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = mock_result

    def _add(obj):
        obj.id, obj.created_at, obj.updated_at = 7, NOW, NOW

    mock_db.add = MagicMock(side_effect=_add)

    result = await create_category(
        CategoryCreate(title="Travel", slug="travel", sort_order=3), make_admin(), mock_db
    )

    assert result.id == 7
    assert result.slug == "travel"
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_list_categories():
    from app.api.categories import list_categories

    mock_db = AsyncMock()

    mock_count_result = MagicMock()
    mock_count_result.scalar_one.return_value = 2

    mock_items_result = MagicMock()
    mock_items_result.scalars.return_value.all.return_value = [
        make_category(1, "electronics"),
        make_category(2, "fashion"),
    ]
    mock_db.execute.side_effect = [mock_count_result, mock_items_result]

    result = await list_categories(
        page=1, size=20, search=None, is_active=True, sort=None, order="asc",
        current_admin=make_admin("viewer"), db=mock_db,
    )

    assert result.total == 2
    assert [c.slug for c in result.items] == ["electronics", "fashion"]


@pytest.mark.asyncio
async def test_get_category_not_found():
    """Getting non-existent category should return 404."""
    from app.api.categories import get_category

    mock_db = AsyncMock()
    mock_db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await get_category(category_id=999, current_admin=make_admin(), db=mock_db)

    assert exc_info.value.status_code == 404


def test_update_category_rejects_null_required_fields():
    for field in ("title", "slug", "sort_order", "is_active"):
        with pytest.raises(ValidationError):
            CategoryUpdate.model_validate({field: None})

    assert CategoryUpdate.model_validate({"title": "Travel"}).title == "Travel"


@pytest.mark.asyncio
async def test_update_category_slug_conflict():
    from app.api.categories import update_category

    mock_db = AsyncMock()
    mock_db.get.return_value = make_category(1, "electronics")

    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = make_category(2, "fashion")
    mock_db.execute.return_value = mock_result

    with pytest.raises(HTTPException) as exc_info:
        await update_category(1, CategoryUpdate(slug="fashion"), make_admin(), mock_db)

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_delete_category_removes_image_after_commit():
    """Deleting category should drop the row first, then its stored image."""
    from app.api.categories import delete_category

    category = make_category(image_url="https://proj.supabase.co/storage/v1/object/sign/store-assets/category-images/electronics_category_img.png?token=x")
    mock_db = AsyncMock()
    mock_db.get.return_value = category
    storage = AsyncMock()

    await delete_category(
        category_id=1, current_admin=make_admin("admin"), db=mock_db, storage=storage
    )

    mock_db.delete.assert_awaited_once_with(category)
    mock_db.commit.assert_awaited_once()
    storage.remove_urls.assert_awaited_once_with([category.image_url])


@pytest.mark.asyncio
async def test_upload_category_image():
    from app.api.categories import upload_category_image

    category = make_category()
    mock_db = AsyncMock()
    mock_db.get.return_value = category
    storage = AsyncMock()
    storage.upload_and_sign.return_value = "https://signed.test/electronics_category_img.png"

    result = await upload_category_image(
        1, upload(), current_admin=make_admin(), db=mock_db, storage=storage
    )

    storage.upload_and_sign.assert_awaited_once()
    args = storage.upload_and_sign.await_args.args
    assert args[0] == CATEGORY_IMAGES
    assert args[1] == "electronics"
    assert result.image_url == "https://signed.test/electronics_category_img.png"
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_upload_category_image_rejects_type():
    from app.api.categories import upload_category_image

    mock_db = AsyncMock()
    mock_db.get.return_value = make_category()
    storage = AsyncMock()

    with pytest.raises(HTTPException) as exc_info:
        await upload_category_image(
            1, upload(filename="doc.pdf", content_type="application/pdf"),
            current_admin=make_admin(), db=mock_db, storage=storage,
        )

    assert exc_info.value.status_code == 400
    storage.upload_and_sign.assert_not_awaited()
