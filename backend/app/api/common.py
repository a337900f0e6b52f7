"""Helpers shared by the resource routers: search, sorting, paging, uploads."""

from contextlib import asynccontextmanager

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import DealsAdminError

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
CHUNK_SIZE = 64 * 1024

# Max upload size in bytes
MAX_UPLOAD_BYTES = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024


def escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_search(query: Select, search: str | None, *columns) -> Select:
    if not search:
        return query
    like = f"%{escape_like(search)}%"
    return query.where(or_(*(column.ilike(like) for column in columns)))


def apply_sort(query: Select, sortable: dict, sort: str | None, order: str, default) -> Select:
    column = sortable.get(sort) if sort else None
    if column is None:
        return query.order_by(default)
    return query.order_by(column.desc() if order == "desc" else column.asc())


async def paginate(db: AsyncSession, query: Select, page: int, size: int) -> tuple[int, list]:
    """Return ``(total, items)`` for one page of ``query``."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    result = await db.execute(query.offset((page - 1) * size).limit(size))
    return total, list(result.scalars().all())


@asynccontextmanager
async def transaction(db: AsyncSession):
    """Commit the block's writes once, or roll all of them back.

    Service errors become their HTTP status, unique/foreign-key violations
    become 409.
    """
    try:
        yield
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise
    except DealsAdminError as exc:
        await db.rollback()
        raise exc.to_http()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Conflicts with existing data: {exc.orig}",
        )


async def read_image_upload(file: UploadFile) -> bytes:
    """Validate type/size of an uploaded image and return its bytes."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type not allowed. Use: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
        )

    # Check Content-Length header first (if available) to reject early
    if file.size and file.size > MAX_UPLOAD_BYTES:
        raise HTTPException(400, f"File too large. Max {settings.MAX_UPLOAD_SIZE_MB}MB")

    # Read in chunks to limit memory usage
    chunks = []
    total_size = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_UPLOAD_BYTES:
            raise HTTPException(400, f"File too large. Max {settings.MAX_UPLOAD_SIZE_MB}MB")
        chunks.append(chunk)
    content = b"".join(chunks)
    if not content:
        raise HTTPException(400, "Uploaded file is empty")
    return content
