"""Keep the deal/store category join tables in line with a desired id set."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.category import Category, DealCategory, StoreCategory

logger = logging.getLogger(__name__)


@dataclass
class JoinSetChange:
    added: list[int] = field(default_factory=list)
    removed: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def diff_ids(initial: Iterable[int], desired: Iterable[int]) -> tuple[list[int], list[int]]:
    """Return ``(to_add, to_remove)`` turning ``initial`` into ``desired``."""
    initial_set, desired_set = set(initial), set(desired)
    return sorted(desired_set - initial_set), sorted(initial_set - desired_set)


async def get_category_ids(db: AsyncSession, join_model, owner_column: str, owner_id: int) -> list[int]:
    owner = getattr(join_model, owner_column)
    result = await db.execute(
        select(join_model.category_id).where(owner == owner_id).order_by(join_model.category_id)
    )
    return list(result.scalars().all())


async def _ensure_categories_exist(db: AsyncSession, category_ids: list[int]) -> None:
    if not category_ids:
        return
    result = await db.execute(select(Category.id).where(Category.id.in_(category_ids)))
    missing = set(category_ids) - set(result.scalars().all())
    if missing:
        raise NotFoundError(f"Categories not found: {sorted(missing)}")


async def sync_categories(
    db: AsyncSession,
    join_model,
    owner_column: str,
    owner_id: int,
    desired: Iterable[int],
) -> JoinSetChange:
    """Insert/delete join rows so ``owner_id`` links exactly ``desired``.

    Issues nothing when the persisted set already matches.
    """
    initial = await get_category_ids(db, join_model, owner_column, owner_id)
    to_add, to_remove = diff_ids(initial, desired)
    change = JoinSetChange(added=to_add, removed=to_remove)
    if not change.changed:
        return change

    await _ensure_categories_exist(db, to_add)

    owner = getattr(join_model, owner_column)
    if to_remove:
        await db.execute(
            delete(join_model).where(owner == owner_id, join_model.category_id.in_(to_remove))
        )
    if to_add:
        await db.execute(
            insert(join_model),
            [{owner_column: owner_id, "category_id": category_id} for category_id in to_add],
        )

    logger.debug(
        "%s %s=%s categories +%s -%s",
        join_model.__tablename__, owner_column, owner_id, to_add, to_remove,
    )
    return change


async def sync_deal_categories(db: AsyncSession, deal_id: int, category_ids: Iterable[int]) -> JoinSetChange:
    return await sync_categories(db, DealCategory, "deal_id", deal_id, category_ids)


async def sync_store_categories(db: AsyncSession, store_id: int, category_ids: Iterable[int]) -> JoinSetChange:
    return await sync_categories(db, StoreCategory, "store_id", store_id, category_ids)
