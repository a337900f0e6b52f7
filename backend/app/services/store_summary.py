"""Store summary: the cached "best deal" fields and offer count on a store.

A store mirrors its best deal in ``discount``, ``discount_unit``,
``discount_type`` and ``discount_id`` and counts its deals in
``total_offers``. Ranking:

* ``discount`` and ``amountOff`` deals compete on their numeric discount;
  the highest wins and the first one seen wins a tie.
* Otherwise the first ``bogo`` / ``freeShipping`` deal is featured with
  ``discount=0`` and ``discount_unit=""``.
* A store without deals has all four fields cleared to ``None``.

``recompute_store_summary`` runs inside the caller's transaction with the
store row locked, so the deal write that triggered it and the summary it
produces commit (or roll back) together.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.country import Country
from app.models.deal import Deal, DealType, RANKED_TYPES, FALLBACK_TYPES
from app.models.store import Store

logger = logging.getLogger(__name__)

PERCENT_UNIT = "%"
DOLLAR_UNIT = "$"


@dataclass(frozen=True)
class StoreSummary:
    discount: Decimal | None = None
    discount_unit: str | None = None
    discount_type: DealType | None = None
    discount_id: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.discount_id is None

    def apply_to(self, store: Store) -> None:
        store.discount = self.discount
        store.discount_unit = self.discount_unit
        store.discount_type = self.discount_type
        store.discount_id = self.discount_id


def _deal_type(deal: Any) -> DealType | None:
    try:
        return DealType(deal.type)
    except ValueError:
        return None


def _discount_value(deal: Any) -> Decimal:
    if not deal.discount:
        return Decimal("0")
    return Decimal(str(deal.discount))


def pick_best_deal(deals: Iterable[Any]) -> Any | None:
    """Return the deal a store should feature, or None for no deals."""
    best_ranked = None
    best_value = Decimal("0")
    first_fallback = None

    for deal in deals:
        deal_type = _deal_type(deal)
        if deal_type in RANKED_TYPES:
            value = _discount_value(deal)
            # Strict comparison keeps the first deal on ties
            if best_ranked is None or value > best_value:
                best_ranked, best_value = deal, value
        elif deal_type in FALLBACK_TYPES and first_fallback is None:
            first_fallback = deal

    return best_ranked if best_ranked is not None else first_fallback


def discount_unit_for(deal: Any, currency_code: str | None = None) -> str | None:
    """Unit shown next to a ranked deal's discount."""
    deal_type = _deal_type(deal)
    if deal_type == DealType.DISCOUNT:
        return PERCENT_UNIT
    unit = deal.discount_unit
    if unit == DOLLAR_UNIT and currency_code:
        return currency_code
    return unit


def derive_store_summary(deals: Sequence[Any], currency_code: str | None = None) -> StoreSummary:
    """Compute the cached summary for a store from all of its deals.

    ``currency_code`` replaces a literal ``$`` unit on an ``amountOff``
    winner (e.g. ``"CAD"``); pass None to keep the raw unit.
    """
    best = pick_best_deal(deals)
    if best is None:
        return StoreSummary()

    deal_type = _deal_type(best)
    if deal_type in FALLBACK_TYPES:
        return StoreSummary(
            discount=Decimal("0"),
            discount_unit="",
            discount_type=deal_type,
            discount_id=best.id,
        )

    return StoreSummary(
        discount=_discount_value(best),
        discount_unit=discount_unit_for(best, currency_code),
        discount_type=deal_type,
        discount_id=best.id,
    )


def resolve_currency_code(country: Country | None, locale: str | None = None) -> str | None:
    """ISO currency code of a country for the configured locale."""
    if country is None:
        return None
    return country.localized("currency_code", locale or settings.CURRENCY_LOCALE)


async def lock_stores(db: AsyncSession, store_ids: Iterable[int]) -> dict[int, Store]:
    """Lock store rows for the rest of the transaction.

    Rows are locked in ascending id order so two transactions that touch the
    same pair of stores cannot deadlock.
    """
    ids = sorted({store_id for store_id in store_ids if store_id is not None})
    if not ids:
        return {}
    result = await db.execute(
        select(Store).where(Store.id.in_(ids)).order_by(Store.id).with_for_update()
    )
    return {store.id: store for store in result.scalars().all()}


async def _currency_code_for(db: AsyncSession, best: Any, store: Store) -> str | None:
    if best is None or _deal_type(best) != DealType.AMOUNT_OFF or best.discount_unit != DOLLAR_UNIT:
        return None
    country_id = best.country_id or store.country_id
    if country_id is None:
        return None
    country = await db.get(Country, country_id)
    return resolve_currency_code(country)


async def recompute_store_summary(
    db: AsyncSession,
    store_id: int,
    store: Store | None = None,
) -> StoreSummary:
    """Re-derive and write back a store's summary and offer count.

    Pass ``store`` when the caller already holds the row lock from
    ``lock_stores``; otherwise the row is locked here. Changes are flushed,
    committing is left to the caller.
    """
    if store is None:
        locked = await lock_stores(db, [store_id])
        store = locked.get(store_id)
    if store is None:
        raise NotFoundError(f"Store {store_id} not found")

    result = await db.execute(
        select(Deal).where(Deal.store_id == store_id).order_by(Deal.created_at, Deal.id)
    )
    deals = result.scalars().all()

    best = pick_best_deal(deals)
    currency_code = await _currency_code_for(db, best, store)
    summary = derive_store_summary(deals, currency_code)

    summary.apply_to(store)
    store.total_offers = len(deals)
    await db.flush()

    logger.info(
        "Store %s summary: deal=%s type=%s discount=%s%s offers=%d",
        store_id,
        summary.discount_id,
        summary.discount_type.value if summary.discount_type else None,
        summary.discount,
        summary.discount_unit or "",
        store.total_offers,
    )
    return summary
