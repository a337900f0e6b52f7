"""SQLAlchemy models for the deals admin."""

from app.models.country import Country
from app.models.deal import Deal, DealType
from app.models.store import Store
from app.models.category import Category, DealCategory, StoreCategory

__all__ = [
    "Country",
    "Deal",
    "DealType",
    "Store",
    "Category",
    "DealCategory",
    "StoreCategory",
]
