from app.schemas.country import CountryResponse, CountryListResponse
from app.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryListResponse,
)
from app.schemas.store import (
    StoreCreate, StoreUpdate, StoreResponse, StoreListResponse, StoreSummaryResponse,
)
from app.schemas.deal import (
    DealCreate, DealUpdate, DealResponse, DealListResponse, DealMutationResponse,
)

__all__ = [
    "CountryResponse", "CountryListResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse", "CategoryListResponse",
    "StoreCreate", "StoreUpdate", "StoreResponse", "StoreListResponse", "StoreSummaryResponse",
    "DealCreate", "DealUpdate", "DealResponse", "DealListResponse", "DealMutationResponse",
]
