from app.schemas.listing import (
    ListingView, ListingPageResponse, ListingDetailResponse, IngestRequest, IngestResult
)
from app.schemas.filters import ListingFilters, CustomDateRange
from app.schemas.reveal import (
    RevealRequest, BulkRevealRequest, RevealResponse, BulkRevealResponse, RevealedListingsResponse
)

__all__ = [
    "ListingView", "ListingPageResponse", "ListingDetailResponse", "IngestRequest", "IngestResult",
    "ListingFilters", "CustomDateRange",
    "RevealRequest", "BulkRevealRequest", "RevealResponse", "BulkRevealResponse", "RevealedListingsResponse",
]
