from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ListingView(BaseModel):
    """Listing as the dashboard receives it (camelCase field names)"""
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    zpid: Optional[str] = None
    imgSrc: Optional[str] = None
    detailUrl: Optional[str] = None
    address: Optional[str] = None
    addressStreet: Optional[str] = None
    addressCity: Optional[str] = None
    addressState: Optional[str] = None
    addressZipcode: Optional[str] = None
    price: Optional[str] = None
    unformattedPrice: Optional[Any] = None
    beds: Optional[Any] = None
    baths: Optional[Any] = None
    area: Optional[Any] = None
    statusText: Optional[str] = None
    lastSeenAt: Optional[datetime] = None
    lastCity: Optional[str] = None
    isJustListed: Optional[bool] = None
    isRevealed: bool = False


class ListingPageResponse(BaseModel):
    """Page of listings plus pagination counters"""
    items: List[ListingView]
    total: int
    page: int
    per_page: int
    pages: int
    has_next_page: bool
    has_prev_page: bool


class ListingDetailResponse(ListingView):
    latlong: Optional[Dict[str, Any]] = None
    hdpdata: Optional[Dict[str, Any]] = None
    carouselphotos: Optional[List[Any]] = None


class IngestRequest(BaseModel):
    """Page of raw search results pushed by the scraper"""
    items: List[Dict[str, Any]]
    area_name: str
    page: int = Field(..., ge=1)
    run_id: str
    region_name: Optional[str] = None
    status: str = Field(default="just_listed", pattern="^(just_listed|sold)$")

    class Config:
        json_schema_extra = {
            "example": {
                "items": [{"zpid": "123", "price": "$450,000", "unformattedPrice": 450000}],
                "area_name": "Windsor",
                "page": 2,
                "run_id": "run-2024-06-01",
                "region_name": "Ontario",
                "status": "just_listed",
            }
        }


class IngestResult(BaseModel):
    """Outcome of one ingest call"""
    received: int = Field(description="Items in the request")
    mapped: int = Field(description="Items that produced a row")
    unique: int = Field(description="Rows left after zpid de-duplication")
    upserted: int = Field(description="Rows written")
    failed: int = Field(description="Rows in batches that exhausted retries")
    invalid: int = Field(description="Rows stored despite failing validation")
    batches: int
    failed_zpids: List[str] = []
