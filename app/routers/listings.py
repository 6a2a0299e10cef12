import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.schemas.filters import ListingFilters
from app.schemas.listing import ListingDetailResponse, ListingPageResponse
from app.services.csv_export import export_to_csv, map_listings_for_export
from app.services.errors import ListingQueryError
from app.services.listing_queries import ListingQueryService, paginate
from app.services.presentation import (
    create_filter_object,
    create_sort_object,
    format_listing_for_display,
    is_listing_revealed,
    mask_listing,
)
from app.services.reveals import RevealService
from app.services.validation import validate_filters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/listings", tags=["listings"])


def listing_filters(
    city: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    beds: Optional[float] = None,
    baths: Optional[float] = None,
    property_type: Optional[str] = None,
    min_sqft: Optional[float] = None,
    max_sqft: Optional[float] = None,
    date_range: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ListingFilters:
    """Builds the filter object from query parameters, rejecting inconsistent ones"""
    raw: Dict[str, Any] = {
        "city_name": city,
        "searchTerm": search,
        "minPrice": min_price,
        "maxPrice": max_price,
        "beds": beds,
        "baths": baths,
        "propertyType": property_type,
        "minSqft": min_sqft,
        "maxSqft": max_sqft,
        "dateRange": date_range,
    }
    if start_date or end_date:
        if not (start_date and end_date):
            raise HTTPException(status_code=422, detail=["Custom date range needs both start_date and end_date"])
        raw["dateRange"] = {"type": "custom", "startDate": start_date, "endDate": end_date}

    validation = validate_filters({k: v for k, v in raw.items() if v is not None})
    if not validation.is_valid:
        raise HTTPException(status_code=422, detail=validation.errors)
    return create_filter_object(raw)


def _load_failed(e: ListingQueryError) -> HTTPException:
    return HTTPException(status_code=500, detail={"message": "Failed to load listings", "error": str(e)})


def _present(db: Session, views: List[Dict[str, Any]], user_id: Optional[str]) -> List[Dict[str, Any]]:
    """Drops listings too broken to show and masks the ones the user has not revealed"""
    reveals = RevealService(db)
    profile = reveals.get_profile(user_id)
    revealed = reveals.revealed_ids(user_id, [v["id"] for v in views])

    presented = []
    for view in views:
        formatted = format_listing_for_display(view)
        if formatted is None:
            continue
        presented.append(mask_listing(formatted, is_listing_revealed(view["id"], revealed, profile)))
    return presented


def _page_response(page, items: List[Dict[str, Any]]) -> ListingPageResponse:
    return ListingPageResponse(
        items=items,
        total=page.count,
        page=page.page,
        per_page=page.page_size,
        pages=page.total_pages,
        has_next_page=page.has_next_page,
        has_prev_page=page.has_prev_page,
    )


@router.get("/just-listed", response_model=ListingPageResponse)
def get_just_listed(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    run_id: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    user_id: Optional[str] = None,
    filters: ListingFilters = Depends(listing_filters),
    db: Session = Depends(get_db)
):
    """Just-listed properties of the latest run with data"""
    per_page = min(per_page, get_settings().max_page_size)
    service = ListingQueryService(db)
    try:
        run_id = run_id or service.get_most_recent_run_with_data()
        result = service.fetch_just_listed(
            run_id,
            filters.cities(),
            page=page,
            page_size=per_page,
            filters=filters,
            sort=create_sort_object(sort_by, sort_order),
        )
    except ListingQueryError as e:
        raise _load_failed(e)

    return _page_response(result, _present(db, result.data, user_id))


@router.get("/sold", response_model=ListingPageResponse)
def get_sold(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_run_id: Optional[str] = None,
    prev_run_id: Optional[str] = None,
    user_id: Optional[str] = None,
    filters: ListingFilters = Depends(listing_filters),
    db: Session = Depends(get_db)
):
    """Properties sold since the previous run"""
    per_page = min(per_page, get_settings().max_page_size)
    service = ListingQueryService(db)
    try:
        if not current_run_id:
            current_run_id, window_prev = service.get_run_window()
            prev_run_id = prev_run_id or window_prev
        sold = service.fetch_sold_since_prev(current_run_id, prev_run_id, filters.cities(), filters)
    except ListingQueryError as e:
        raise _load_failed(e)

    result = paginate(sold, page, per_page)
    return _page_response(result, _present(db, result.data, user_id))


@router.get("/cities")
def get_cities(status: str = Query("just_listed", pattern="^(just_listed|sold)$"), db: Session = Depends(get_db)):
    """Cities with listings and how many each has"""
    try:
        counts = ListingQueryService(db).count_by_city(status)
    except ListingQueryError as e:
        raise _load_failed(e)
    return [{"city": city, "count": count} for city, count in counts.items()]


@router.get("/export.csv")
def export_listings(
    kind: str = Query("just_listed", pattern="^(just_listed|sold)$"),
    run_id: Optional[str] = None,
    user_id: Optional[str] = None,
    filters: ListingFilters = Depends(listing_filters),
    db: Session = Depends(get_db)
):
    """CSV of the filtered listings, masked the same way as the dashboard"""
    settings = get_settings()
    service = ListingQueryService(db)
    try:
        if kind == "sold":
            current_run_id, prev_run_id = service.get_run_window()
            views = service.fetch_sold_since_prev(run_id or current_run_id, prev_run_id, filters.cities(), filters)
        else:
            run_id = run_id or service.get_most_recent_run_with_data()
            views = service.fetch_just_listed(
                run_id, filters.cities(), page=1, page_size=settings.export_max_rows, filters=filters
            ).data
    except ListingQueryError as e:
        raise _load_failed(e)

    reveals = RevealService(db)
    revealed = reveals.revealed_ids(user_id, [v["id"] for v in views])
    content = export_to_csv(map_listings_for_export(views, revealed, reveals.get_profile(user_id)))
    logger.info(f"Exported {len(views)} {kind} listings for user {user_id}")

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{kind}_listings.csv"'},
    )


@router.get("/{listing_id}", response_model=ListingDetailResponse)
def get_listing(listing_id: int, user_id: Optional[str] = None, db: Session = Depends(get_db)):
    """Single listing, masked unless revealed"""
    try:
        view = ListingQueryService(db).fetch_listing_by_id(listing_id)
    except ListingQueryError as e:
        raise _load_failed(e)
    formatted = format_listing_for_display(view) if view else None
    if formatted is None:
        raise HTTPException(status_code=404, detail="Listing not found")

    reveals = RevealService(db)
    revealed = reveals.revealed_ids(user_id, [listing_id])
    return mask_listing(formatted, is_listing_revealed(listing_id, revealed, reveals.get_profile(user_id)))
