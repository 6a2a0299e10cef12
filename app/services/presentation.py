"""
Conversion of stored listing rows into what the dashboard shows.

Rows leave the database with lowercase scraper column names; the dashboard
expects camelCase. Every read path goes through map_database_listing_to_frontend
so the rename happens in one place. Masking of unrevealed listings happens
here too, before anything is serialized.
"""
import json
import logging
from datetime import date, datetime
from typing import Any, Collection, Dict, List, Mapping, Optional

from app.models import Listing
from app.schemas.filters import ListingFilters
from app.services.validation import validate_display_listing

logger = logging.getLogger(__name__)

# Database column -> dashboard field
FRONTEND_FIELD_MAP = {
    "id": "id",
    "zpid": "zpid",
    "imgsrc": "imgSrc",
    "detailurl": "detailUrl",
    "addressstreet": "addressStreet",
    "addresscity": "addressCity",
    "addressstate": "addressState",
    "addresszipcode": "addressZipcode",
    "price": "price",
    "unformattedprice": "unformattedPrice",
    "beds": "beds",
    "baths": "baths",
    "area": "area",
    "statustext": "statusText",
    "lastseenat": "lastSeenAt",
    "lastcity": "lastCity",
    "lastrunid": "runId",
    "isjustlisted": "isJustListed",
    "status": "status",
    "created_at": "createdAt",
}

JSON_COLUMNS = ("latlong", "hdpdata", "carouselphotos")

ADDRESS_MASK = "***** ******* **"
PRICE_MASK = "*****"
ROOMS_MASK = "***"
AREA_MASK = "****"
PROPERTY_TYPE_MASK = "****"
NOT_AVAILABLE = "N/A"

SORT_FIELDS = ("date", "price", "beds", "baths", "area")
SORT_ORDERS = ("asc", "desc")


def listing_to_dict(listing: Any) -> Dict[str, Any]:
    """Plain dict of column values for an ORM listing (dicts pass through)"""
    if isinstance(listing, Mapping):
        return dict(listing)
    return {c.name: getattr(listing, c.name) for c in Listing.__table__.columns}


def parse_json_field(value: Any) -> Any:
    """Decodes JSON stored as text by the legacy schema; objects pass through"""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            logger.warning(f"Could not decode JSON field: {value[:100]!r}")
            return None
    return value


def map_database_listing_to_frontend(db_listing: Any) -> Optional[Dict[str, Any]]:
    if db_listing is None:
        return None
    row = listing_to_dict(db_listing)

    view = {frontend: row.get(column) for column, frontend in FRONTEND_FIELD_MAP.items()}
    view["address"] = row.get("address") or row.get("addressstreet")
    for column in JSON_COLUMNS:
        view[column] = parse_json_field(row.get(column))
    return view


def map_database_listings_to_frontend(db_listings: Any) -> List[Dict[str, Any]]:
    if not isinstance(db_listings, (list, tuple)):
        return []
    views = (map_database_listing_to_frontend(row) for row in db_listings)
    return [view for view in views if view]


def format_number(value: Any) -> str:
    """Thousands-separated number, whole values without decimals"""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{float(value):,.3f}".rstrip("0").rstrip(".")


def format_date(value: Any) -> str:
    if not value:
        return NOT_AVAILABLE
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning(f"Invalid date string: {value}")
            return NOT_AVAILABLE
    if isinstance(value, (datetime, date)):
        return f"{value.month}/{value.day}/{value.year}"
    logger.warning(f"Invalid date value: {value!r}")
    return NOT_AVAILABLE


def format_price(price: Any, is_revealed: bool) -> str:
    if not is_revealed:
        return PRICE_MASK
    if not price:
        return NOT_AVAILABLE
    return f"${format_number(price)}"


def format_area(area: Any, is_revealed: bool) -> str:
    if not is_revealed:
        return AREA_MASK
    if not area:
        return NOT_AVAILABLE
    return f"{format_number(area)} sq ft"


def get_display_value(value: Any, is_revealed: bool, placeholder: str = PRICE_MASK) -> Any:
    if is_revealed:
        return value if value is not None else NOT_AVAILABLE
    return placeholder


def format_listing_for_display(listing: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Adds display strings; returns None for listings too broken to show"""
    if not listing:
        return None

    validation = validate_display_listing(listing)
    if not validation.is_valid:
        logger.warning(f"Invalid listing data for {listing.get('zpid')}: {validation.errors}")
        return None

    beds, baths = listing.get("beds"), listing.get("baths")
    return {
        **listing,
        "formattedPrice": format_price(listing.get("unformattedPrice"), True),
        "formattedArea": format_area(listing.get("area"), True),
        "formattedBeds": str(beds) if beds is not None else NOT_AVAILABLE,
        "formattedBaths": str(baths) if baths is not None else NOT_AVAILABLE,
        "formattedDate": format_date(listing.get("lastSeenAt")),
        "fullAddress": ", ".join(
            str(part) for part in (
                listing.get("addressStreet"),
                listing.get("addressCity"),
                listing.get("addressState"),
                listing.get("addressZipcode"),
            ) if part
        ),
        "shortAddress": listing.get("addressStreet") or "Address not available",
    }


def _profile_unlimited(profile: Any) -> bool:
    if profile is None:
        return False
    if isinstance(profile, Mapping):
        return bool(profile.get("unlimited"))
    return bool(getattr(profile, "unlimited", False))


def is_listing_revealed(listing_id: Any, revealed_listings: Optional[Collection], profile: Any = None) -> bool:
    if _profile_unlimited(profile):
        return True
    if not revealed_listings:
        return False
    return listing_id in revealed_listings


def mask_listing(view: Mapping[str, Any], is_revealed: bool) -> Dict[str, Any]:
    """
    Copy of the view with sensitive fields replaced by placeholders.

    Payloads that would give the address away (detail URL, coordinates,
    raw source data) are dropped rather than masked.
    """
    masked = dict(view)
    masked["isRevealed"] = is_revealed
    if is_revealed:
        return masked

    masked["address"] = ADDRESS_MASK
    masked["addressStreet"] = ADDRESS_MASK
    masked["price"] = PRICE_MASK
    masked["unformattedPrice"] = PRICE_MASK
    masked["beds"] = ROOMS_MASK
    masked["baths"] = ROOMS_MASK
    masked["area"] = AREA_MASK
    masked["statusText"] = PROPERTY_TYPE_MASK
    masked["detailUrl"] = None
    for column in JSON_COLUMNS:
        masked[column] = None

    # Display strings added by format_listing_for_display
    formatted_masks = {
        "formattedPrice": PRICE_MASK,
        "formattedArea": AREA_MASK,
        "formattedBeds": ROOMS_MASK,
        "formattedBaths": ROOMS_MASK,
        "fullAddress": ADDRESS_MASK,
        "shortAddress": ADDRESS_MASK,
    }
    for key, placeholder in formatted_masks.items():
        if key in masked:
            masked[key] = placeholder
    return masked


def _positive(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def create_filter_object(filters: Mapping[str, Any]) -> ListingFilters:
    """Drops empty, zero and 'all' values from raw dashboard filters"""
    clean: Dict[str, Any] = {}

    city = filters.get("city_name")
    if city:
        clean["city_name"] = list(city) if isinstance(city, (list, tuple)) else [city]

    term = filters.get("searchTerm")
    if isinstance(term, str) and term.strip():
        clean["searchTerm"] = term.strip()

    for key in ("minPrice", "maxPrice", "beds", "baths", "minSqft", "maxSqft"):
        value = _positive(filters.get(key))
        if value is not None:
            clean[key] = value

    property_type = filters.get("propertyType")
    if property_type and property_type != "all":
        clean["propertyType"] = property_type

    date_range = filters.get("dateRange")
    if date_range and date_range != "all":
        clean["dateRange"] = date_range

    return ListingFilters.model_validate(clean)


def create_sort_object(sort_by: Optional[str], sort_order: Optional[str]) -> Dict[str, str]:
    return {
        "sortBy": sort_by if sort_by in SORT_FIELDS else "date",
        "sortOrder": sort_order if sort_order in SORT_ORDERS else "desc",
    }
