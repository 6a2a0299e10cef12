import csv
import io
import logging
from typing import Any, Collection, Dict, List, Mapping, Optional

from app.services.presentation import (
    AREA_MASK,
    NOT_AVAILABLE,
    PRICE_MASK,
    PROPERTY_TYPE_MASK,
    ROOMS_MASK,
    format_date,
    format_number,
    is_listing_revealed,
)

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "Address",
    "City",
    "State",
    "Zip Code",
    "Price",
    "Beds",
    "Baths",
    "Sq. Ft.",
    "Property Type",
    "Date Listed",
    "ZPID",
]


def map_listing_for_export(listing: Optional[Mapping[str, Any]], is_revealed: bool = False) -> Dict[str, Any]:
    """One CSV row; sensitive columns are placeholders unless revealed"""
    if not listing:
        return {}

    price = listing.get("unformattedPrice")
    beds, baths = listing.get("beds"), listing.get("baths")
    area = listing.get("area")
    status_text = listing.get("statusText")

    return {
        "Address": listing.get("addressStreet") if is_revealed else PRICE_MASK,
        "City": listing.get("addressCity"),
        "State": listing.get("addressState"),
        "Zip Code": listing.get("addressZipcode"),
        "Price": f"${format_number(price)}" if is_revealed and price else PRICE_MASK,
        "Beds": str(beds) if is_revealed and beds is not None else ROOMS_MASK,
        "Baths": str(baths) if is_revealed and baths is not None else ROOMS_MASK,
        "Sq. Ft.": format_number(area) if is_revealed and area else AREA_MASK,
        "Property Type": status_text if is_revealed and status_text else PROPERTY_TYPE_MASK,
        "Date Listed": format_date(listing.get("lastSeenAt")) if listing.get("lastSeenAt") else NOT_AVAILABLE,
        "ZPID": listing.get("zpid"),
    }


def map_listings_for_export(
    listings: List[Mapping[str, Any]],
    revealed_listings: Optional[Collection] = None,
    profile: Any = None,
) -> List[Dict[str, Any]]:
    if not isinstance(listings, list):
        return []
    revealed_listings = revealed_listings or set()
    return [
        map_listing_for_export(listing, is_listing_revealed(listing.get("id"), revealed_listings, profile))
        for listing in listings
    ]


def export_to_csv(rows: List[Mapping[str, Any]]) -> str:
    """CSV text with a UTF-8 BOM so spreadsheet apps pick the right encoding"""
    if not rows:
        logger.warning("No data to export.")
        return ""

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_HEADERS, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return "\ufeff" + buffer.getvalue()
