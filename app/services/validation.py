"""
Advisory checks over listings and filter objects.

Ingestion only drops rows without a zpid; these checks feed logging there.
The display path is strict and hides any listing that fails them.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from app.schemas.filters import CustomDateRange, ListingFilters

logger = logging.getLogger(__name__)

MAX_ROOMS = 20
MAX_AREA = 100_000
MAX_PRICE = 100_000_000


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid


def _out_of_range(value: Any, upper: float) -> bool:
    """True when a present value is non-numeric or outside [0, upper]"""
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    try:
        number = float(value)
    except (TypeError, ValueError):
        return True
    if math.isnan(number):
        return True
    return number < 0 or number > upper


def _range_errors(
    beds: Any, baths: Any, area: Any, price: Any
) -> List[str]:
    errors = []
    if _out_of_range(beds, MAX_ROOMS):
        errors.append(f"Invalid beds value: {beds}")
    if _out_of_range(baths, MAX_ROOMS):
        errors.append(f"Invalid baths value: {baths}")
    if _out_of_range(area, MAX_AREA):
        errors.append(f"Invalid area value: {area}")
    if _out_of_range(price, MAX_PRICE):
        errors.append(f"Invalid price value: {price}")
    return errors


def validate_listing_data(row: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Checks a canonical (lowercase) listing row, collecting every problem"""
    if not row:
        return ValidationResult(False, ["Listing is empty"])

    errors = []
    if not row.get("zpid"):
        errors.append("Missing zpid")
    if not row.get("addressstreet") and not row.get("address"):
        errors.append("Missing address information")
    if not row.get("addresscity"):
        errors.append("Missing city information")
    if not row.get("addressstate"):
        errors.append("Missing state information")
    errors.extend(_range_errors(
        row.get("beds"), row.get("baths"), row.get("area"), row.get("unformattedprice")
    ))

    if errors:
        logger.warning(f"Data validation errors for listing {row.get('zpid')}: {errors}")
    return ValidationResult(not errors, errors)


def validate_display_listing(view: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Same checks over the camelCase view model the dashboard renders"""
    if not view:
        return ValidationResult(False, ["Listing is null or undefined"])

    errors = []
    if not view.get("id"):
        errors.append("Missing listing ID")
    if not view.get("zpid"):
        errors.append("Missing ZPID")
    if not view.get("addressStreet") and not view.get("address"):
        errors.append("Missing address information")
    if not view.get("addressCity"):
        errors.append("Missing city information")
    if not view.get("addressState"):
        errors.append("Missing state information")
    errors.extend(_range_errors(
        view.get("beds"), view.get("baths"), view.get("area"), view.get("unformattedPrice")
    ))
    return ValidationResult(not errors, errors)


def validate_filters(filters: Union[ListingFilters, Mapping[str, Any]]) -> ValidationResult:
    """Internal consistency of a filter object, checked before it is applied"""
    if not isinstance(filters, ListingFilters):
        filters = ListingFilters.model_validate(dict(filters))

    errors = []
    min_price, max_price = filters.min_price, filters.max_price
    min_sqft, max_sqft = filters.min_sqft, filters.max_sqft

    if min_price is not None and max_price is not None and min_price > max_price:
        errors.append("Minimum price cannot be greater than maximum price")
    if min_sqft is not None and max_sqft is not None and min_sqft > max_sqft:
        errors.append("Minimum square footage cannot be greater than maximum square footage")
    if min_price is not None and min_price < 0:
        errors.append("Minimum price cannot be negative")
    if max_price is not None and max_price < 0:
        errors.append("Maximum price cannot be negative")
    if max_price is not None and max_price > MAX_PRICE:
        errors.append("Maximum price seems unreasonably high")
    if min_sqft is not None and min_sqft < 0:
        errors.append("Minimum square footage cannot be negative")
    if max_sqft is not None and max_sqft > MAX_AREA:
        errors.append("Maximum square footage seems unreasonably high")
    if filters.beds is not None and (filters.beds < 0 or filters.beds > MAX_ROOMS):
        errors.append("Invalid number of bedrooms")
    if filters.baths is not None and (filters.baths < 0 or filters.baths > MAX_ROOMS):
        errors.append("Invalid number of bathrooms")

    date_range = filters.date_range
    if isinstance(date_range, CustomDateRange):
        if date_range.start_date > date_range.end_date:
            errors.append("Start date cannot be after end date")
    elif date_range is not None and date_range != "all":
        if not date_range.isdigit() or int(date_range) <= 0:
            errors.append(f"Invalid date range: {date_range}")

    return ValidationResult(not errors, errors)
