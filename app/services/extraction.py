"""
Mapping of raw scraped search-result items onto the canonical listing row.

Source payloads come in two shapes: a flat one (``addressStreet``, ``beds``...)
and an older one nesting the same values under ``hdpData.homeInfo``. Every
column is described by an ExtractionRule listing the paths to try in order.
"""
import json
import math
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from app.config import get_settings

logger = logging.getLogger(__name__)

KeyPath = Tuple[str, ...]


@dataclass(frozen=True)
class ExtractionRule:
    """Column name plus the ordered source paths it may be read from"""
    column: str
    paths: Tuple[KeyPath, ...]


def get_path(item: Any, path: KeyPath) -> Any:
    """Walks nested dicts, returning None as soon as a key is missing"""
    current = item
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def extract(item: Dict[str, Any], rule: ExtractionRule) -> Any:
    """First non-None value along the rule's paths"""
    for path in rule.paths:
        value = get_path(item, path)
        if value is not None:
            return value
    return None


class NumericField(str, Enum):
    ABSENT = "absent"
    VALID = "valid"
    INVALID = "invalid"


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def classify_numeric(value: Any) -> NumericField:
    """Tells a missing numeric field apart from one the source got wrong"""
    if value is None:
        return NumericField.ABSENT
    number = _to_number(value)
    if number is None or not math.isfinite(number) or number <= 0:
        return NumericField.INVALID
    return NumericField.VALID


def validate_numeric(value: Any) -> Optional[int]:
    """Positive finite number floored to int, anything else becomes None"""
    if classify_numeric(value) is not NumericField.VALID:
        return None
    return int(math.floor(_to_number(value)))


def _home_info(key: str) -> KeyPath:
    return ("hdpData", "homeInfo", key)


ID_RULE = ExtractionRule("zpid", (("zpid",), _home_info("zpid")))

ADDRESS_RULES = [
    ExtractionRule("addressstreet", (("addressStreet",), _home_info("streetAddress"))),
    ExtractionRule("addresscity", (("addressCity",), _home_info("city"))),
    ExtractionRule("addressstate", (("addressState",), _home_info("state"))),
    ExtractionRule("addresszipcode", (("addressZipcode",), _home_info("zipcode"))),
]

NUMERIC_RULES = [
    ExtractionRule("beds", (("beds",), _home_info("bedrooms"))),
    ExtractionRule("baths", (("baths",), _home_info("bathrooms"))),
    ExtractionRule("area", (("area",),)),
]

LATITUDE_RULE = ExtractionRule("latitude", (("latLong", "latitude"), ("lat",), _home_info("latitude")))
LONGITUDE_RULE = ExtractionRule("longitude", (("latLong", "longitude"), ("lng",), _home_info("longitude")))

STATUS_TYPE_RULE = ExtractionRule("statustype", (("statusType",), _home_info("homeStatus")))

# Columns copied verbatim from a single camelCase source key
PASSTHROUGH_FIELDS = {
    "rawhomestatuscd": "rawHomeStatusCd",
    "marketingstatussimplifiedcd": "marketingStatusSimplifiedCd",
    "imgsrc": "imgSrc",
    "hasimage": "hasImage",
    "detailurl": "detailUrl",
    "statustext": "statusText",
    "countrycurrency": "countryCurrency",
    "price": "price",
    "isundisclosedaddress": "isUndisclosedAddress",
    "iszillowowned": "isZillowOwned",
    "issaved": "isSaved",
    "isuserclaimingowner": "isUserClaimingOwner",
    "isuserconfirmedclaim": "isUserConfirmedClaim",
    "shouldshowzestimateasprice": "shouldShowZestimateAsPrice",
    "has3dmodel": "has3dModel",
    "flexfieldtext": "flexFieldText",
    "contenttype": "contentType",
    "pgapt": "pgapt",
    "sgapt": "sgapt",
    "list": "list",
    "info1string": "info1String",
    "brokername": "brokerName",
    "openhousedescription": "openHouseDescription",
    "buildername": "builderName",
    "hasvideo": "hasVideo",
    "ispropertyresultcdp": "isPropertyResultCDP",
    "lotareastring": "lotAreaString",
    "providerlistingid": "providerListingId",
    "streetviewmetadataurl": "streetViewMetadataURL",
    "streetviewurl": "streetViewURL",
    "openhousestartdate": "openHouseStartDate",
    "openhouseenddate": "openHouseEndDate",
    "availability_date": "availabilityDate",
}

PASSTHROUGH_RULES = [
    ExtractionRule(column, ((source,),)) for column, source in PASSTHROUGH_FIELDS.items()
]

# Nested payloads kept whole; decoded again by the presentation layer
JSON_FIELDS = {
    "hdpdata": "hdpData",
    "carouselphotos": "carouselPhotos",
    "carousel_photos_composable": "carouselPhotosComposable",
}


def encode_json_field(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value)


def _unformatted_price(item: Dict[str, Any]) -> Optional[float]:
    value = item.get("unformattedPrice")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def map_item_to_row(
    item: Dict[str, Any],
    area_name: str,
    page: Any,
    run_id: Optional[str],
    region_name: Optional[str] = None,
    status: Optional[str] = None,
    encode_json: Optional[bool] = None,
) -> Optional[Dict[str, Any]]:
    """
    Builds the canonical listing row for one scraped item.

    Returns None when the item carries no zpid. Never raises for malformed
    input: bad numeric values are nulled and logged.
    """
    settings = get_settings()
    if encode_json is None:
        encode_json = settings.json_columns_as_text

    if not isinstance(item, dict):
        logger.warning(f"Skipping non-object item in {area_name} (page {page}): {item!r}")
        return None

    zpid = extract(item, ID_RULE)
    if zpid in (None, "", 0):
        logger.warning(f"Skipping listing without zpid in {area_name} (page {page}): {json.dumps(item, default=str)[:500]}")
        return None

    lastpage = page if isinstance(page, int) and not isinstance(page, bool) and page > 0 else None

    row: Dict[str, Any] = {
        "zpid": str(zpid),
        "lastrunid": run_id,
        "lastseenat": datetime.now(timezone.utc),
        "lastcity": area_name,
        "lastpage": lastpage,
        "isjustlisted": lastpage is not None and lastpage <= settings.just_listed_max_page,
        "city": area_name,
        "region": region_name,
    }
    if status:
        row["status"] = status

    for rule in PASSTHROUGH_RULES:
        row[rule.column] = extract(item, rule)

    for rule in ADDRESS_RULES:
        row[rule.column] = extract(item, rule)
    row["address"] = item.get("address") if item.get("address") is not None else row["addressstreet"]
    row["statustype"] = extract(item, STATUS_TYPE_RULE)

    row["unformattedprice"] = _unformatted_price(item)

    for rule in NUMERIC_RULES:
        raw = extract(item, rule)
        if classify_numeric(raw) is NumericField.INVALID:
            logger.debug(f"Listing {zpid}: discarding invalid {rule.column} value {raw!r}")
        row[rule.column] = validate_numeric(raw)

    latlong = {
        "latitude": extract(item, LATITUDE_RULE),
        "longitude": extract(item, LONGITUDE_RULE),
    }
    row["latlong"] = encode_json_field(latlong) if encode_json else latlong

    for column, source in JSON_FIELDS.items():
        value = item.get(source) or None
        row[column] = encode_json_field(value) if encode_json else value

    return row


def map_items_to_rows(
    items: List[Dict[str, Any]],
    area_name: str,
    page: Any,
    run_id: Optional[str],
    region_name: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Maps a page of items, dropping the ones without an id"""
    rows = []
    for item in items:
        row = map_item_to_row(item, area_name, page, run_id, region_name, status=status)
        if row is not None:
            rows.append(row)
    skipped = len(items) - len(rows)
    if skipped:
        logger.info(f"Mapped {len(rows)} of {len(items)} items for {area_name}, {skipped} skipped")
    return rows
