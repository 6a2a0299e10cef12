"""Tests for view mapping, display formatting and masking."""

import json
from datetime import datetime, timezone

from app.services.presentation import (
    ADDRESS_MASK,
    PRICE_MASK,
    ROOMS_MASK,
    create_filter_object,
    create_sort_object,
    format_date,
    format_listing_for_display,
    get_display_value,
    is_listing_revealed,
    map_database_listing_to_frontend,
    map_database_listings_to_frontend,
    mask_listing,
)


def _row(**overrides):
    row = {
        "id": 7,
        "zpid": "1001",
        "detailurl": "https://www.example.com/homedetails/1001_zpid/",
        "address": "12 Oak St, Windsor, ON",
        "addressstreet": "12 Oak St",
        "addresscity": "Windsor",
        "addressstate": "ON",
        "addresszipcode": "N9A 1A1",
        "price": "$450,000",
        "unformattedprice": 450000.0,
        "beds": 3,
        "baths": 2,
        "area": 1500,
        "statustext": "House for sale",
        "lastseenat": datetime(2024, 6, 3, 15, 0, tzinfo=timezone.utc),
        "lastrunid": "run-1",
        "latlong": {"latitude": 42.3, "longitude": -83.0},
    }
    row.update(overrides)
    return row


class TestMapping:

    def test_renames_columns(self):
        view = map_database_listing_to_frontend(_row())
        assert view["addressStreet"] == "12 Oak St"
        assert view["unformattedPrice"] == 450000.0
        assert view["runId"] == "run-1"
        assert view["detailUrl"].endswith("1001_zpid/")

    def test_decodes_json_text(self):
        view = map_database_listing_to_frontend(_row(latlong=json.dumps({"latitude": 1.5, "longitude": 2.5})))
        assert view["latlong"] == {"latitude": 1.5, "longitude": 2.5}

    def test_undecodable_json_becomes_none(self):
        view = map_database_listing_to_frontend(_row(hdpdata="{not json"))
        assert view["hdpdata"] is None

    def test_null_and_non_list_input(self):
        assert map_database_listing_to_frontend(None) is None
        assert map_database_listings_to_frontend(None) == []
        assert len(map_database_listings_to_frontend([_row(), None])) == 1


class TestDisplay:

    def test_formatted_fields(self):
        formatted = format_listing_for_display(map_database_listing_to_frontend(_row()))
        assert formatted["formattedPrice"] == "$450,000"
        assert formatted["formattedArea"] == "1,500 sq ft"
        assert formatted["formattedBeds"] == "3"
        assert formatted["formattedDate"] == "6/3/2024"
        assert formatted["fullAddress"] == "12 Oak St, Windsor, ON, N9A 1A1"
        assert formatted["shortAddress"] == "12 Oak St"

    def test_invalid_listing_is_hidden(self):
        assert format_listing_for_display(map_database_listing_to_frontend(_row(addresscity=None))) is None

    def test_format_date(self):
        assert format_date("2024-01-05T10:00:00Z") == "1/5/2024"
        assert format_date("yesterday") == "N/A"
        assert format_date(None) == "N/A"


class TestMasking:

    def test_unrevealed_listing_is_masked(self):
        view = format_listing_for_display(map_database_listing_to_frontend(_row()))
        masked = mask_listing(view, is_revealed=False)

        assert masked["isRevealed"] is False
        assert masked["address"] == ADDRESS_MASK
        assert masked["addressStreet"] == "***** ******* **"
        assert masked["price"] == PRICE_MASK
        assert masked["unformattedPrice"] == "*****"
        assert masked["beds"] == ROOMS_MASK
        assert masked["baths"] == ROOMS_MASK
        assert masked["area"] == "****"
        assert masked["formattedPrice"] == PRICE_MASK
        assert masked["fullAddress"] == ADDRESS_MASK
        assert masked["detailUrl"] is None
        assert masked["latlong"] is None
        # City-level fields stay visible
        assert masked["addressCity"] == "Windsor"
        assert masked["zpid"] == "1001"

    def test_revealed_listing_keeps_values(self):
        view = map_database_listing_to_frontend(_row())
        revealed = mask_listing(view, is_revealed=True)
        assert revealed["isRevealed"] is True
        assert revealed["addressStreet"] == "12 Oak St"
        assert revealed["price"] == "$450,000"
        assert revealed["latlong"] == {"latitude": 42.3, "longitude": -83.0}

    def test_masking_does_not_touch_input(self):
        view = map_database_listing_to_frontend(_row())
        mask_listing(view, is_revealed=False)
        assert view["addressStreet"] == "12 Oak St"

    def test_is_listing_revealed(self):
        assert is_listing_revealed(7, {7, 8})
        assert not is_listing_revealed(9, {7, 8})
        assert not is_listing_revealed(7, None)
        assert is_listing_revealed(9, set(), {"unlimited": True})


class TestFilterAndSortObjects:

    def test_drops_empty_values(self):
        filters = create_filter_object({
            "city_name": "Windsor",
            "searchTerm": "  oak ",
            "minPrice": 0,
            "maxPrice": "500000",
            "beds": None,
            "propertyType": "all",
            "dateRange": "all",
        })
        assert filters.city_name == ["Windsor"]
        assert filters.search_term == "oak"
        assert filters.min_price is None
        assert filters.max_price == 500000
        assert filters.property_type is None
        assert filters.date_range is None

    def test_sort_defaults(self):
        assert create_sort_object(None, None) == {"sortBy": "date", "sortOrder": "desc"}
        assert create_sort_object("price", "asc") == {"sortBy": "price", "sortOrder": "asc"}
        assert create_sort_object("zpid", "sideways") == {"sortBy": "date", "sortOrder": "desc"}


class TestDisplayValues:

    def test_get_display_value(self):
        assert get_display_value(3, True) == 3
        assert get_display_value(None, True) == "N/A"
        assert get_display_value(3, False, ROOMS_MASK) == "***"
