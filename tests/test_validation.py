"""Tests for listing and filter validation."""

from app.services.validation import validate_display_listing, validate_filters, validate_listing_data


def _row(**overrides):
    row = {
        "zpid": "1",
        "addressstreet": "12 Oak St",
        "addresscity": "Windsor",
        "addressstate": "ON",
        "beds": 3,
        "baths": 2,
        "area": 1500,
        "unformattedprice": 450000,
    }
    row.update(overrides)
    return row


class TestValidateListingData:

    def test_valid_row(self):
        assert validate_listing_data(_row()).is_valid

    def test_empty_row(self):
        result = validate_listing_data({})
        assert not result.is_valid
        assert result.errors == ["Listing is empty"]

    def test_missing_fields_in_order(self):
        result = validate_listing_data({"beds": 3})
        assert result.errors == [
            "Missing zpid",
            "Missing address information",
            "Missing city information",
            "Missing state information",
        ]

    def test_address_falls_back_to_full_address(self):
        assert validate_listing_data(_row(addressstreet=None, address="12 Oak St, Windsor")).is_valid

    def test_range_errors(self):
        result = validate_listing_data(_row(beds=25, baths=-1, area=200000, unformattedprice=200_000_000))
        assert result.errors == [
            "Invalid beds value: 25",
            "Invalid baths value: -1",
            "Invalid area value: 200000",
            "Invalid price value: 200000000",
        ]

    def test_non_numeric_is_invalid(self):
        result = validate_listing_data(_row(beds="many"))
        assert result.errors == ["Invalid beds value: many"]

    def test_nulls_are_fine(self):
        assert validate_listing_data(_row(beds=None, baths=None, area=None, unformattedprice=None)).is_valid


class TestValidateDisplayListing:

    def test_requires_id_and_zpid(self):
        view = {"addressStreet": "12 Oak St", "addressCity": "Windsor", "addressState": "ON"}
        result = validate_display_listing(view)
        assert result.errors == ["Missing listing ID", "Missing ZPID"]


class TestValidateFilters:

    def test_empty_filters_are_valid(self):
        assert validate_filters({}).is_valid

    def test_inverted_ranges(self):
        result = validate_filters({"minPrice": 500000, "maxPrice": 100000, "minSqft": 3000, "maxSqft": 1000})
        assert "Minimum price cannot be greater than maximum price" in result.errors
        assert "Minimum square footage cannot be greater than maximum square footage" in result.errors

    def test_negative_and_excessive_values(self):
        result = validate_filters({
            "minPrice": -1,
            "maxPrice": 200_000_000,
            "minSqft": -10,
            "maxSqft": 500_000,
            "beds": 30,
            "baths": -1,
        })
        assert result.errors == [
            "Minimum price cannot be negative",
            "Maximum price seems unreasonably high",
            "Minimum square footage cannot be negative",
            "Maximum square footage seems unreasonably high",
            "Invalid number of bedrooms",
            "Invalid number of bathrooms",
        ]

    def test_custom_date_range_order(self):
        result = validate_filters({
            "dateRange": {"type": "custom", "startDate": "2024-06-10", "endDate": "2024-06-01"},
        })
        assert result.errors == ["Start date cannot be after end date"]

    def test_presets(self):
        assert validate_filters({"dateRange": "7"}).is_valid
        assert validate_filters({"dateRange": 30}).is_valid
        assert validate_filters({"dateRange": "all"}).is_valid
        assert validate_filters({"dateRange": "soon"}).errors == ["Invalid date range: soon"]
