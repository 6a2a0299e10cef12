"""Tests for the HTTP API."""

from unittest.mock import patch

from app.services.errors import ListingQueryError
from app.services.listing_queries import ListingQueryService
from tests.conftest import add_listing, add_profile, add_run, days_ago, make_item


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestJustListed:

    def test_masked_for_anonymous_user(self, client, db):
        add_run(db, "run-1")
        add_listing(db, "1", "run-1")

        response = client.get("/api/listings/just-listed", params={"city": "Windsor"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["pages"] == 1
        item = body["items"][0]
        assert item["isRevealed"] is False
        assert item["addressStreet"] == "***** ******* **"
        assert item["price"] == "*****"
        assert item["detailUrl"] is None
        assert item["addressCity"] == "Windsor"

    def test_revealed_for_user(self, client, db):
        add_run(db, "run-1")
        listing = add_listing(db, "1", "run-1")
        add_listing(db, "2", "run-1")
        add_profile(db, credits=5)
        client.post("/api/reveals", json={"user_id": "user-1", "listing_id": listing.id})

        response = client.get("/api/listings/just-listed", params={"user_id": "user-1"})

        items = {item["zpid"]: item for item in response.json()["items"]}
        assert items["1"]["isRevealed"] is True
        assert items["1"]["addressStreet"] == "1 Main St"
        assert items["2"]["isRevealed"] is False

    def test_invalid_filters(self, client):
        response = client.get("/api/listings/just-listed", params={"min_price": 500000, "max_price": 100})
        assert response.status_code == 422
        assert response.json()["detail"] == ["Minimum price cannot be greater than maximum price"]

    def test_half_custom_range(self, client):
        response = client.get("/api/listings/just-listed", params={"start_date": "2024-06-01"})
        assert response.status_code == 422

    def test_query_failure(self, client):
        error = ListingQueryError("timeout", table="listings", operation="fetch_just_listed")
        with patch.object(ListingQueryService, "get_most_recent_run_with_data", side_effect=error):
            response = client.get("/api/listings/just-listed")

        assert response.status_code == 500
        assert response.json()["detail"]["message"] == "Failed to load listings"
        assert "timeout" in response.json()["detail"]["error"]


class TestSold:

    def test_sold_since_previous_run(self, client, db):
        add_run(db, "run-1", days_ago(7))
        add_run(db, "run-2", days_ago(0))
        add_listing(db, "1", "run-1")
        add_listing(db, "2", "run-2")
        add_listing(db, "3", "run-2", status="sold")

        response = client.get("/api/listings/sold", params={"city": "Windsor"})

        assert response.status_code == 200
        assert {item["zpid"] for item in response.json()["items"]} == {"1", "3"}


class TestListingDetail:

    def test_masked_detail(self, client, db):
        listing = add_listing(db, "1", "run-1")
        body = client.get(f"/api/listings/{listing.id}").json()
        assert body["isRevealed"] is False
        assert body["latlong"] is None

    def test_not_found(self, client, db):
        assert client.get("/api/listings/999").status_code == 404

    def test_listing_too_broken_to_show(self, client, db):
        """Rows the dashboard would hide are not served through the detail view either"""
        listing = add_listing(db, "1", "run-1", addresscity=None)
        assert client.get(f"/api/listings/{listing.id}").status_code == 404

    def test_detail_carries_display_strings(self, client, db):
        add_profile(db, unlimited=True)
        listing = add_listing(db, "1", "run-1")
        body = client.get(f"/api/listings/{listing.id}?user_id=user-1").json()
        assert body["fullAddress"].startswith("1 Main St")
        assert body["formattedBeds"] == "3"


class TestCities:

    def test_counts(self, client, db):
        add_listing(db, "1", "run-1")
        add_listing(db, "2", "run-1", addresscity="Tecumseh")
        add_listing(db, "3", "run-1", addresscity="Tecumseh")

        assert client.get("/api/listings/cities").json() == [
            {"city": "Tecumseh", "count": 2},
            {"city": "Windsor", "count": 1},
        ]


class TestExport:

    def test_csv_download(self, client, db):
        add_run(db, "run-1")
        add_listing(db, "1", "run-1")

        response = client.get("/api/listings/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.lstrip("\ufeff").splitlines()
        assert lines[0].startswith("Address,City,State")
        assert lines[1].startswith("*****,Windsor,ON")


class TestReveals:

    def test_reveal_and_list(self, client, db):
        listing = add_listing(db, "1", "run-1")
        add_profile(db, credits=2)

        response = client.post("/api/reveals", json={"user_id": "user-1", "listing_id": listing.id})

        assert response.status_code == 200
        assert response.json()["credits_remaining"] == 1
        assert client.get("/api/reveals/user-1").json() == {"user_id": "user-1", "listing_ids": [listing.id]}

    def test_insufficient_credits(self, client, db):
        listing = add_listing(db, "1", "run-1")
        add_profile(db, credits=0)

        response = client.post("/api/reveals", json={"user_id": "user-1", "listing_id": listing.id})

        assert response.status_code == 402
        assert response.json()["detail"]["required"] == 1

    def test_unknown_listing(self, client, db):
        add_profile(db, credits=2)
        response = client.post("/api/reveals/bulk", json={"user_id": "user-1", "listing_ids": [41, 42]})
        assert response.status_code == 404

    def test_bulk(self, client, db):
        ids = [add_listing(db, str(i), "run-1").id for i in range(1, 3)]
        add_profile(db, credits=5)

        response = client.post("/api/reveals/bulk", json={"user_id": "user-1", "listing_ids": ids})

        assert response.json()["revealed"] == ids
        assert response.json()["credits_charged"] == 2


class TestIngest:

    def test_ingest_page(self, client, db):
        payload = {
            "items": [make_item("1"), make_item("2"), make_item("1", price="$460,000"), {"price": "$1"}],
            "area_name": "Windsor",
            "page": 2,
            "run_id": "run-9",
            "region_name": "Ontario",
        }

        response = client.post("/api/ingest", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["received"] == 4
        assert body["mapped"] == 3
        assert body["unique"] == 2
        assert body["upserted"] == 2
        assert body["failed"] == 0

        listings = client.get("/api/listings/just-listed", params={"run_id": "run-9"}).json()
        assert listings["total"] == 2

    def test_finish_run(self, client, db):
        add_run(db, "run-1")
        response = client.post("/api/ingest/runs/run-1/finish")
        assert response.status_code == 200
        assert response.json()["ended_at"] is not None
        assert client.post("/api/ingest/runs/nope/finish").status_code == 404
