import os

# Must be set before app.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import get_settings
from app.database import Base, SessionLocal, engine, get_db
from app.models import Listing, Profile, Run


@pytest.fixture
def db():
    """Fresh in-memory schema per test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    return get_settings().model_copy(update={"upsert_retry_base_delay": 0, "upsert_batch_pause": 0})


@pytest.fixture
def client(db):
    from app.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_item(zpid="1001", **overrides):
    """Raw search-result item in the flat shape"""
    item = {
        "zpid": zpid,
        "statusType": "FOR_SALE",
        "statusText": "House for sale",
        "imgSrc": "https://photos.example.com/1.jpg",
        "detailUrl": f"https://www.example.com/homedetails/{zpid}_zpid/",
        "price": "$450,000",
        "unformattedPrice": 450000,
        "address": "12 Oak St, Windsor, ON N9A 1A1",
        "addressStreet": "12 Oak St",
        "addressCity": "Windsor",
        "addressState": "ON",
        "addressZipcode": "N9A 1A1",
        "beds": 3,
        "baths": 2,
        "area": 1500,
        "latLong": {"latitude": 42.3, "longitude": -83.0},
        "hdpData": {"homeInfo": {"zpid": int(zpid) if str(zpid).isdigit() else zpid, "homeType": "SINGLE_FAMILY"}},
        "carouselPhotos": [{"url": "https://photos.example.com/1.jpg"}],
    }
    item.update(overrides)
    return item


def add_run(db, run_id, started_at=None):
    run = Run(id=run_id, started_at=started_at or datetime.now(timezone.utc))
    db.add(run)
    db.commit()
    return run


def add_listing(db, zpid, run_id, **overrides):
    values = {
        "zpid": zpid,
        "status": "just_listed",
        "lastrunid": run_id,
        "lastseenat": datetime.now(timezone.utc),
        "lastcity": "Windsor",
        "lastpage": 1,
        "isjustlisted": True,
        "address": f"{zpid} Main St",
        "addressstreet": f"{zpid} Main St",
        "addresscity": "Windsor",
        "addressstate": "ON",
        "addresszipcode": "N9A 1A1",
        "price": "$300,000",
        "unformattedprice": 300000.0,
        "beds": 3,
        "baths": 2,
        "area": 1400,
        "statustext": "House for sale",
        "detailurl": f"https://www.example.com/homedetails/{zpid}_zpid/",
        "latlong": {"latitude": 42.3, "longitude": -83.0},
    }
    values.update(overrides)
    listing = Listing(**values)
    db.add(listing)
    db.commit()
    db.refresh(listing)
    return listing


def add_profile(db, user_id="user-1", credits=5, unlimited=False):
    profile = Profile(id=user_id, credits_remaining=credits, unlimited=unlimited)
    db.add(profile)
    db.commit()
    return profile


def days_ago(days):
    return datetime.now(timezone.utc) - timedelta(days=days)
