# tests/conftest.py
import os

# private in-memory database for the whole test run
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from app import crud, services
import app.models  # noqa: F401 ensure models are imported so tables are known
from app.db import Base, engine, SessionLocal
from app.models import Listing
from app.schemas import ListingCreate
from app.utils import now_ms

HOUR = 3600 * 1000


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_listing(db):
    """Create a listing through the service layer, verified unless told otherwise."""
    def make(owner_id="seller-1", lat=12.97, lng=77.59, verified=True, **fields):
        now = now_ms()
        data = {
            "name": "Road bike",
            "expected_price": 1000.0,
            "bid_start_date": now - HOUR,
            "bid_end_date": now + HOUR,
            "location": {"lat": lat, "lng": lng},
        }
        data.update(fields)
        listing = services.create_listing(db, owner_id, ListingCreate(**data))
        if verified:
            crud.update_item(db, Listing, listing["listing_id"], {"verified": True})
            listing["verified"] = True
        return listing
    return make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient
    from app.main import app as fastapi_app
    return TestClient(fastapi_app)
