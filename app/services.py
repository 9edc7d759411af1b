# app/services.py
"""Listing lifecycle: creation, reads and owner/admin edits."""
import math
import uuid
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from . import crud, geo
from .bids import public_listing
from .errors import AuthorizationError, NotFoundError, ValidationError
from .models import GeoPoint, Listing
from .predicates import Attr
from .schemas import ListingCreate
from .updates import compile_update
from .utils import logger, now_ms


def _check_listing_invariants(item: Dict[str, Any]):
    price = item["expected_price"]
    if price is None or not math.isfinite(price) or price <= 0:
        raise ValidationError("Expected price must be a finite number greater than 0")
    if item["bid_start_date"] >= item["bid_end_date"]:
        raise ValidationError("Bid start date must be before bid end date")


def create_listing(db: Session, owner_id: str, data: ListingCreate) -> dict:
    if not owner_id:
        raise ValidationError("Owner identity is required")
    now = now_ms()
    item = {
        "listing_id": str(uuid.uuid4()),
        "name": data.name,
        "expected_price": data.expected_price,
        "bid_start_date": data.bid_start_date,
        "bid_end_date": data.bid_end_date,
        "video_urls": list(data.video_urls),
        "image_urls": list(data.image_urls),
        "description_text": data.description_text or "",
        "owner_id": owner_id,
        "location_name": data.location_name,
        "verified": False,
        "category_id": data.category_id,
        "sub_category_id": data.sub_category_id,
        "refurbished": data.refurbished,
        "faqs": [],
        "location_details": (
            data.location_details.model_dump(exclude_none=True) if data.location_details else None
        ),
        "bids": [],
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }
    _check_listing_invariants(item)

    crud.put_item(db, Listing, item)
    lat, lng = data.location.lat, data.location.lng
    crud.put_item(db, GeoPoint, geo.geo_point_item(item["listing_id"], lat, lng, now))
    logger.info("Created listing %s for owner %s", item["listing_id"], owner_id)

    view = public_listing(item)
    view["location"] = {"lat": lat, "lng": lng}
    return view


def _with_location(db: Session, view: dict) -> dict:
    point = crud.get_item(db, GeoPoint, view["listing_id"])
    if point is not None:
        view["location"] = {"lat": point["lat"], "lng": point["lng"]}
    return view


def get_listing(db: Session, listing_id: str) -> dict:
    item = crud.get_item(db, Listing, listing_id)
    if item is None:
        raise NotFoundError(f"Listing {listing_id} not found")
    return _with_location(db, public_listing(item))


def list_owner_listings(db: Session, owner_id: str) -> List[dict]:
    items = crud.query_items(db, Listing, "owner_id", owner_id)
    items.sort(key=lambda i: i["created_at"])
    return [public_listing(i) for i in items]


def update_listing(db: Session, listing_id: str, caller_id: str, is_privileged: bool,
                   patch: Dict[str, Any]) -> dict:
    if not listing_id:
        raise ValidationError("Listing id is required")
    existing = crud.get_item(db, Listing, listing_id)
    if existing is None:
        raise NotFoundError(f"Listing {listing_id} not found")
    if existing["owner_id"] != caller_id and not is_privileged:
        raise AuthorizationError("You can only update your own listings")

    # strictly after the stored stamp, even within the same millisecond
    now = max(now_ms(), existing["updated_at"] + 1)
    assignments = compile_update(existing, patch, caller_id, now)
    _check_listing_invariants({**existing, **assignments})

    assignments["version"] = existing["version"] + 1
    crud.update_item(
        db, Listing, listing_id, assignments,
        condition=Attr("version").eq(existing["version"]),
    )
    logger.info("Updated listing %s fields %s", listing_id, sorted(k for k in assignments if k != "version"))
    return get_listing(db, listing_id)
