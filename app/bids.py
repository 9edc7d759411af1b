# app/bids.py
"""Bid ledger: placing bids, bid aggregates and bid-history disclosure."""
import math
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from . import crud
from .config import ADMIN_GROUP_NAME, BID_FLOOR_RATIO
from .errors import (
    AuthorizationError,
    BidBelowFloorError,
    BiddingClosedError,
    NotFoundError,
    SelfBidError,
    ValidationError,
)
from .identity import hydrate_bidders
from .models import Listing
from .predicates import Attr
from .utils import logger, now_ms


def bid_aggregates(bids: Optional[List[dict]]) -> dict:
    bids = bids or []
    return {
        "total_bids": len(bids),
        "highest_bid_price": max(b["bid_price"] for b in bids) if bids else None,
    }


def public_listing(item: dict) -> dict:
    """Listing as shown to any caller: aggregates instead of the raw bid list."""
    view = {k: v for k, v in item.items() if k not in ("bids", "version")}
    view.update(bid_aggregates(item.get("bids")))
    return view


def place_bid(db: Session, listing_id: str, bidder_id: str, bid_price: float, now: Optional[int] = None) -> dict:
    if not listing_id:
        raise ValidationError("Listing id is required")
    if bid_price is None or not math.isfinite(bid_price) or bid_price <= 0:
        raise ValidationError("Bid price must be a finite number greater than 0")

    listing = crud.get_item(db, Listing, listing_id)
    if listing is None:
        raise NotFoundError(f"Listing {listing_id} not found")
    if listing["owner_id"] == bidder_id:
        raise SelfBidError("You cannot bid on your own listing")

    now = now_ms() if now is None else now
    if now < listing["bid_start_date"] or now > listing["bid_end_date"]:
        raise BiddingClosedError("Bidding is not open for this listing")

    floor = listing["expected_price"] * BID_FLOOR_RATIO
    if bid_price < floor:
        raise BidBelowFloorError(f"Bid price must be at least {floor:g} ({BID_FLOOR_RATIO:.0%} of expected price)")

    bid = {
        "bid_id": str(uuid.uuid4()),
        "user_id": bidder_id,
        "bid_price": bid_price,
        "created_at": now,
    }
    bids = list(listing.get("bids") or [])
    bids.append(bid)
    crud.update_item(
        db, Listing, listing_id,
        {"bids": bids, "updated_at": now_ms(), "version": listing["version"] + 1},
        condition=Attr("version").eq(listing["version"]),
    )
    logger.info("Bid %s of %s placed on listing %s", bid["bid_id"], bid_price, listing_id)
    return {**bid, "listing_id": listing_id}


def can_view_bids(listing: dict, caller_id: Optional[str], caller_groups: Iterable[str]) -> bool:
    if ADMIN_GROUP_NAME in set(caller_groups or ()):
        return True
    return caller_id is not None and listing["owner_id"] == caller_id


def get_bids_for_listing(db: Session, listing_id: str, caller_id: Optional[str],
                         caller_groups: Iterable[str]) -> List[dict]:
    listing = crud.get_item(db, Listing, listing_id)
    if listing is None:
        raise NotFoundError(f"Listing {listing_id} not found")
    if not can_view_bids(listing, caller_id, caller_groups):
        raise AuthorizationError("Only the listing owner or an admin can view bids")

    bids = listing.get("bids") or []
    if not bids:
        return []
    users = hydrate_bidders(db, [b.get("user_id") for b in bids])
    return [
        {
            "bid_id": b["bid_id"],
            "listing_id": listing_id,
            "bid_price": b["bid_price"],
            "created_at": b["created_at"],
            "user": users.get(b.get("user_id")),
        }
        for b in bids
    ]
