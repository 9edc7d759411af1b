# app/api/routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from .. import bids, schemas, search, services
from ..config import DEFAULT_RADIUS_KM
from ..db import get_db
from .context import CallerContext, get_caller, require_caller

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/listings", response_model=schemas.ListingOut, status_code=201)
def create_listing(
    payload: schemas.ListingCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db)
):
    owner_id = require_caller(caller)
    return services.create_listing(db, owner_id, payload)


@router.get("/listings/mine", response_model=List[schemas.ListingOut])
def my_listings(caller: CallerContext = Depends(get_caller), db: Session = Depends(get_db)):
    return services.list_owner_listings(db, require_caller(caller))


@router.get("/listings/nearby", response_model=List[schemas.NearbyListingOut])
def nearby_listings(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(DEFAULT_RADIUS_KM, gt=0),
    db: Session = Depends(get_db)
):
    return search.search_nearby(db, lat, lng, radius_km)


@router.post("/listings/search", response_model=List[schemas.ListingOut])
def search_listings(criteria: schemas.SearchCriteria, db: Session = Depends(get_db)):
    return search.search_listings(db, criteria)


@router.get("/listings/{listing_id}", response_model=schemas.ListingOut)
def get_listing(listing_id: str, db: Session = Depends(get_db)):
    return services.get_listing(db, listing_id)


@router.patch("/listings/{listing_id}", response_model=schemas.ListingOut)
def update_listing(
    listing_id: str,
    payload: schemas.ListingUpdate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db)
):
    caller_id = require_caller(caller)
    return services.update_listing(
        db, listing_id, caller_id, caller.is_admin, payload.model_dump(exclude_unset=True)
    )


@router.post("/listings/{listing_id}/bids", response_model=schemas.BidOut, status_code=201)
def place_bid(
    listing_id: str,
    payload: schemas.BidIn,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db)
):
    return bids.place_bid(db, listing_id, require_caller(caller), payload.bid_price)


@router.get("/listings/{listing_id}/bids", response_model=List[schemas.BidWithBidder])
def listing_bids(
    listing_id: str,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db)
):
    caller_id = require_caller(caller)
    return bids.get_bids_for_listing(db, listing_id, caller_id, caller.groups)
