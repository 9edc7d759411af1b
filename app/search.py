# app/search.py
"""Listing search over the backing store's scan primitive.

The store filter language has no IN operator, no substring matching on nested
attributes and a bounded expression size, so this module compiles search
criteria into what the store can evaluate and finishes the rest in memory:

* id sets up to `ID_OR_CHAIN_LIMIT` become an OR-chain of equality clauses,
  larger sets are filtered after the scan;
* id-driven detail fetches run in passes of `ID_SCAN_BATCH_SIZE` ids;
* `location_details.address_text` is matched case-insensitively in memory.

Every search is a full scan of the listings table.
"""
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from . import crud, geo
from .bids import public_listing
from .config import ID_OR_CHAIN_LIMIT, ID_SCAN_BATCH_SIZE, NEARBY_VERIFIED_ONLY
from .errors import DependencyError
from .models import Listing
from .predicates import Attr, Predicate, all_of, id_chain
from .schemas import SearchCriteria
from .utils import chunked, logger

NESTED_EQUALITY_FIELDS = ("zipcode", "city", "state", "country")


def criteria_clauses(criteria: SearchCriteria) -> List[Predicate]:
    """One native clause per supplied criterion (id membership excluded)."""
    clauses = []
    if criteria.name:
        clauses.append(Attr("name").contains(criteria.name))
    if criteria.category_id:
        clauses.append(Attr("category_id").eq(criteria.category_id))
    if criteria.sub_category_id:
        clauses.append(Attr("sub_category_id").eq(criteria.sub_category_id))
    if criteria.min_price is not None:
        clauses.append(Attr("expected_price").gte(criteria.min_price))
    if criteria.max_price is not None:
        clauses.append(Attr("expected_price").lte(criteria.max_price))
    if criteria.verified is not None:
        clauses.append(Attr("verified").eq(criteria.verified))
    if criteria.refurbished is not None:
        clauses.append(Attr("refurbished").eq(criteria.refurbished))
    if criteria.owner_id:
        clauses.append(Attr("owner_id").eq(criteria.owner_id))
    if criteria.bid_start_date is not None:
        clauses.append(Attr("bid_start_date").gte(criteria.bid_start_date))
    if criteria.bid_end_date is not None:
        clauses.append(Attr("bid_end_date").lte(criteria.bid_end_date))
    details = criteria.location_details
    if details is not None:
        for field in NESTED_EQUALITY_FIELDS:
            value = getattr(details, field)
            if value:
                clauses.append(Attr(f"location_details.{field}").eq(value))
    return clauses


def in_memory_filters(criteria: SearchCriteria) -> List[Callable[[dict], bool]]:
    filters = []
    details = criteria.location_details
    if details is not None and details.address_text:
        needle = details.address_text.lower()

        def address_matches(item):
            address = (item.get("location_details") or {}).get("address_text")
            return bool(address) and needle in address.lower()

        filters.append(address_matches)
    return filters


def search_listings(db: Session, criteria: SearchCriteria) -> List[dict]:
    """All listings matching every supplied criterion."""
    clauses = criteria_clauses(criteria)
    filters = in_memory_filters(criteria)

    if criteria.location is not None:
        try:
            location_ids = list(dict.fromkeys(
                geo.listing_ids_at(db, criteria.location.lat, criteria.location.lng)
            ))
        except DependencyError as e:
            logger.warning("Location lookup failed, returning no results: %s", e)
            return []
        if not location_ids:
            return []
        if len(location_ids) <= ID_OR_CHAIN_LIMIT:
            clauses.insert(0, id_chain("listing_id", location_ids))
        else:
            wanted = set(location_ids)
            filters.insert(0, lambda item: item["listing_id"] in wanted)

    try:
        items = crud.scan_items(db, Listing, all_of(clauses))
    except DependencyError as e:
        logger.warning("Listing scan failed, returning no results: %s", e)
        return []

    for keep in filters:
        items = [i for i in items if keep(i)]
    return [public_listing(i) for i in items]


def fetch_listings_by_ids(db: Session, listing_ids: Iterable[str],
                          extra: Optional[Predicate] = None) -> Dict[str, dict]:
    """Listings keyed by id, fetched in OR-chain passes. Failed passes are skipped."""
    ids = list(dict.fromkeys(listing_ids))
    found: Dict[str, dict] = {}
    for batch in chunked(ids, ID_SCAN_BATCH_SIZE):
        predicate = all_of(p for p in (id_chain("listing_id", batch), extra) if p is not None)
        try:
            items = crud.scan_items(db, Listing, predicate)
        except DependencyError as e:
            logger.warning("Listing detail pass for %d ids failed: %s", len(batch), e)
            continue
        for item in items:
            found[item["listing_id"]] = item
    return found


def search_nearby(db: Session, lat: float, lng: float, radius_km: float) -> List[dict]:
    """Listings within `radius_km`, nearest first, each with its distance."""
    nearby = geo.locate_candidates(db, lat, lng, radius_km)
    if not nearby:
        return []

    extra = Attr("verified").eq(True) if NEARBY_VERIFIED_ONLY else None
    details = fetch_listings_by_ids(db, [listing_id for listing_id, _ in nearby], extra)

    results = []
    for listing_id, distance in nearby:
        item = details.get(listing_id)
        if item is None:
            continue
        view = public_listing(item)
        view["distance"] = distance
        results.append(view)
    return results
