# app/updates.py
"""Partial update compilation for listings.

A patch is a dict holding only the fields the caller sent (for HTTP bodies,
`model_dump(exclude_unset=True)`). Each recognized field present in the patch
yields exactly one assignment; everything else is left alone.
"""
import uuid
from typing import Any, Dict, Optional

from .errors import NoFieldsError, ValidationError

# plain replacement, in assignment order
SCALAR_FIELDS = (
    "name",
    "expected_price",
    "bid_start_date",
    "bid_end_date",
    "video_urls",
    "image_urls",
    "description_text",
    "verified",
    "category_id",
    "sub_category_id",
    "refurbished",
)
NOT_NULL_FIELDS = frozenset(SCALAR_FIELDS) - {"category_id", "sub_category_id", "refurbished"}
LOCATION_DETAIL_FIELDS = ("zipcode", "address_text", "state", "city", "country")


def _faq_assignment(existing: dict, faq: dict, asked_by: str) -> list:
    if not faq.get("question"):
        raise ValidationError("FAQ question is required")
    faqs = list(existing.get("faqs") or [])
    faqs.append({
        "faq_id": str(uuid.uuid4()),
        "question": faq["question"],
        "answer": faq.get("answer"),
        "asked_by": asked_by,
    })
    return faqs


def _location_details_assignment(existing: dict, details: dict) -> Optional[dict]:
    provided = {k: details[k] for k in LOCATION_DETAIL_FIELDS if k in details}
    if not provided:
        return None
    return {**(existing.get("location_details") or {}), **provided}


def compile_update(existing: dict, patch: Dict[str, Any], caller_id: str, now: int) -> Dict[str, Any]:
    """Assignments for `patch` against the stored listing `existing`.

    Raises NoFieldsError when nothing in the patch maps to a field.
    """
    assignments: Dict[str, Any] = {}
    for field in SCALAR_FIELDS:
        if field not in patch:
            continue
        if patch[field] is None and field in NOT_NULL_FIELDS:
            raise ValidationError(f"{field} cannot be null")
        assignments[field] = patch[field]

    if patch.get("add_faq"):
        assignments["faqs"] = _faq_assignment(existing, patch["add_faq"], caller_id)

    if patch.get("location_details"):
        details = _location_details_assignment(existing, patch["location_details"])
        if details is not None:
            assignments["location_details"] = details

    if not assignments:
        raise NoFieldsError()
    assignments["updated_at"] = now
    return assignments
