# app/identity.py
"""Batched resolution of bidder identities into user summaries."""
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from . import crud
from .config import BATCH_GET_MAX_KEYS, HYDRATION_WORKERS
from .errors import DependencyError
from .models import UserProfile
from .utils import chunked, logger


def user_summary(user: dict) -> dict:
    return {
        "name": user.get("name"),
        "phone_number": user.get("phone_number"),
        "email_id": user.get("email_id"),
    }


def _fetch_in_own_session(bind, keys):
    # sessions are not thread safe; every parallel batch gets its own
    with Session(bind=bind) as session:
        return crud.batch_get_items(session, UserProfile, keys)


def resolve_user_summaries(batches: Sequence[List[str]],
                           fetch_batch: Callable[[List[str]], List[dict]],
                           workers: int = 1) -> Dict[str, Optional[dict]]:
    """Resolve every id in `batches`; ids from a failed batch map to None."""
    summaries: Dict[str, Optional[dict]] = {}

    def run(keys):
        try:
            return keys, fetch_batch(keys)
        except DependencyError as e:
            logger.warning("User batch of %d ids failed, continuing without them: %s", len(keys), e)
            return keys, []

    if workers > 1 and len(batches) > 1:
        with ThreadPoolExecutor(max_workers=min(workers, len(batches))) as pool:
            results = list(pool.map(run, batches))
    else:
        results = [run(keys) for keys in batches]

    for keys, users in results:
        for key in keys:
            summaries.setdefault(key, None)
        for user in users:
            if user.get("sub"):
                summaries[user["sub"]] = user_summary(user)
    return summaries


def hydrate_bidders(db: Session, user_ids: Sequence[str]) -> Dict[str, Optional[dict]]:
    ids = list(dict.fromkeys(u for u in user_ids if isinstance(u, str)))
    batches = list(chunked(ids, BATCH_GET_MAX_KEYS))
    if len(batches) <= 1:
        return resolve_user_summaries(batches, partial(crud.batch_get_items, db, UserProfile))
    return resolve_user_summaries(
        batches, partial(_fetch_in_own_session, db.get_bind()), workers=HYDRATION_WORKERS
    )
