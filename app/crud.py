# app/crud.py
"""Backing store primitives.

Everything above this module talks to the database through these helpers
only: point reads, secondary-index queries, filtered scans, bounded batch
reads and single-record writes. Records travel as plain dicts ("items") so the
callers never hold live ORM state across calls.
"""
import copy
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import BATCH_GET_MAX_KEYS, PREDICATE_BUDGET
from .errors import (
    ConcurrentUpdateError,
    DependencyError,
    PredicateBudgetExceeded,
    UnsupportedPredicate,
    ValidationError,
)
from .predicates import Predicate
from .utils import logger


def _key_column(model):
    return model.__mapper__.primary_key[0]


def to_item(obj) -> Dict[str, Any]:
    return {c.name: copy.deepcopy(getattr(obj, c.key)) for c in obj.__table__.columns}


def _fail(db: Session, op: str, model, exc: SQLAlchemyError):
    db.rollback()
    logger.exception("Store %s on %s failed: %s", op, model.__tablename__, exc)
    raise DependencyError(f"{op} on {model.__tablename__} failed") from exc


def get_item(db: Session, model, key) -> Optional[Dict[str, Any]]:
    try:
        obj = db.get(model, key, populate_existing=True)
    except SQLAlchemyError as e:
        _fail(db, "get", model, e)
    return to_item(obj) if obj is not None else None


def query_items(db: Session, model, index: str, value) -> List[Dict[str, Any]]:
    """Exact-match lookup on a primary-key or indexed column."""
    table = model.__table__
    column = table.c.get(index)
    indexed = column is not None and (
        column.primary_key or column.index or any(column in ix.columns for ix in table.indexes)
    )
    if not indexed:
        raise UnsupportedPredicate(f"{table.name}.{index} is not an indexed attribute")
    stmt = (
        select(model)
        .where(getattr(model, column.key) == value)
        .execution_options(populate_existing=True)
    )
    try:
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as e:
        _fail(db, "query", model, e)
    return [to_item(r) for r in rows]


def scan_items(db: Session, model, predicate: Optional[Predicate] = None) -> List[Dict[str, Any]]:
    """Linear scan of a table, optionally filtered. Cost grows with table size."""
    stmt = select(model).execution_options(populate_existing=True)
    if predicate is not None:
        if predicate.size() > PREDICATE_BUDGET:
            raise PredicateBudgetExceeded(
                f"filter has {predicate.size()} clauses, limit is {PREDICATE_BUDGET}"
            )
        stmt = stmt.where(predicate.to_sql(model))
    try:
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as e:
        _fail(db, "scan", model, e)
    return [to_item(r) for r in rows]


def batch_get_items(db: Session, model, keys) -> List[Dict[str, Any]]:
    keys = list(keys)
    if len(keys) > BATCH_GET_MAX_KEYS:
        raise ValidationError(f"batch get accepts at most {BATCH_GET_MAX_KEYS} keys, got {len(keys)}")
    if not keys:
        return []
    try:
        stmt = select(model).where(_key_column(model).in_(keys)).execution_options(populate_existing=True)
        rows = db.scalars(stmt).all()
    except SQLAlchemyError as e:
        _fail(db, "batch_get", model, e)
    return [to_item(r) for r in rows]


def put_item(db: Session, model, item: Dict[str, Any]) -> Dict[str, Any]:
    try:
        db.add(model(**item))
        db.commit()
    except SQLAlchemyError as e:
        _fail(db, "put", model, e)
    return item


def update_item(db: Session, model, key, assignments: Dict[str, Any],
                condition: Optional[Predicate] = None) -> int:
    """Apply `assignments` to one record in a single write.

    With `condition`, the write only happens when the stored record still
    satisfies it; otherwise `ConcurrentUpdateError` is raised.
    """
    stmt = (
        update(model)
        .where(_key_column(model) == key)
        .values(**assignments)
        .execution_options(synchronize_session=False)
    )
    if condition is not None:
        stmt = stmt.where(condition.to_sql(model))
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        _fail(db, "update", model, e)
    if result.rowcount == 0 and condition is not None:
        raise ConcurrentUpdateError(f"{model.__tablename__} {key} was modified concurrently")
    return result.rowcount
