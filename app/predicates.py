# app/predicates.py
"""Filter expressions understood by the backing store's scan primitive.

The language is intentionally small: equality, range and substring clauses
composed with AND / OR. It has no list-membership operator, substring matching
is only available on top-level attributes, and each compiled expression is
limited to `PREDICATE_BUDGET` clauses. Callers that need more (id sets, nested
free-text) must work around it; see `app.search`.

    Attr("category_id").eq("c1") & (Attr("listing_id").eq("a") | Attr("listing_id").eq("b"))
"""
from functools import reduce
from typing import Iterable, Optional

from sqlalchemy import String, and_, or_, func

from .errors import UnsupportedPredicate


class Predicate:
    def __and__(self, other):
        return And(self, other)

    def __or__(self, other):
        return Or(self, other)

    def size(self) -> int:
        raise NotImplementedError

    def to_sql(self, model):
        raise NotImplementedError


class Comparison(Predicate):
    OPS = ("eq", "gte", "lte", "between", "contains")

    def __init__(self, path: str, op: str, *values):
        if op not in self.OPS:
            raise ValueError(f"unknown operator {op!r}")
        self.path = path
        self.op = op
        self.values = values

    def size(self) -> int:
        return 1

    def _target(self, model):
        head, _, rest = self.path.partition(".")
        column = getattr(model, head, None)
        if column is None:
            raise UnsupportedPredicate(f"unknown attribute {self.path!r}")
        if not rest:
            return column
        if "." in rest:
            raise UnsupportedPredicate(f"attribute path too deep: {self.path!r}")
        if self.op != "eq":
            # the store evaluates nested attributes by equality only
            raise UnsupportedPredicate(f"{self.op} is not supported on nested attribute {self.path!r}")
        return column[rest].as_string()

    def to_sql(self, model):
        target = self._target(model)
        if self.op == "eq":
            return target == self.values[0]
        if self.op == "gte":
            return target >= self.values[0]
        if self.op == "lte":
            return target <= self.values[0]
        if self.op == "between":
            return target.between(self.values[0], self.values[1])
        return func.lower(target, type_=String()).contains(str(self.values[0]).lower(), autoescape=True)

    def __repr__(self):
        return f"Comparison({self.path!r}, {self.op!r}, {', '.join(map(repr, self.values))})"


class _Compound(Predicate):
    def __init__(self, *parts: Predicate):
        flat = []
        for part in parts:
            # flatten nested compounds of the same kind
            if type(part) is type(self):
                flat.extend(part.parts)
            else:
                flat.append(part)
        self.parts = tuple(flat)

    def size(self) -> int:
        return sum(p.size() for p in self.parts)


class And(_Compound):
    def to_sql(self, model):
        return and_(*(p.to_sql(model) for p in self.parts))


class Or(_Compound):
    def to_sql(self, model):
        return or_(*(p.to_sql(model) for p in self.parts))


class Attr:
    """Entry point for building comparisons on an attribute path."""

    def __init__(self, path: str):
        self.path = path

    def eq(self, value):
        return Comparison(self.path, "eq", value)

    def gte(self, value):
        return Comparison(self.path, "gte", value)

    def lte(self, value):
        return Comparison(self.path, "lte", value)

    def between(self, low, high):
        return Comparison(self.path, "between", low, high)

    def contains(self, value):
        return Comparison(self.path, "contains", value)


def all_of(predicates: Iterable[Predicate]) -> Optional[Predicate]:
    predicates = list(predicates)
    if not predicates:
        return None
    return reduce(lambda a, b: a & b, predicates)


def any_of(predicates: Iterable[Predicate]) -> Optional[Predicate]:
    predicates = list(predicates)
    if not predicates:
        return None
    return reduce(lambda a, b: a | b, predicates)


def id_chain(attribute: str, ids) -> Optional[Predicate]:
    """OR-chain of equality clauses, the store's stand-in for `attribute IN ids`."""
    return any_of(Attr(attribute).eq(i) for i in ids)
