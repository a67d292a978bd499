"""Composable filter objects for repository queries.

A filter renders to a SQLAlchemy clause (``to_clause``) and can also be
evaluated against an already-loaded ORM object (``evaluate``).  Filters
combine with ``&`` and ``|``.

    criteria = Eq(Inventory.unit_status, "available") & Between(Inventory.area_sqft, 900, 1100)
    rows = await repo.select(Inventory, criteria)
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, false, or_, true


class Filter:
    """Base class: a boolean predicate over one or more mapped columns."""

    def to_clause(self):
        raise NotImplementedError

    def evaluate(self, obj) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Filter") -> "And":
        return And(self, other)

    def __or__(self, other: "Filter") -> "Or":
        return Or(self, other)


def _read(obj, column) -> Any:
    return getattr(obj, column.key)


@dataclass(frozen=True, eq=False)
class Eq(Filter):
    column: Any
    value: Any

    def to_clause(self):
        return self.column == self.value

    def evaluate(self, obj) -> bool:
        return _read(obj, self.column) == self.value


@dataclass(frozen=True, eq=False)
class Between(Filter):
    """Inclusive range, like SQL ``BETWEEN``."""

    column: Any
    low: Any
    high: Any

    def to_clause(self):
        return self.column.between(self.low, self.high)

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and self.low <= value <= self.high


@dataclass(frozen=True, eq=False)
class Gte(Filter):
    column: Any
    value: Any

    def to_clause(self):
        return self.column >= self.value

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and value >= self.value


@dataclass(frozen=True, eq=False)
class Lte(Filter):
    column: Any
    value: Any

    def to_clause(self):
        return self.column <= self.value

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and value <= self.value


@dataclass(frozen=True, eq=False)
class Lt(Filter):
    column: Any
    value: Any

    def to_clause(self):
        return self.column < self.value

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and value < self.value


@dataclass(frozen=True, eq=False)
class In(Filter):
    column: Any
    values: tuple

    def to_clause(self):
        return self.column.in_(list(self.values))

    def evaluate(self, obj) -> bool:
        return _read(obj, self.column) in self.values


@dataclass(frozen=True, eq=False)
class NotIn(Filter):
    column: Any
    values: tuple

    def to_clause(self):
        return self.column.not_in(list(self.values))

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and value not in self.values


@dataclass(frozen=True, eq=False)
class IsNull(Filter):
    column: Any

    def to_clause(self):
        return self.column.is_(None)

    def evaluate(self, obj) -> bool:
        return _read(obj, self.column) is None


@dataclass(frozen=True, eq=False)
class ILike(Filter):
    """Case-insensitive substring match."""

    column: Any
    text: str

    def to_clause(self):
        return self.column.ilike(f"%{self.text}%")

    def evaluate(self, obj) -> bool:
        value = _read(obj, self.column)
        return value is not None and self.text.lower() in str(value).lower()


class And(Filter):
    """All parts must hold. An empty ``And()`` matches everything."""

    def __init__(self, *parts: Filter):
        self.parts = tuple(p for p in parts if p is not None)

    def to_clause(self):
        if not self.parts:
            return true()
        return and_(*(p.to_clause() for p in self.parts))

    def evaluate(self, obj) -> bool:
        return all(p.evaluate(obj) for p in self.parts)

    def __repr__(self):
        return f"And{self.parts!r}"


class Or(Filter):
    """Any part may hold. An empty ``Or()`` matches nothing."""

    def __init__(self, *parts: Filter):
        self.parts = tuple(p for p in parts if p is not None)

    def to_clause(self):
        if not self.parts:
            return false()
        return or_(*(p.to_clause() for p in self.parts))

    def evaluate(self, obj) -> bool:
        return any(p.evaluate(obj) for p in self.parts)

    def __repr__(self):
        return f"Or{self.parts!r}"
