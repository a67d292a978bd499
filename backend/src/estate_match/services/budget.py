"""Budget string parsing for requirements.

Budgets are free text in millions, e.g. ``"1.5-2.0"``, ``"AED 1.5 - 2"`` or
``"1.5"``.  A single bound gets an upper bound 20% above it.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from estate_match.domain.errors import ValidationError

SINGLE_BOUND_MARKUP = Decimal("1.2")

_NON_NUMERIC = re.compile(r"[^0-9.]")


class BudgetRange(NamedTuple):
    min_budget: float
    max_budget: float


def _to_decimal(part: str) -> Decimal | None:
    cleaned = _NON_NUMERIC.sub("", part)
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def parse_budget(budget: str | None) -> BudgetRange:
    """Parse a budget string into an inclusive ``(min, max)`` range.

    The first numeric token is the minimum, the second (if any) the maximum;
    otherwise the maximum is ``min * 1.2``.

    Raises:
        ValidationError: If the string holds no numeric token.
    """
    if not budget or not budget.strip():
        raise ValidationError("Budget is empty")

    bounds = [d for d in (_to_decimal(p) for p in budget.split("-")) if d is not None]
    if not bounds:
        raise ValidationError(f"Budget {budget!r} has no numeric bound")

    low = bounds[0]
    high = bounds[1] if len(bounds) > 1 else low * SINGLE_BOUND_MARKUP
    return BudgetRange(float(low), float(high))
