"""Match Engine - finds inventory that satisfies a requirement.

Candidates come from a sequential narrowing filter over the inventory pool.
Each stage is an independent predicate, and the optional stages are added
only when the requirement sets the field that drives them:

    1. unit is available
    2. property type equals the preferred type (exact)
    3. location equals the preferred location (exact)
    4. selling price within the parsed budget range (inclusive)
    5. area within +/-10% of the preferred square footage      (optional)
    6. ROI-gross untracked (0) or within [90% of preferred, 100] (optional)
    7. PHPP-eligible when the requirement asks for PHPP          (optional)

Stages are ANDed, so their order never changes the result.  Results are
unordered; an empty list is a normal outcome.
"""

import logging
from decimal import Decimal

from estate_match.domain.enums import InventoryStatus
from estate_match.domain.errors import NotFoundError
from estate_match.domain.models import Inventory, Requirement
from estate_match.infra.filters import And, Between, Eq, Filter, Or
from estate_match.infra.repository import Repository
from estate_match.services.budget import parse_budget

logger = logging.getLogger(__name__)

# Square footage tolerance band around the preferred size
SQFT_LOWER_FACTOR = Decimal("0.9")
SQFT_UPPER_FACTOR = Decimal("1.1")

# ROI floor relative to the preferred ROI, and the absolute ceiling
ROI_FLOOR_FACTOR = Decimal("0.9")
ROI_CEILING = 100

# roi_gross value meaning "not tracked"
ROI_UNTRACKED = 0


def _scaled(value: float, factor: Decimal) -> float:
    return float(Decimal(str(value)) * factor)


def _is_set(value) -> bool:
    """Optional numeric criteria count only when present and non-zero."""
    return value is not None and value != 0


def criteria_for(requirement: Requirement) -> list[Filter]:
    """Build the filter stages for a requirement.

    Raises:
        ValidationError: If the requirement's budget cannot be parsed.
    """
    budget = parse_budget(requirement.budget)

    stages: list[Filter] = [
        Eq(Inventory.unit_status, InventoryStatus.AVAILABLE.value),
        Eq(Inventory.property_type, requirement.preferred_type),
        Eq(Inventory.location, requirement.preferred_location),
        Between(Inventory.selling_price_million, budget.min_budget, budget.max_budget),
    ]

    if _is_set(requirement.preferred_square_footage):
        sqft = requirement.preferred_square_footage
        stages.append(
            Between(
                Inventory.area_sqft,
                _scaled(sqft, SQFT_LOWER_FACTOR),
                _scaled(sqft, SQFT_UPPER_FACTOR),
            )
        )

    if _is_set(requirement.preferred_roi):
        stages.append(
            Or(
                Eq(Inventory.roi_gross, ROI_UNTRACKED),
                Between(
                    Inventory.roi_gross,
                    _scaled(requirement.preferred_roi, ROI_FLOOR_FACTOR),
                    ROI_CEILING,
                ),
            )
        )

    if requirement.phpp:
        stages.append(Eq(Inventory.phpp_eligible, True))

    return stages


def matches(requirement: Requirement, inventory: Inventory) -> bool:
    """Evaluate every stage against one inventory item without the database."""
    return And(*criteria_for(requirement)).evaluate(inventory)


class MatchEngine:
    """Computes the candidate set of inventory for a requirement."""

    def __init__(self, repo: Repository):
        self.repo = repo

    async def find_candidates(self, requirement_id: str) -> list[Inventory]:
        """Return available inventory satisfying the requirement's constraints.

        Raises:
            NotFoundError: If the requirement does not exist.
            ValidationError: If its budget cannot be parsed.
            StorageError: If the repository fails.
        """
        requirement = await self.repo.get(Requirement, requirement_id)
        if requirement is None:
            raise NotFoundError("Requirement", requirement_id)

        stages = criteria_for(requirement)
        candidates = await self.repo.select(Inventory, And(*stages))

        logger.info(
            "Match for requirement %s: %d candidates (%d stages)",
            requirement_id,
            len(candidates),
            len(stages),
        )
        return candidates
