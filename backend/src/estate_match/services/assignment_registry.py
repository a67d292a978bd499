"""Assignment registry - candidate inventory attached to a deal.

By default repeated assignments of the same (deal, inventory) pair add
rows, and concurrent assign/unassign on one pair is racy.  Callers that
want one row per pair construct the registry with ``enforce_uniqueness``.
"""

import logging
from typing import Optional

from estate_match.domain.errors import DuplicateAssignmentError, NotFoundError
from estate_match.domain.models import Deal, Inventory, InventoryAssignedDeal
from estate_match.infra.filters import And, Eq
from estate_match.infra.repository import Join, Repository

logger = logging.getLogger(__name__)


def _pair(deal_id: str, inventory_id: str):
    return And(
        Eq(InventoryAssignedDeal.deal_id, deal_id),
        Eq(InventoryAssignedDeal.inventory_id, inventory_id),
    )


class AssignmentRegistry:
    """Links candidate inventory to deals, with remarks."""

    def __init__(self, repo: Repository, *, enforce_uniqueness: bool = False):
        self.repo = repo
        self.enforce_uniqueness = enforce_uniqueness

    async def assign(
        self,
        deal_id: str,
        inventory_id: str,
        remarks: Optional[str] = None,
    ) -> InventoryAssignedDeal:
        """Attach an inventory item to a deal as a candidate.

        Raises:
            NotFoundError: If the deal or the inventory does not exist.
            DuplicateAssignmentError: If uniqueness is enforced and the pair exists.
            StorageError: If the insert fails.
        """
        async with self.repo.transaction() as tx:
            if await tx.get(Deal, deal_id) is None:
                raise NotFoundError("Deal", deal_id)
            if await tx.get(Inventory, inventory_id) is None:
                raise NotFoundError("Inventory", inventory_id)

            if self.enforce_uniqueness and await tx.count(
                InventoryAssignedDeal, _pair(deal_id, inventory_id)
            ):
                raise DuplicateAssignmentError(deal_id, inventory_id)

            assignment = await tx.insert(
                InventoryAssignedDeal,
                {"deal_id": deal_id, "inventory_id": inventory_id, "remarks": remarks},
            )

        logger.info("Inventory %s assigned to deal %s", inventory_id, deal_id)
        return assignment

    async def remove(self, deal_id: str, inventory_id: str) -> int:
        """Delete every assignment row for the pair and return how many went."""
        removed = await self.repo.delete(InventoryAssignedDeal, _pair(deal_id, inventory_id))
        logger.info(
            "Inventory %s unassigned from deal %s (%d rows)", inventory_id, deal_id, removed
        )
        return removed

    async def unassign(self, deal_id: str, inventory_id: str) -> bool:
        """Remove every assignment row for the pair.

        Idempotent: returns True even when nothing matched.
        """
        await self.remove(deal_id, inventory_id)
        return True

    async def list_assigned(self, deal_id: str) -> list[Inventory]:
        """Inventory assigned to a deal, in no particular order."""
        return await self.repo.select(
            Inventory,
            Eq(InventoryAssignedDeal.deal_id, deal_id),
            joins=[Join(InventoryAssignedDeal, InventoryAssignedDeal.inventory_id == Inventory.id)],
        )
