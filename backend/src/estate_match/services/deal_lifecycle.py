"""Deal lifecycle - creates deals and drives their status.

Multi-write operations run inside one repository transaction so a reader
never sees a received deal next to a requirement that is not open.
"""

import logging
from typing import Optional

from estate_match.domain.enums import (
    DealStatus,
    InventoryStatus,
    MatchingStatus,
    RequirementStatus,
)
from estate_match.domain.errors import NotFoundError, ValidationError
from estate_match.domain.models import Deal, Inventory, Requirement
from estate_match.infra.filters import And, Eq, Filter, ILike, In, Or
from estate_match.infra.repository import Join, Repository
from estate_match.services.deal_state_machine import (
    MATCHING_STATUS_FOR,
    OPEN_STATES,
    TERMINAL_STATES,
    coerce_status,
    validate_transition,
)

logger = logging.getLogger(__name__)

CLOSED_DEALS_DEFAULT_LIMIT = 10

_REQUIREMENT_JOIN = Join(Requirement, Deal.requirement_id == Requirement.id)


def _search_filter(search: Optional[str]) -> Optional[Filter]:
    if not search or not search.strip():
        return None
    text = search.strip().lower()
    return Or(
        ILike(Deal.id, text),
        ILike(Deal.status, text),
        ILike(Requirement.demand, text),
        ILike(Requirement.preferred_type, text),
        ILike(Requirement.preferred_location, text),
        ILike(Requirement.budget, text),
    )


class DealLifecycle:
    """Deal creation, status transitions and lifecycle queries."""

    def __init__(self, repo: Repository):
        self.repo = repo

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_deal(self, requirement_id: str) -> Deal:
        """Create a deal in ``received`` and mark the requirement ``open``.

        Both writes commit together or not at all.

        Raises:
            NotFoundError: If the requirement does not exist.
            StorageError: If either write fails (nothing is persisted).
        """
        async with self.repo.transaction() as tx:
            requirement = await tx.get(Requirement, requirement_id)
            if requirement is None:
                raise NotFoundError("Requirement", requirement_id)

            deal = await tx.insert(
                Deal,
                {"requirement_id": requirement_id, "status": DealStatus.RECEIVED.value},
            )
            await tx.update(
                Requirement,
                Eq(Requirement.id, requirement_id),
                {
                    "status": RequirementStatus.OPEN.value,
                    "matching_status": MatchingStatus.OPEN.value,
                },
            )

        logger.info("Deal created: deal=%s, requirement=%s", deal.id, requirement_id)
        return deal

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def update_status(
        self,
        deal_id: str,
        status,
        *,
        payment_plan: Optional[str] = None,
        outstanding_amount: Optional[str] = None,
        milestones: Optional[str] = None,
        inventory_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> Deal:
        """Move a deal to ``status`` along the allowed transitions.

        The requirement's matching status follows the deal.  Closing with an
        ``inventory_id`` marks that inventory sold.

        Raises:
            NotFoundError: If the deal (or the given inventory) does not exist.
            InvalidTransitionError: If the transition is not allowed.
        """
        target = coerce_status(status)
        extra = {
            "payment_plan": payment_plan,
            "outstanding_amount": outstanding_amount,
            "milestones": milestones,
            "inventory_id": inventory_id,
            "remarks": remarks,
        }
        values = {k: v for k, v in extra.items() if v is not None}
        values["status"] = target.value

        async with self.repo.transaction() as tx:
            deal = await tx.get(Deal, deal_id)
            if deal is None:
                raise NotFoundError("Deal", deal_id)
            old_status = deal.status
            validate_transition(old_status, target)

            if inventory_id is not None and await tx.get(Inventory, inventory_id) is None:
                raise NotFoundError("Inventory", inventory_id)

            await tx.update(Deal, Eq(Deal.id, deal_id), values)
            await self._sync_requirement(tx, deal.requirement_id, target)

            if target == DealStatus.CLOSED and inventory_id:
                await tx.update(
                    Inventory,
                    Eq(Inventory.id, inventory_id),
                    {"unit_status": InventoryStatus.SOLD.value},
                )

            updated = await tx.get(Deal, deal_id, refresh=True)

        logger.info("Deal %s status: %s -> %s", deal_id, old_status, target.value)
        return updated

    async def assign_final_inventory(
        self,
        deal_id: str,
        inventory_id: str,
        remarks: Optional[str] = None,
    ) -> Deal:
        """Settle a deal on one inventory item and reserve it.

        Moves the deal to ``negotiation`` and the inventory to ``reserved``
        in one transaction. Existing remarks are kept when none are given.

        Raises:
            NotFoundError: If the deal or the inventory does not exist.
            ValidationError: If the inventory is not available.
            InvalidTransitionError: If the deal cannot enter negotiation.
        """
        async with self.repo.transaction() as tx:
            deal = await tx.get(Deal, deal_id)
            if deal is None:
                raise NotFoundError("Deal", deal_id)
            inventory = await tx.get(Inventory, inventory_id)
            if inventory is None:
                raise NotFoundError("Inventory", inventory_id)
            if inventory.unit_status != InventoryStatus.AVAILABLE.value:
                raise ValidationError(
                    f"Inventory {inventory_id} is {inventory.unit_status}, not available"
                )
            validate_transition(deal.status, DealStatus.NEGOTIATION)

            values = {"inventory_id": inventory_id, "status": DealStatus.NEGOTIATION.value}
            if remarks is not None:
                values["remarks"] = remarks
            await tx.update(Deal, Eq(Deal.id, deal_id), values)
            await self._sync_requirement(tx, deal.requirement_id, DealStatus.NEGOTIATION)
            await tx.update(
                Inventory,
                Eq(Inventory.id, inventory_id),
                {"unit_status": InventoryStatus.RESERVED.value},
            )
            updated = await tx.get(Deal, deal_id, refresh=True)

        logger.info("Final inventory for deal %s: %s (reserved)", deal_id, inventory_id)
        return updated

    @staticmethod
    async def _sync_requirement(tx: Repository, requirement_id: str, status: DealStatus):
        matching_status = MATCHING_STATUS_FOR.get(status)
        if matching_status is None:
            return
        await tx.update(
            Requirement,
            Eq(Requirement.id, requirement_id),
            {"matching_status": matching_status.value},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_deal(self, deal_id: str) -> Deal:
        deal = await self.repo.get(Deal, deal_id)
        if deal is None:
            raise NotFoundError("Deal", deal_id)
        return deal

    async def get_deal_with_requirement(self, deal_id: str) -> tuple[Deal, Requirement]:
        """Return the deal and its owning requirement.

        Raises:
            NotFoundError: If the deal or its requirement is missing.
        """
        rows = await self.repo.select_rows(
            Deal,
            Requirement,
            joins=[_REQUIREMENT_JOIN],
            where=Eq(Deal.id, deal_id),
            limit=1,
        )
        if not rows:
            raise NotFoundError("Deal", deal_id)
        deal, requirement = rows[0]
        return deal, requirement

    async def get_open_deals(self, search: Optional[str] = None) -> list[tuple[Deal, Requirement]]:
        """Non-terminal deals with their requirements, by status then most recent."""
        where = And(
            In(Deal.status, tuple(s.value for s in OPEN_STATES)),
            _search_filter(search),
        )
        return await self.repo.select_rows(
            Deal,
            Requirement,
            joins=[_REQUIREMENT_JOIN],
            where=where,
            order_by=[Deal.status.asc(), Deal.updated_at.desc()],
        )

    async def get_closed_deals(
        self,
        search: Optional[str] = None,
        limit: int = CLOSED_DEALS_DEFAULT_LIMIT,
    ) -> list[tuple[Deal, Requirement]]:
        """The most recently updated terminal deals with their requirements."""
        where = And(
            In(Deal.status, tuple(s.value for s in TERMINAL_STATES)),
            _search_filter(search),
        )
        return await self.repo.select_rows(
            Deal,
            Requirement,
            joins=[_REQUIREMENT_JOIN],
            where=where,
            order_by=[Deal.updated_at.desc()],
            limit=limit,
        )

    async def get_deals_by_requirement(self, requirement_id: str) -> list[Deal]:
        return await self.repo.select(Deal, Eq(Deal.requirement_id, requirement_id))

    async def requirement_has_deal(self, requirement_id: str) -> bool:
        return await self.repo.count(Deal, Eq(Deal.requirement_id, requirement_id)) > 0
