"""Staleness monitor - deals and requirements left idle past a threshold."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from estate_match.domain.models import Deal, Requirement
from estate_match.infra.filters import And, IsNull, Lt, Lte, NotIn
from estate_match.infra.repository import Join, Repository
from estate_match.services.deal_state_machine import TERMINAL_STATES

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StaleReport:
    """Result of one staleness sweep."""

    deals: list = field(default_factory=list)
    requirements: list = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.deals and not self.requirements


class StalenessMonitor:
    """Finds deals not updated, and requirements never dealt, within the threshold."""

    def __init__(
        self,
        repo: Repository,
        *,
        stale_after_days: int = DEFAULT_STALE_AFTER_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repo = repo
        self.stale_after = timedelta(days=stale_after_days)
        self.clock = clock

    def cutoff(self) -> datetime:
        return self.clock() - self.stale_after

    async def get_deals_not_updated_in_seven_days(self) -> list[Deal]:
        """Non-terminal deals whose last update is older than the threshold."""
        return await self.repo.select(
            Deal,
            And(
                Lt(Deal.updated_at, self.cutoff()),
                NotIn(Deal.status, tuple(s.value for s in TERMINAL_STATES)),
            ),
            order_by=[Deal.updated_at.asc()],
        )

    async def get_unassigned_requirements_not_updated_in_seven_days(
        self,
        limit: Optional[int] = None,
    ) -> list[Requirement]:
        """Requirements older than the threshold that no deal references, oldest first."""
        return await self.repo.select(
            Requirement,
            And(
                IsNull(Deal.id),
                Lte(Requirement.date_created, self.cutoff()),
            ),
            joins=[Join(Deal, Deal.requirement_id == Requirement.id, outer=True)],
            order_by=[Requirement.date_created.asc()],
            limit=limit,
        )

    async def collect(self, requirement_limit: Optional[int] = None) -> StaleReport:
        """Run both sweeps concurrently. Fails as a whole if either read fails."""
        deals, requirements = await asyncio.gather(
            self.get_deals_not_updated_in_seven_days(),
            self.get_unassigned_requirements_not_updated_in_seven_days(limit=requirement_limit),
        )
        logger.info(
            "Staleness sweep: %d deals, %d requirements past %s",
            len(deals),
            len(requirements),
            self.stale_after,
        )
        return StaleReport(deals=deals, requirements=requirements)
