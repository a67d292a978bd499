"""Dashboard summary counts.

Display-only aggregate: if any count fails the summary degrades to zeros
instead of surfacing the error.  Core services never do this.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from estate_match.domain.enums import DealStatus
from estate_match.domain.models import Deal, Inventory, Requirement
from estate_match.infra.filters import Eq, Gte
from estate_match.infra.repository import Repository

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = {"new_requirements": 0, "inventory_changes": 0, "recent_deals": 0}


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def get_dashboard_summary(repo: Repository, now: Optional[datetime] = None) -> dict:
    """Requirements and inventory added, and deals closed, since the 1st of the month."""
    since = month_start(now or datetime.now(timezone.utc))
    try:
        new_requirements, inventory_changes, recent_deals = await asyncio.gather(
            repo.count(Requirement, Gte(Requirement.date_created, since)),
            repo.count(Inventory, Gte(Inventory.date_added, since)),
            repo.count(
                Deal,
                Gte(Deal.updated_at, since) & Eq(Deal.status, DealStatus.CLOSED.value),
            ),
        )
    except Exception:
        logger.exception("Dashboard summary failed, returning zeros")
        return dict(EMPTY_SUMMARY)

    return {
        "new_requirements": new_requirements,
        "inventory_changes": inventory_changes,
        "recent_deals": recent_deals,
    }
