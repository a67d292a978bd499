"""Tests for the month-to-date dashboard summary."""

from datetime import datetime, timezone

from estate_match.domain.errors import StorageError
from estate_match.infra.repository import Repository
from estate_match.services.dashboard_service import (
    EMPTY_SUMMARY,
    get_dashboard_summary,
    month_start,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
LAST_MONTH = datetime(2026, 2, 20, tzinfo=timezone.utc)


def test_month_start():
    assert month_start(NOW) == datetime(2026, 3, 1, tzinfo=timezone.utc)


async def test_counts_since_first_of_month(repo, make_requirement, make_inventory, make_deal):
    this_month = await make_requirement(date_created=datetime(2026, 3, 2, tzinfo=timezone.utc))
    await make_requirement(date_created=LAST_MONTH)
    await make_inventory(date_added=datetime(2026, 3, 10, tzinfo=timezone.utc))
    await make_inventory(date_added=LAST_MONTH)
    await make_deal(this_month.id, status="closed",
                    updated_at=datetime(2026, 3, 5, tzinfo=timezone.utc))
    await make_deal(this_month.id, status="open",
                    updated_at=datetime(2026, 3, 5, tzinfo=timezone.utc))
    await make_deal(this_month.id, status="closed", updated_at=LAST_MONTH)

    summary = await get_dashboard_summary(repo, now=NOW)

    assert summary == {"new_requirements": 1, "inventory_changes": 1, "recent_deals": 1}


async def test_storage_failure_degrades_to_zeros(repo, monkeypatch):
    async def failing_count(self, *args, **kwargs):
        raise StorageError("count failed")

    monkeypatch.setattr(Repository, "count", failing_count)

    assert await get_dashboard_summary(repo, now=NOW) == EMPTY_SUMMARY
