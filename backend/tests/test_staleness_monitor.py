"""Tests for stale deal and unassigned requirement detection."""

from datetime import datetime, timedelta, timezone

import pytest

from estate_match.services.staleness_monitor import StalenessMonitor

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def monitor(repo):
    return StalenessMonitor(repo, clock=lambda: NOW)


class TestStaleDeals:
    async def test_threshold(self, monitor, make_requirement, make_deal):
        req = await make_requirement()
        stale = await make_deal(req.id, status="open", updated_at=days_ago(8))
        await make_deal(req.id, status="open", updated_at=days_ago(6))

        deals = await monitor.get_deals_not_updated_in_seven_days()

        assert [d.id for d in deals] == [stale.id]

    @pytest.mark.parametrize("status", ["closed", "rejected"])
    async def test_terminal_deals_excluded(self, monitor, make_requirement, make_deal, status):
        req = await make_requirement()
        await make_deal(req.id, status=status, updated_at=days_ago(30))
        assert await monitor.get_deals_not_updated_in_seven_days() == []

    async def test_oldest_first(self, monitor, make_requirement, make_deal):
        req = await make_requirement()
        newer = await make_deal(req.id, status="assigned", updated_at=days_ago(9))
        older = await make_deal(req.id, status="received", updated_at=days_ago(20))

        deals = await monitor.get_deals_not_updated_in_seven_days()

        assert [d.id for d in deals] == [older.id, newer.id]

    async def test_custom_threshold(self, repo, make_requirement, make_deal):
        req = await make_requirement()
        deal = await make_deal(req.id, status="open", updated_at=days_ago(4))
        monitor = StalenessMonitor(repo, stale_after_days=3, clock=lambda: NOW)
        assert [d.id for d in await monitor.get_deals_not_updated_in_seven_days()] == [deal.id]


class TestUnassignedRequirements:
    async def test_threshold(self, monitor, make_requirement):
        stale = await make_requirement(date_created=days_ago(8))
        await make_requirement(date_created=days_ago(6))

        reqs = await monitor.get_unassigned_requirements_not_updated_in_seven_days()

        assert [r.id for r in reqs] == [stale.id]

    async def test_requirement_with_deal_excluded(self, monitor, make_requirement, make_deal):
        dealt = await make_requirement(date_created=days_ago(10))
        await make_deal(dealt.id, status="open")
        idle = await make_requirement(date_created=days_ago(10))

        reqs = await monitor.get_unassigned_requirements_not_updated_in_seven_days()

        assert [r.id for r in reqs] == [idle.id]

    async def test_limit_keeps_oldest(self, monitor, make_requirement):
        made = [await make_requirement(date_created=days_ago(8 + i)) for i in range(5)]

        reqs = await monitor.get_unassigned_requirements_not_updated_in_seven_days(limit=2)

        assert [r.id for r in reqs] == [made[4].id, made[3].id]


class TestCollect:
    async def test_collects_both(self, monitor, make_requirement, make_deal):
        dealt = await make_requirement(date_created=days_ago(30))
        deal = await make_deal(dealt.id, status="negotiation", updated_at=days_ago(10))
        idle = await make_requirement(demand="Idle", date_created=days_ago(12))

        report = await monitor.collect(requirement_limit=10)

        assert [d.id for d in report.deals] == [deal.id]
        assert [r.id for r in report.requirements] == [idle.id]
        assert not report.is_empty

    async def test_empty(self, monitor):
        report = await monitor.collect()
        assert report.is_empty

    def test_cutoff_uses_clock(self, monitor):
        assert monitor.cutoff() == NOW - timedelta(days=7)
