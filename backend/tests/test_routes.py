"""HTTP surface tests via httpx ASGITransport against a per-test database."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from estate_match.app.config import get_settings
from estate_match.app.main import app
from estate_match.infra.database import get_session_factory
from estate_match.services import email_service


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _auth(secret: str) -> dict:
    return {"Authorization": f"Bearer {secret}"}


@pytest.fixture
def api():
    return _auth(get_settings().api_token)


class TestAuth:
    async def test_missing_token(self, client):
        resp = await client.get("/api/deals/open")
        assert resp.status_code == 401

    async def test_wrong_token(self, client):
        resp = await client.get("/api/deals/open", headers=_auth("wrong"))
        assert resp.status_code == 401

    async def test_health_is_public(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200


class TestDealRoutes:
    async def test_lifecycle_over_http(self, client, api, make_requirement, make_inventory):
        req = await make_requirement(demand="Layla")
        inv = await make_inventory()

        resp = await client.post("/api/deals", json={"requirement_id": req.id}, headers=api)
        assert resp.status_code == 201
        deal = resp.json()
        assert deal["status"] == "received"

        for status in ("open", "assigned"):
            resp = await client.patch(
                f"/api/deals/{deal['id']}/status", json={"status": status}, headers=api
            )
            assert resp.status_code == 200
            assert resp.json()["status"] == status

        resp = await client.post(
            f"/api/deals/{deal['id']}/final-inventory",
            json={"inventory_id": inv.id},
            headers=api,
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "negotiation"

        resp = await client.get(f"/api/deals/{deal['id']}", headers=api)
        body = resp.json()
        assert body["requirement"]["demand"] == "Layla"
        assert body["requirement"]["matching_status"] == "negotiation"

    async def test_illegal_transition_is_409(self, client, api, make_requirement):
        req = await make_requirement()
        deal = (await client.post("/api/deals", json={"requirement_id": req.id}, headers=api)).json()

        resp = await client.patch(
            f"/api/deals/{deal['id']}/status", json={"status": "closed"}, headers=api
        )

        assert resp.status_code == 409

    async def test_sold_final_inventory_is_400(self, client, api, make_requirement, make_inventory):
        req = await make_requirement()
        inv = await make_inventory(unit_status="sold")
        deal = (await client.post("/api/deals", json={"requirement_id": req.id}, headers=api)).json()

        resp = await client.post(
            f"/api/deals/{deal['id']}/final-inventory",
            json={"inventory_id": inv.id},
            headers=api,
        )

        assert resp.status_code == 400

    async def test_unknown_status_value_is_422(self, client, api, make_requirement):
        req = await make_requirement()
        deal = (await client.post("/api/deals", json={"requirement_id": req.id}, headers=api)).json()
        resp = await client.patch(
            f"/api/deals/{deal['id']}/status", json={"status": "archived"}, headers=api
        )
        assert resp.status_code == 422

    async def test_unknown_requirement_is_404(self, client, api):
        resp = await client.post("/api/deals", json={"requirement_id": "missing"}, headers=api)
        assert resp.status_code == 404

    async def test_open_and_closed_lists(self, client, api, make_requirement, make_deal):
        req = await make_requirement()
        await make_deal(req.id, status="open")
        await make_deal(req.id, status="closed")

        open_resp = await client.get("/api/deals/open", headers=api)
        closed_resp = await client.get("/api/deals/closed", params={"limit": 5}, headers=api)

        assert [row["deal"]["status"] for row in open_resp.json()] == ["open"]
        assert [row["deal"]["status"] for row in closed_resp.json()] == ["closed"]

    async def test_assignments(self, client, api, make_requirement, make_deal, make_inventory):
        req = await make_requirement()
        deal = await make_deal(req.id, status="open")
        inv = await make_inventory()

        resp = await client.post(
            f"/api/deals/{deal.id}/inventories",
            json={"inventory_id": inv.id, "remarks": "sea view"},
            headers=api,
        )
        assert resp.status_code == 201

        listed = await client.get(f"/api/deals/{deal.id}/inventories", headers=api)
        assert [i["id"] for i in listed.json()] == [inv.id]

        for _ in range(2):
            resp = await client.delete(f"/api/deals/{deal.id}/inventories/{inv.id}", headers=api)
            assert resp.json() == {"success": True}

        listed = await client.get(f"/api/deals/{deal.id}/inventories", headers=api)
        assert listed.json() == []


class TestCandidateRoute:
    async def test_candidates(self, client, api, make_requirement, make_inventory):
        req = await make_requirement(budget="1.5-2.0")
        hit = await make_inventory(selling_price_million=1.7)
        await make_inventory(selling_price_million=3.0)

        resp = await client.get(f"/api/requirements/{req.id}/candidates", headers=api)

        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()] == [hit.id]

    async def test_bad_budget_is_400(self, client, api, make_requirement):
        req = await make_requirement(budget="ask agent")
        resp = await client.get(f"/api/requirements/{req.id}/candidates", headers=api)
        assert resp.status_code == 400

    async def test_unknown_requirement_is_404(self, client, api):
        resp = await client.get("/api/requirements/missing/candidates", headers=api)
        assert resp.status_code == 404


class TestWebhookRoutes:
    async def test_seven_days_passed_requires_cron_secret(self, client):
        resp = await client.get("/api/webhooks/seven-days-passed")
        assert resp.status_code == 401

    async def test_record_created_requires_webhook_secret(self, client):
        resp = await client.post(
            "/api/webhooks/db-record-created",
            json={"type": "INSERT", "table": "requirements"},
            headers=_auth("wrong"),
        )
        assert resp.status_code == 401

    async def test_seven_days_passed_sends_digest(
        self, client, make_user, make_requirement
    ):
        await make_user("ops@test.com")
        await make_requirement(
            demand="Idle", date_created=datetime.now(timezone.utc) - timedelta(days=8)
        )

        with patch.object(email_service, "send_batch", new=AsyncMock(return_value=1)) as send:
            resp = await client.get(
                "/api/webhooks/seven-days-passed", headers=_auth(get_settings().cron_secret)
            )

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "batches": 1}
        (messages,), _ = send.call_args
        assert messages[0]["to"] == ["ops@test.com"]
        assert "Requirement 1: Idle" in messages[0]["text"]

    async def test_record_created_notifies_subscribers(self, client, make_user):
        await make_user("broker@test.com")
        payload = {"type": "INSERT", "table": "inventories", "record": {"id": "x"}}

        with patch.object(email_service, "send_batch", new=AsyncMock(return_value=1)) as send:
            resp = await client.post(
                "/api/webhooks/db-record-created",
                json=payload,
                headers=_auth(get_settings().webhook_secret),
            )

        assert resp.status_code == 200
        (messages,), _ = send.call_args
        assert messages[0]["subject"] == "New Inventory Created"

    async def test_record_created_ignores_other_events(self, client):
        with patch.object(email_service, "send_batch", new=AsyncMock()) as send:
            resp = await client.post(
                "/api/webhooks/db-record-created",
                json={"type": "UPDATE", "table": "inventories"},
                headers=_auth(get_settings().webhook_secret),
            )

        assert resp.json() == {"success": True, "batches": 0}
        send.assert_not_called()


class TestDashboardRoute:
    async def test_summary_shape(self, client, api, make_requirement):
        await make_requirement()
        resp = await client.get("/api/dashboard/summary", headers=api)
        assert resp.status_code == 200
        assert set(resp.json()) == {"new_requirements", "inventory_changes", "recent_deals"}
        assert resp.json()["new_requirements"] == 1
