"""Shared test infrastructure for the Estate Match test suite.

Provides:
- session_factory: async SQLite session factory over a fresh file database
- repo: Repository built on that factory
- make_requirement / make_inventory / make_deal / make_user: row factories
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from estate_match.infra.database import Base

import estate_match.domain.models  # noqa: F401

from estate_match.domain.models import (
    Deal,
    Inventory,
    NotificationPreference,
    Requirement,
    User,
)
from estate_match.infra.repository import Repository


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def session_factory(tmp_path):
    """Session factory over a per-test SQLite file with all tables created.

    A file database (not in-memory) gives every session its own connection,
    so concurrent repository reads behave as they do in production.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def repo(session_factory):
    return Repository(session_factory)


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_requirement(repo):
    """Factory that inserts a Requirement row.

    Usage:
        req = await make_requirement(budget="1.5-2.0", preferred_roi=6)
    """
    async def _factory(
        demand: str = "Test Buyer",
        preferred_type: str = "Apartment",
        preferred_location: str = "Dubai Marina",
        budget: str = "1.5-2.0",
        **fields,
    ) -> Requirement:
        values = {
            "id": str(uuid.uuid4()),
            "demand": demand,
            "preferred_type": preferred_type,
            "preferred_location": preferred_location,
            "budget": budget,
        }
        values.update(fields)
        return await repo.insert(Requirement, values)

    return _factory


@pytest.fixture
def make_inventory(repo):
    """Factory that inserts an Inventory row matching the default requirement."""
    async def _factory(
        property_type: str = "Apartment",
        location: str = "Dubai Marina",
        selling_price_million: float = 1.8,
        unit_status: str = "available",
        **fields,
    ) -> Inventory:
        values = {
            "id": str(uuid.uuid4()),
            "property_type": property_type,
            "location": location,
            "selling_price_million": selling_price_million,
            "unit_status": unit_status,
            "area_sqft": 1000.0,
            "roi_gross": 0,
        }
        values.update(fields)
        return await repo.insert(Inventory, values)

    return _factory


@pytest.fixture
def make_deal(repo):
    """Factory that inserts a Deal row directly, bypassing the lifecycle."""
    async def _factory(requirement_id: str, status: str = "received", **fields) -> Deal:
        values = {"id": str(uuid.uuid4()), "requirement_id": requirement_id, "status": status}
        values.update(fields)
        return await repo.insert(Deal, values)

    return _factory


@pytest.fixture
def make_user(repo):
    """Factory that inserts a User with notification preferences."""
    async def _factory(
        email: str,
        is_disabled: bool = False,
        new_inventory_notif: bool = True,
        new_requirement_notif: bool = True,
        pending_requirement_notif: bool = True,
    ) -> User:
        user = await repo.insert(
            User,
            {"id": str(uuid.uuid4()), "email": email, "is_disabled": is_disabled},
        )
        await repo.insert(
            NotificationPreference,
            {
                "user_id": user.id,
                "new_inventory_notif": new_inventory_notif,
                "new_requirement_notif": new_requirement_notif,
                "pending_requirement_notif": pending_requirement_notif,
            },
        )
        return user

    return _factory
