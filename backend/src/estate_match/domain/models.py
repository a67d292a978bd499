"""SQLAlchemy ORM models for requirement/inventory matching.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- Float for prices, areas and percentages
- DateTime for timestamps (stored as UTC)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)

from estate_match.infra.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Users / subscriptions
# ---------------------------------------------------------------------------


class User(Base):
    """Platform user. Brokers own inventory, anyone can subscribe to notices."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255))
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="guest")  # UserRole
    is_disabled = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class NotificationPreference(Base):
    """Per-user opt-ins for the notification emails."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    new_inventory_notif = Column(Boolean, default=True, nullable=False)
    new_requirement_notif = Column(Boolean, default=True, nullable=False)
    pending_requirement_notif = Column(Boolean, default=True, nullable=False)


# ---------------------------------------------------------------------------
# Demand / supply
# ---------------------------------------------------------------------------


class Requirement(Base):
    """A demand record: what a buyer is looking for."""

    __tablename__ = "requirements"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    demand = Column(String(255), nullable=False)  # person or entity making the request
    description = Column(Text)
    preferred_type = Column(String(100), nullable=False)
    preferred_location = Column(String(255), nullable=False)
    budget = Column(String(50), nullable=False)  # e.g. "1.5-2.0", millions
    rtm_offplan = Column(String(20), default="NONE")  # RtmOffplan
    phpp = Column(Boolean, default=False, nullable=False)
    preferred_square_footage = Column(Float, nullable=True)
    preferred_roi = Column(Float, nullable=True)
    category = Column(String(50))
    remarks = Column(Text)
    date_created = Column(DateTime, default=_utcnow, nullable=False, index=True)

    status = Column(String(20), nullable=False, default="active")  # RequirementStatus
    matching_status = Column(String(20), nullable=True)  # MatchingStatus, set once a deal exists

    def __repr__(self):
        return f"<Requirement(id={self.id}, demand='{self.demand}', status='{self.status}')>"


class Inventory(Base):
    """A supply record: a unit that can be offered against requirements."""

    __tablename__ = "inventories"

    id = Column(String(36), primary_key=True, default=_uuid)
    broker_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    property_type = Column(String(255))
    project_name = Column(String(255))
    description = Column(Text)
    location = Column(String(255))
    unit_number = Column(String(20))
    unit_status = Column(String(20), nullable=False, default="available", index=True)  # InventoryStatus
    area_sqft = Column(Float)
    selling_price_million = Column(Float)
    roi_gross = Column(Float, default=0)  # 0 means not tracked
    phpp_eligible = Column(Boolean, default=False, nullable=False)
    remarks = Column(Text)
    date_added = Column(DateTime, default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_inventories_type_location", "property_type", "location"),
    )

    def __repr__(self):
        return f"<Inventory(id={self.id}, type='{self.property_type}', status='{self.unit_status}')>"


# ---------------------------------------------------------------------------
# Deals
# ---------------------------------------------------------------------------


class Deal(Base):
    """Links one requirement to the inventory considered for it."""

    __tablename__ = "deals"

    id = Column(String(36), primary_key=True, default=_uuid)
    requirement_id = Column(
        String(36), ForeignKey("requirements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default="received", index=True)  # DealStatus
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False, index=True)
    payment_plan = Column(Text)
    outstanding_amount = Column(String(50))
    milestones = Column(Text)
    # Final inventory the deal settled on
    inventory_id = Column(String(36), ForeignKey("inventories.id", ondelete="SET NULL"), nullable=True)
    remarks = Column(Text)

    def __repr__(self):
        return f"<Deal(id={self.id}, requirement_id={self.requirement_id}, status='{self.status}')>"


class InventoryAssignedDeal(Base):
    """Candidate inventory under consideration for a deal.

    No uniqueness on (deal_id, inventory_id): repeated assignments add rows
    unless the registry is configured to refuse them.
    """

    __tablename__ = "inventory_assigned_deals"

    id = Column(String(36), primary_key=True, default=_uuid)
    deal_id = Column(String(36), ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_id = Column(String(36), ForeignKey("inventories.id", ondelete="CASCADE"), nullable=False)
    remarks = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
