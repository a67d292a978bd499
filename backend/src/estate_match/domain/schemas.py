"""Pydantic v2 schemas for API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from estate_match.domain.enums import DealStatus, RecordTable


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RequirementResponse(BaseModel):
    """Requirement as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    demand: str
    preferred_type: str
    preferred_location: str
    budget: str
    rtm_offplan: str | None = None
    phpp: bool = False
    preferred_square_footage: float | None = None
    preferred_roi: float | None = None
    status: str
    matching_status: str | None = None
    date_created: datetime


class InventoryResponse(BaseModel):
    """Inventory unit as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    property_type: str | None = None
    project_name: str | None = None
    location: str | None = None
    unit_number: str | None = None
    unit_status: str
    area_sqft: float | None = None
    selling_price_million: float | None = None
    roi_gross: float | None = None
    phpp_eligible: bool = False
    date_added: datetime


# ---------------------------------------------------------------------------
# Deals
# ---------------------------------------------------------------------------


class DealCreate(BaseModel):
    """Request body for creating a deal from a requirement."""

    requirement_id: str


class DealResponse(BaseModel):
    """Deal as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    requirement_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    payment_plan: str | None = None
    outstanding_amount: str | None = None
    milestones: str | None = None
    inventory_id: str | None = None
    remarks: str | None = None


class DealWithRequirement(BaseModel):
    deal: DealResponse
    requirement: RequirementResponse


class DealStatusUpdate(BaseModel):
    """Request body for moving a deal along its lifecycle."""

    status: DealStatus
    payment_plan: str | None = None
    outstanding_amount: str | None = None
    milestones: str | None = None
    inventory_id: str | None = None
    remarks: str | None = None


class FinalInventoryRequest(BaseModel):
    inventory_id: str
    remarks: str | None = None


class AssignmentCreate(BaseModel):
    """Request body for attaching a candidate inventory to a deal."""

    inventory_id: str
    remarks: str | None = Field(default=None, max_length=2000)


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    deal_id: str
    inventory_id: str
    remarks: str | None = None


# ---------------------------------------------------------------------------
# Webhooks / dashboard
# ---------------------------------------------------------------------------


class RecordCreatedPayload(BaseModel):
    """Database webhook payload for an inserted row."""

    model_config = ConfigDict(extra="ignore")

    type: str
    table: str
    record: dict | None = None

    @property
    def inserted_table(self) -> RecordTable | None:
        if self.type != "INSERT":
            return None
        try:
            return RecordTable(self.table)
        except ValueError:
            return None


class DashboardSummary(BaseModel):
    new_requirements: int = 0
    inventory_changes: int = 0
    recent_deals: int = 0
