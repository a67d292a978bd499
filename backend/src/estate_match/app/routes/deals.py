"""Deal lifecycle and candidate assignment routes."""

from fastapi import APIRouter, Depends, Query

from estate_match.app.deps import (
    get_assignment_registry,
    get_deal_lifecycle,
    to_http_exception,
    verify_api_token,
)
from estate_match.domain.errors import NotFoundError, StorageError, ValidationError
from estate_match.domain.schemas import (
    AssignmentCreate,
    AssignmentResponse,
    DealCreate,
    DealResponse,
    DealStatusUpdate,
    DealWithRequirement,
    FinalInventoryRequest,
    InventoryResponse,
    RequirementResponse,
)
from estate_match.services.assignment_registry import AssignmentRegistry
from estate_match.services.deal_lifecycle import DealLifecycle

router = APIRouter(
    prefix="/api/deals",
    tags=["deals"],
    dependencies=[Depends(verify_api_token)],
)


def _pair(deal, requirement) -> DealWithRequirement:
    return DealWithRequirement(
        deal=DealResponse.model_validate(deal),
        requirement=RequirementResponse.model_validate(requirement),
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("", response_model=DealResponse, status_code=201)
async def create_deal(
    body: DealCreate,
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    """Open a deal for a requirement (deal 'received', requirement 'open')."""
    try:
        return await lifecycle.create_deal(body.requirement_id)
    except (NotFoundError, ValidationError, StorageError) as e:
        raise to_http_exception(e)


@router.get("/open", response_model=list[DealWithRequirement])
async def list_open_deals(
    search: str | None = Query(default=None),
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    try:
        rows = await lifecycle.get_open_deals(search)
    except StorageError as e:
        raise to_http_exception(e)
    return [_pair(deal, req) for deal, req in rows]


@router.get("/closed", response_model=list[DealWithRequirement])
async def list_closed_deals(
    search: str | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    try:
        rows = await lifecycle.get_closed_deals(search, limit=limit)
    except StorageError as e:
        raise to_http_exception(e)
    return [_pair(deal, req) for deal, req in rows]


@router.get("/{deal_id}", response_model=DealWithRequirement)
async def get_deal(
    deal_id: str,
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    try:
        deal, requirement = await lifecycle.get_deal_with_requirement(deal_id)
    except (NotFoundError, StorageError) as e:
        raise to_http_exception(e)
    return _pair(deal, requirement)


@router.patch("/{deal_id}/status", response_model=DealResponse)
async def update_deal_status(
    deal_id: str,
    body: DealStatusUpdate,
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    """Move a deal forward. Illegal transitions return 409."""
    try:
        return await lifecycle.update_status(
            deal_id,
            body.status,
            payment_plan=body.payment_plan,
            outstanding_amount=body.outstanding_amount,
            milestones=body.milestones,
            inventory_id=body.inventory_id,
            remarks=body.remarks,
        )
    except (NotFoundError, ValidationError, StorageError) as e:
        raise to_http_exception(e)


@router.post("/{deal_id}/final-inventory", response_model=DealResponse)
async def assign_final_inventory(
    deal_id: str,
    body: FinalInventoryRequest,
    lifecycle: DealLifecycle = Depends(get_deal_lifecycle),
):
    """Settle on one inventory item: deal to negotiation, inventory reserved."""
    try:
        return await lifecycle.assign_final_inventory(deal_id, body.inventory_id, body.remarks)
    except (NotFoundError, ValidationError, StorageError) as e:
        raise to_http_exception(e)


# ---------------------------------------------------------------------------
# Candidate assignments
# ---------------------------------------------------------------------------


@router.get("/{deal_id}/inventories", response_model=list[InventoryResponse])
async def list_assigned_inventories(
    deal_id: str,
    registry: AssignmentRegistry = Depends(get_assignment_registry),
):
    try:
        return await registry.list_assigned(deal_id)
    except StorageError as e:
        raise to_http_exception(e)


@router.post("/{deal_id}/inventories", response_model=AssignmentResponse, status_code=201)
async def assign_inventory(
    deal_id: str,
    body: AssignmentCreate,
    registry: AssignmentRegistry = Depends(get_assignment_registry),
):
    try:
        return await registry.assign(deal_id, body.inventory_id, body.remarks)
    except (NotFoundError, ValidationError, StorageError) as e:
        raise to_http_exception(e)


@router.delete("/{deal_id}/inventories/{inventory_id}")
async def unassign_inventory(
    deal_id: str,
    inventory_id: str,
    registry: AssignmentRegistry = Depends(get_assignment_registry),
):
    try:
        ok = await registry.unassign(deal_id, inventory_id)
    except StorageError as e:
        raise to_http_exception(e)
    return {"success": ok}
