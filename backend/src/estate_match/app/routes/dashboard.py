"""Month-to-date dashboard counts."""

from fastapi import APIRouter, Depends

from estate_match.app.deps import get_repository, verify_api_token
from estate_match.domain.schemas import DashboardSummary
from estate_match.infra.repository import Repository
from estate_match.services.dashboard_service import get_dashboard_summary

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(verify_api_token)],
)


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(repo: Repository = Depends(get_repository)):
    return await get_dashboard_summary(repo)
