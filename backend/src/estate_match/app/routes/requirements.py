"""Candidate inventory lookup for a requirement."""

from fastapi import APIRouter, Depends

from estate_match.app.deps import get_match_engine, to_http_exception, verify_api_token
from estate_match.domain.errors import NotFoundError, StorageError, ValidationError
from estate_match.domain.schemas import InventoryResponse
from estate_match.services.match_engine import MatchEngine

router = APIRouter(
    prefix="/api/requirements",
    tags=["requirements"],
    dependencies=[Depends(verify_api_token)],
)


@router.get("/{requirement_id}/candidates", response_model=list[InventoryResponse])
async def get_candidates(
    requirement_id: str,
    engine: MatchEngine = Depends(get_match_engine),
):
    """Available inventory satisfying every criterion of the requirement.

    An empty list is a normal result. An unparsable budget returns 400.
    """
    try:
        return await engine.find_candidates(requirement_id)
    except (NotFoundError, ValidationError, StorageError) as e:
        raise to_http_exception(e)
