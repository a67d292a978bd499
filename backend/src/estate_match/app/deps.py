"""FastAPI dependencies: bearer-token gates and service construction."""

import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import async_sessionmaker

from estate_match.app.config import get_settings
from estate_match.domain.errors import NotFoundError, StorageError, ValidationError
from estate_match.infra.database import get_session_factory
from estate_match.infra.repository import Repository
from estate_match.services.assignment_registry import AssignmentRegistry
from estate_match.services.deal_lifecycle import DealLifecycle
from estate_match.services.deal_state_machine import InvalidTransitionError
from estate_match.services.match_engine import MatchEngine

logger = logging.getLogger(__name__)


def to_http_exception(exc: Exception) -> HTTPException:
    """Map core errors to HTTP status codes."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(status_code=503, detail="Storage unavailable")
    return HTTPException(status_code=500, detail="Internal error")


def _check_bearer(authorization: str | None, secret: str, scope: str):
    if not authorization or authorization != f"Bearer {secret}":
        logger.warning("Rejected %s request: bad or missing bearer token", scope)
        raise HTTPException(status_code=401, detail="Unauthorized")


async def verify_api_token(authorization: str | None = Header(default=None)):
    """Interactive callers: deals, candidates, dashboard."""
    _check_bearer(authorization, get_settings().api_token, "api")


async def verify_cron_secret(authorization: str | None = Header(default=None)):
    """Scheduled trigger for the staleness digest."""
    _check_bearer(authorization, get_settings().cron_secret, "cron")


async def verify_webhook_secret(authorization: str | None = Header(default=None)):
    """Database record-created webhook."""
    _check_bearer(authorization, get_settings().webhook_secret, "webhook")


def get_repository(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> Repository:
    return Repository(session_factory)


def get_match_engine(repo: Repository = Depends(get_repository)) -> MatchEngine:
    return MatchEngine(repo)


def get_deal_lifecycle(repo: Repository = Depends(get_repository)) -> DealLifecycle:
    return DealLifecycle(repo)


def get_assignment_registry(repo: Repository = Depends(get_repository)) -> AssignmentRegistry:
    return AssignmentRegistry(
        repo, enforce_uniqueness=get_settings().enforce_assignment_uniqueness
    )
