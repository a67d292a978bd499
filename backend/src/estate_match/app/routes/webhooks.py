"""Scheduled and database-triggered notification endpoints.

Both handlers build their messages synchronously and hand delivery to a
background task, so the response never waits on the email provider.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from estate_match.app.config import get_settings
from estate_match.app.deps import (
    get_repository,
    to_http_exception,
    verify_cron_secret,
    verify_webhook_secret,
)
from estate_match.domain.errors import StorageError
from estate_match.domain.schemas import RecordCreatedPayload
from estate_match.infra.repository import Repository
from estate_match.services import email_service
from estate_match.services.pending_informer import (
    build_new_record_notice,
    build_pending_digest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.get("/seven-days-passed", dependencies=[Depends(verify_cron_secret)])
async def seven_days_passed(
    background_tasks: BackgroundTasks,
    repo: Repository = Depends(get_repository),
):
    """Send the stale deals / unassigned requirements digest to subscribers."""
    try:
        messages = await build_pending_digest(repo, get_settings())
    except StorageError as e:
        logger.error("Pending digest failed: %s", e)
        raise to_http_exception(e)

    if messages:
        background_tasks.add_task(email_service.send_batch, messages)
    return {"success": True, "batches": len(messages)}


@router.post("/db-record-created", dependencies=[Depends(verify_webhook_secret)])
async def db_record_created(
    payload: RecordCreatedPayload,
    background_tasks: BackgroundTasks,
    repo: Repository = Depends(get_repository),
):
    """Notify subscribers about a newly inserted requirement or inventory row."""
    table = payload.inserted_table
    if table is None:
        logger.info("Ignoring %s event on table %s", payload.type, payload.table)
        return {"success": True, "batches": 0}

    try:
        messages = await build_new_record_notice(repo, get_settings(), table)
    except StorageError as e:
        raise to_http_exception(e)

    if messages:
        background_tasks.add_task(email_service.send_batch, messages)
    return {"success": True, "batches": len(messages)}
