"""Pending informer - the scheduled staleness digest and new-record notices.

Both jobs only assemble messages; the caller hands them to the delivery
channel (``email_service.send_batch``) without waiting on the outcome.
"""

import asyncio
import logging

from estate_match.app.config import Settings
from estate_match.domain.enums import RecordTable
from estate_match.infra.repository import Repository
from estate_match.services import subscription_service
from estate_match.services.notification_batcher import (
    PENDING_SUBJECT,
    build_digest,
    build_messages,
)
from estate_match.services.staleness_monitor import StalenessMonitor

logger = logging.getLogger(__name__)

NEW_RECORD_NOTICES = {
    RecordTable.REQUIREMENTS: (
        "New Requirement Created",
        "A new requirement has been created. Please check your dashboard for more details.",
        subscription_service.get_requirement_subscribers,
    ),
    RecordTable.INVENTORIES: (
        "New Inventory Created",
        "A new inventory has been created. Please check your dashboard for more details.",
        subscription_service.get_inventory_subscribers,
    ),
}


async def build_pending_digest(repo: Repository, settings: Settings) -> list[dict]:
    """Collect stale deals/requirements and subscribers, return batch messages.

    The staleness sweep and the subscriber lookup are independent reads and
    run concurrently; any failure fails the whole job.
    """
    monitor = StalenessMonitor(repo, stale_after_days=settings.stale_after_days)
    report, subscribers = await asyncio.gather(
        monitor.collect(requirement_limit=settings.stale_requirement_limit),
        subscription_service.get_pending_requirement_subscribers(repo),
    )

    text = build_digest(report.deals, report.requirements)
    messages = build_messages(
        subscribers,
        text,
        subject=PENDING_SUBJECT,
        sender=f"Pending Informer <{settings.pending_informer_from}>",
        batch_size=settings.notification_batch_size,
    )
    logger.info(
        "Pending digest: %d deals, %d requirements, %d subscribers in %d batches",
        len(report.deals),
        len(report.requirements),
        len(subscribers),
        len(messages),
    )
    return messages


async def build_new_record_notice(
    repo: Repository,
    settings: Settings,
    table: RecordTable,
) -> list[dict]:
    """Batch messages announcing a new requirement or inventory row."""
    subject, text, lookup = NEW_RECORD_NOTICES[table]
    subscribers = await lookup(repo)
    return build_messages(
        subscribers,
        text,
        subject=subject,
        sender=f"Create Informer <{settings.create_informer_from}>",
        batch_size=settings.notification_batch_size,
    )
