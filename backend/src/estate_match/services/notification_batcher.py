"""Notification batcher - digest text and recipient batches for the mailer."""

from typing import Sequence, TypeVar

from estate_match.domain.errors import ValidationError

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 50

PENDING_SUBJECT = "Pending Requirements and Deals"
REQUIREMENTS_HEADER = "The following requirements have been unassigned for over seven days: "
DEALS_HEADER = "The following deals have not been updated in over seven days: "


def chunk_recipients(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive groups of ``size``; the last holds the rest.

    >>> [len(c) for c in chunk_recipients(list(range(120)), 50)]
    [50, 50, 20]
    """
    if size <= 0:
        raise ValidationError(f"Chunk size must be positive, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def build_digest(deals: Sequence, requirements: Sequence) -> str:
    """Plain-text digest: stale requirements by demand, then stale deals by id."""
    lines = [REQUIREMENTS_HEADER]
    lines += [f"Requirement {i}: {req.demand}" for i, req in enumerate(requirements, start=1)]
    lines += ["", "", DEALS_HEADER]
    lines += [f"Deal {i}: {deal.id}" for i, deal in enumerate(deals, start=1)]
    return "\n".join(lines) + "\n"


def build_messages(
    recipients: Sequence[str],
    text: str,
    *,
    subject: str,
    sender: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[dict]:
    """One ``{from, to, subject, text}`` message per recipient batch."""
    return [
        {"from": sender, "to": batch, "subject": subject, "text": text}
        for batch in chunk_recipients(recipients, batch_size)
    ]
