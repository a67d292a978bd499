"""Subscriber lookups: who opted into which notification emails."""

from estate_match.domain.models import NotificationPreference, User
from estate_match.infra.filters import And, Eq
from estate_match.infra.repository import Join, Repository

_PREFERENCE_JOIN = Join(NotificationPreference, NotificationPreference.user_id == User.id)


async def _subscribers(repo: Repository, flag) -> list[str]:
    users = await repo.select(
        User,
        And(Eq(flag, True), Eq(User.is_disabled, False)),
        joins=[_PREFERENCE_JOIN],
        order_by=[User.email.asc()],
    )
    return [user.email for user in users]


async def get_requirement_subscribers(repo: Repository) -> list[str]:
    return await _subscribers(repo, NotificationPreference.new_requirement_notif)


async def get_inventory_subscribers(repo: Repository) -> list[str]:
    return await _subscribers(repo, NotificationPreference.new_inventory_notif)


async def get_pending_requirement_subscribers(repo: Repository) -> list[str]:
    return await _subscribers(repo, NotificationPreference.pending_requirement_notif)
