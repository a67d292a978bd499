"""Deal state machine - validates status transitions.

    received -> open -> assigned -> negotiation -> closed
                                               \\-> rejected

Moves only go forward along this graph, so rejection is only possible from
negotiation.  Closed and rejected are terminal.
"""

from estate_match.domain.enums import DealStatus, MatchingStatus
from estate_match.domain.errors import ValidationError


class InvalidTransitionError(ValidationError):
    """Raised when a deal status transition is not allowed."""

    def __init__(
        self,
        current_status: DealStatus,
        target_status: DealStatus,
        reason: str,
    ):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


S = DealStatus

TRANSITION_MAP: dict[DealStatus, set[DealStatus]] = {
    S.RECEIVED: {S.OPEN},
    S.OPEN: {S.ASSIGNED},
    S.ASSIGNED: {S.NEGOTIATION},
    S.NEGOTIATION: {S.CLOSED, S.REJECTED},
}

TERMINAL_STATES: set[DealStatus] = {S.CLOSED, S.REJECTED}

OPEN_STATES: set[DealStatus] = {s for s in DealStatus if s not in TERMINAL_STATES}

# Deal statuses that are mirrored onto Requirement.matching_status
MATCHING_STATUS_FOR: dict[DealStatus, MatchingStatus] = {
    S.OPEN: MatchingStatus.OPEN,
    S.ASSIGNED: MatchingStatus.ASSIGNED,
    S.NEGOTIATION: MatchingStatus.NEGOTIATION,
    S.CLOSED: MatchingStatus.CLOSED,
    S.REJECTED: MatchingStatus.REJECTED,
}


def coerce_status(value) -> DealStatus:
    """Accept a DealStatus or its string value."""
    if isinstance(value, DealStatus):
        return value
    try:
        return DealStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown deal status {value!r}") from None


def validate_transition(current_status, target_status) -> bool:
    """Return True if the transition is valid. Raise InvalidTransitionError if not."""
    current = coerce_status(current_status)
    target = coerce_status(target_status)

    if current in TERMINAL_STATES:
        raise InvalidTransitionError(current, target, "deal is already terminal")

    if target in TRANSITION_MAP.get(current, set()):
        return True

    if target == current:
        raise InvalidTransitionError(current, target, "deal is already in this status")

    raise InvalidTransitionError(
        current,
        target,
        f"allowed: {sorted(s.value for s in TRANSITION_MAP.get(current, set()))}",
    )
