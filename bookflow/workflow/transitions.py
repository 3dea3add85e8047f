"""
Booking status graph.

Defines the lifecycle triggers and the explicit edge table between
BookingStatus values. Every status change in the workflow is resolved
through ``next_status``; a trigger with no matching edge from the
current status is rejected before anything is written.

Usage:
    next_status(BookingStatus.PENDING_VETTING, BookingTrigger.VETTING_APPROVED)
    # -> BookingStatus.DEPOSIT_PENDING
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from bookflow.errors import InvalidTransitionError
from bookflow.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)

INITIAL_STATUS = BookingStatus.PENDING_PERFORMER_ACCEPTANCE
TERMINAL_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED})
ACTIVE_STATUSES = tuple(s for s in BookingStatus if s not in TERMINAL_STATUSES)


class BookingTrigger(str, Enum):
    """Events that move a booking between statuses."""
    PERFORMER_ACCEPTED = "performer_accepted"
    PERFORMER_DECLINED = "performer_declined"
    VETTING_APPROVED = "vetting_approved"
    VETTING_REJECTED = "vetting_rejected"
    DEPOSIT_SUBMITTED = "deposit_submitted"
    DEPOSIT_CONFIRMED = "deposit_confirmed"
    ADMIN_REJECTED = "admin_rejected"
    PERFORMER_REASSIGNED = "performer_reassigned"


@dataclass(frozen=True)
class TransitionContext:
    """Facts evaluated at transition time and consulted by guards."""
    verified_booker: bool = False


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_state: BookingStatus
    to_state: BookingStatus
    trigger: BookingTrigger
    guard: Optional[Callable[[TransitionContext], bool]] = None


def _is_verified_booker(context: TransitionContext) -> bool:
    return context.verified_booker


TRANSITIONS: list[Transition] = [
    # --- Performer response (fast path listed first so its guard wins) ---
    Transition(BookingStatus.PENDING_PERFORMER_ACCEPTANCE, BookingStatus.DEPOSIT_PENDING,
               BookingTrigger.PERFORMER_ACCEPTED, guard=_is_verified_booker),
    Transition(BookingStatus.PENDING_PERFORMER_ACCEPTANCE, BookingStatus.PENDING_VETTING,
               BookingTrigger.PERFORMER_ACCEPTED),
    Transition(BookingStatus.PENDING_PERFORMER_ACCEPTANCE, BookingStatus.REJECTED,
               BookingTrigger.PERFORMER_DECLINED),

    # --- Vetting ---
    Transition(BookingStatus.PENDING_VETTING, BookingStatus.DEPOSIT_PENDING,
               BookingTrigger.VETTING_APPROVED),
    Transition(BookingStatus.PENDING_VETTING, BookingStatus.REJECTED,
               BookingTrigger.VETTING_REJECTED),

    # --- Deposit ---
    Transition(BookingStatus.DEPOSIT_PENDING, BookingStatus.PENDING_DEPOSIT_CONFIRMATION,
               BookingTrigger.DEPOSIT_SUBMITTED),
    Transition(BookingStatus.PENDING_DEPOSIT_CONFIRMATION, BookingStatus.CONFIRMED,
               BookingTrigger.DEPOSIT_CONFIRMED),

    # --- Admin overrides from any active status ---
    *[Transition(status, BookingStatus.REJECTED, BookingTrigger.ADMIN_REJECTED)
      for status in ACTIVE_STATUSES],
    *[Transition(status, BookingStatus.PENDING_PERFORMER_ACCEPTANCE,
                 BookingTrigger.PERFORMER_REASSIGNED)
      for status in ACTIVE_STATUSES],
]


def next_status(
    current: BookingStatus,
    trigger: BookingTrigger,
    context: Optional[TransitionContext] = None,
) -> BookingStatus:
    """
    Resolve the status a trigger leads to from ``current``.

    Args:
        current: The booking's present status.
        trigger: The event being applied.
        context: Guard inputs. Defaults to an empty context.

    Returns:
        The destination status.

    Raises:
        InvalidTransitionError: If no edge (with a passing guard) exists.
    """
    ctx = context or TransitionContext()
    for t in TRANSITIONS:
        if t.from_state == current and t.trigger == trigger:
            if t.guard is not None and not t.guard(ctx):
                continue
            logger.debug(
                "Resolved transition: %s -> %s (trigger: %s)",
                current.value, t.to_state.value, trigger.value,
            )
            return t.to_state

    valid = [t.value for t in get_valid_triggers(current)]
    logger.warning(
        "Refused transition from %s with trigger %s", current.value, trigger.value,
    )
    raise InvalidTransitionError(
        f"No valid transition from '{current.value}' "
        f"with trigger '{trigger.value}'. Valid triggers: {valid}"
    )


def get_valid_triggers(current: BookingStatus) -> list[BookingTrigger]:
    """Return the distinct triggers valid from ``current``."""
    triggers: list[BookingTrigger] = []
    for t in TRANSITIONS:
        if t.from_state == current and t.trigger not in triggers:
            triggers.append(t.trigger)
    return triggers


def get_successors(current: BookingStatus) -> set[BookingStatus]:
    """Every status directly reachable from ``current``."""
    return {t.to_state for t in TRANSITIONS if t.from_state == current}


def is_terminal(status: BookingStatus) -> bool:
    """Check if no further transitions are possible."""
    return status in TERMINAL_STATUSES
