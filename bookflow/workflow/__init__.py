from bookflow.workflow.blacklist import BlacklistGuard
from bookflow.workflow.notifications import (
    NotificationContext,
    NotificationDispatcher,
    NotificationEvent,
)
from bookflow.workflow.optimistic_store import OptimisticUpdateStore
from bookflow.workflow.state_machine import BookingStateMachine, is_verified_booker
from bookflow.workflow.transitions import BookingTrigger, TransitionContext, next_status

__all__ = [
    "BookingStateMachine",
    "BookingTrigger",
    "TransitionContext",
    "next_status",
    "is_verified_booker",
    "BlacklistGuard",
    "NotificationDispatcher",
    "NotificationEvent",
    "NotificationContext",
    "OptimisticUpdateStore",
]
