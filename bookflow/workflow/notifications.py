"""
Notification fan-out rules.

NotificationDispatcher is not a queue. It maps a lifecycle event and the
booking it concerns to the drafts that must be persisted, one per
audience: the client (``"user"``), the admin team (``"admin"``) and
performers (by id). Booking-scoped drafts always carry the booking id;
block-list reviews and performer status notes have no booking context.

Delivery over SMS / WhatsApp is a separate, best-effort step: see
``outbound_for`` and ``deliver``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from bookflow.delivery.gateway import DeliveryGateway
from bookflow.schemas.booking_schema import Booking, PerformerDecision
from bookflow.schemas.communication_schema import (
    ADMIN_RECIPIENT,
    ADMIN_SENDER,
    CLIENT_RECIPIENT,
    SYSTEM_SENDER,
    Channel,
    CommunicationType,
    NotificationDraft,
    OutboundMessage,
)
from bookflow.schemas.do_not_serve_schema import ADMIN_SUBMITTER_ID, DoNotServeEntry
from bookflow.schemas.performer_schema import Performer
from bookflow.tools.pricing import CostBreakdown, compute_cost
from bookflow.workflow import notification_templates as tpl

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    """Everything that produces notifications."""
    REQUEST_SUBMITTED = "request_submitted"
    PERFORMER_PROMPT = "performer_prompt"
    PERFORMER_DECLINED = "performer_declined"
    PERFORMER_ACCEPTED = "performer_accepted"
    PERFORMER_ACCEPTED_VERIFIED = "performer_accepted_verified"
    VETTING_APPROVED = "vetting_approved"
    VETTING_REJECTED = "vetting_rejected"
    DEPOSIT_SUBMITTED = "deposit_submitted"
    DEPOSIT_CONFIRMED = "deposit_confirmed"
    ADMIN_REJECTED = "admin_rejected"
    PERFORMER_REASSIGNED = "performer_reassigned"
    ADMIN_OVERRIDE = "admin_override"
    REFERRAL_FEE_PAID = "referral_fee_paid"
    DNS_SUBMITTED = "dns_submitted"
    DNS_REVIEWED = "dns_reviewed"
    PERFORMER_STATUS_CHANGED = "performer_status_changed"


@dataclass
class NotificationContext:
    """Extra facts some events need besides the booking itself."""
    cost: Optional[CostBreakdown] = None
    eta_minutes: Optional[int] = None
    performer_names: list[str] = field(default_factory=list)
    previous_performer_id: Optional[str] = None
    previous_performer_name: Optional[str] = None
    decision: Optional[PerformerDecision] = None
    entry: Optional[DoNotServeEntry] = None
    performer: Optional[Performer] = None


Builder = Callable[[Optional[Booking], str, NotificationContext], list[NotificationDraft]]


def _cost_for(booking: Booking, ctx: NotificationContext) -> CostBreakdown:
    if ctx.cost is not None:
        return ctx.cost
    return compute_cost(booking.duration_hours, booking.services_requested, 1)


def _to_client(booking: Booking, message: str, sender: str = SYSTEM_SENDER,
               kind: CommunicationType = CommunicationType.BOOKING_UPDATE) -> NotificationDraft:
    return NotificationDraft(
        sender=sender, recipient=CLIENT_RECIPIENT, message=message,
        type=kind, booking_id=booking.id,
    )


def _to_admin(booking: Optional[Booking], message: str,
              sender: str = SYSTEM_SENDER) -> NotificationDraft:
    return NotificationDraft(
        sender=sender, recipient=ADMIN_RECIPIENT, message=message,
        type=CommunicationType.ADMIN_MESSAGE,
        booking_id=booking.id if booking else None,
    )


def _to_performer(booking: Booking, performer_id: str, message: str,
                  sender: str = SYSTEM_SENDER) -> NotificationDraft:
    return NotificationDraft(
        sender=sender, recipient=performer_id, message=message,
        type=CommunicationType.BOOKING_UPDATE, booking_id=booking.id,
    )


# --- Builders, one per event ---

def _request_submitted(booking, actor, ctx):
    names = ctx.performer_names or [booking.performer_label]
    return [
        _to_client(booking, tpl.request_sent_client(names)),
        _to_admin(booking, tpl.request_sent_admin(booking.client_name, names)),
    ]


def _performer_prompt(booking, actor, ctx):
    cost = _cost_for(booking, ctx)
    return [
        _to_performer(booking, booking.performer_id,
                      tpl.performer_prompt(booking, cost.total_cost, cost.deposit_amount)),
    ]


def _performer_declined(booking, actor, ctx):
    name = actor or booking.performer_label
    return [
        _to_admin(booking, tpl.declined_admin(name, booking.client_name), sender=name),
        _to_client(booking, tpl.declined_client(name)),
    ]


def _performer_accepted(booking, actor, ctx):
    name = actor or booking.performer_label
    return [
        _to_admin(booking, tpl.accepted_admin(name, booking.client_name, ctx.eta_minutes),
                  sender=name),
        _to_client(booking, tpl.accepted_client(name, ctx.eta_minutes)),
        _to_performer(booking, booking.performer_id, tpl.accepted_performer(booking.client_name)),
    ]


def _performer_accepted_verified(booking, actor, ctx):
    name = actor or booking.performer_label
    cost = _cost_for(booking, ctx)
    return [
        _to_admin(booking, tpl.fast_path_admin(name, booking.client_name, ctx.eta_minutes),
                  sender=name),
        _to_client(booking, tpl.fast_path_client(name, ctx.eta_minutes, cost.deposit_amount)),
        _to_performer(booking, booking.performer_id, tpl.vetted_performer(booking)),
    ]


def _vetting_approved(booking, actor, ctx):
    cost = _cost_for(booking, ctx)
    return [
        _to_client(booking, tpl.vetting_approved_client(booking, cost.deposit_amount)),
        _to_performer(booking, booking.performer_id, tpl.vetted_performer(booking)),
    ]


def _rejected(booking, actor, ctx):
    return [
        _to_client(booking, tpl.rejected_client(booking)),
        _to_performer(booking, booking.performer_id, tpl.rejected_performer(booking)),
    ]


def _admin_rejected(booking, actor, ctx):
    return _rejected(booking, actor, ctx) + [_to_admin(booking, tpl.rejected_admin(booking))]


def _deposit_submitted(booking, actor, ctx):
    return [
        _to_admin(booking, tpl.deposit_submitted_admin(booking)),
        _to_client(booking, tpl.deposit_submitted_client()),
    ]


def _deposit_confirmed(booking, actor, ctx):
    cost = _cost_for(booking, ctx)
    return [
        _to_client(booking, tpl.confirmed_client(booking, cost.balance_due),
                   kind=CommunicationType.BOOKING_CONFIRMATION),
        _to_performer(booking, booking.performer_id, tpl.confirmed_performer(booking)),
        _to_admin(booking, tpl.confirmed_admin(booking)),
    ]


def _performer_reassigned(booking, actor, ctx):
    old_name = ctx.previous_performer_name or "Previous Performer"
    drafts = [
        _to_admin(booking, tpl.reassigned_admin(booking.client_name, old_name,
                                                booking.performer_label), sender=ADMIN_SENDER),
        _to_client(booking, tpl.reassigned_client(booking.performer_label), sender=ADMIN_SENDER),
    ]
    if ctx.previous_performer_id:
        drafts.append(_to_performer(booking, ctx.previous_performer_id,
                                    tpl.reassigned_old_performer(booking.client_name),
                                    sender=ADMIN_SENDER))
    drafts.append(_to_performer(booking, booking.performer_id,
                                tpl.reassigned_new_performer(booking.client_name),
                                sender=ADMIN_SENDER))
    return drafts


def _admin_override(booking, actor, ctx):
    past = "accepted" if ctx.decision == PerformerDecision.ACCEPT else "declined"
    return [
        _to_performer(booking, booking.performer_id,
                      tpl.override_performer(past, booking.client_name), sender=ADMIN_SENDER),
    ]


def _referral_fee_paid(booking, actor, ctx):
    name = actor or booking.performer_label
    return [_to_admin(booking, tpl.referral_fee_paid_admin(name, booking.client_name), sender=name)]


def _dns_submitted(booking, actor, ctx):
    entry = ctx.entry
    submitter = actor or (entry.submitted_by_name if entry else None) or "A performer"
    return [_to_admin(None, tpl.dns_submitted_admin(submitter, entry.client_name),
                      sender=submitter)]


def _dns_reviewed(booking, actor, ctx):
    entry = ctx.entry
    message = tpl.dns_reviewed(entry.client_name, entry.submitted_by_name or "Admin",
                               entry.status.value)
    drafts = [_to_admin(None, message)]
    if entry.submitted_by_performer_id != ADMIN_SUBMITTER_ID:
        drafts.append(NotificationDraft(
            sender=SYSTEM_SENDER, recipient=entry.submitted_by_performer_id,
            message=message, type=CommunicationType.ADMIN_MESSAGE,
        ))
    return drafts


def _performer_status_changed(booking, actor, ctx):
    performer = ctx.performer
    return [NotificationDraft(
        sender=SYSTEM_SENDER, recipient=ADMIN_RECIPIENT,
        message=tpl.performer_status_changed(performer.name, performer.status.value),
        type=CommunicationType.SYSTEM_ALERT,
    )]


_BUILDERS: dict[NotificationEvent, Builder] = {
    NotificationEvent.REQUEST_SUBMITTED: _request_submitted,
    NotificationEvent.PERFORMER_PROMPT: _performer_prompt,
    NotificationEvent.PERFORMER_DECLINED: _performer_declined,
    NotificationEvent.PERFORMER_ACCEPTED: _performer_accepted,
    NotificationEvent.PERFORMER_ACCEPTED_VERIFIED: _performer_accepted_verified,
    NotificationEvent.VETTING_APPROVED: _vetting_approved,
    NotificationEvent.VETTING_REJECTED: _rejected,
    NotificationEvent.DEPOSIT_SUBMITTED: _deposit_submitted,
    NotificationEvent.DEPOSIT_CONFIRMED: _deposit_confirmed,
    NotificationEvent.ADMIN_REJECTED: _admin_rejected,
    NotificationEvent.PERFORMER_REASSIGNED: _performer_reassigned,
    NotificationEvent.ADMIN_OVERRIDE: _admin_override,
    NotificationEvent.REFERRAL_FEE_PAID: _referral_fee_paid,
    NotificationEvent.DNS_SUBMITTED: _dns_submitted,
    NotificationEvent.DNS_REVIEWED: _dns_reviewed,
    NotificationEvent.PERFORMER_STATUS_CHANGED: _performer_status_changed,
}

_BOOKINGLESS_EVENTS = frozenset({
    NotificationEvent.DNS_SUBMITTED,
    NotificationEvent.DNS_REVIEWED,
    NotificationEvent.PERFORMER_STATUS_CHANGED,
})


class NotificationDispatcher:
    """Decides who hears about each lifecycle event."""

    def __init__(self, gateway: Optional[DeliveryGateway] = None) -> None:
        self._gateway = gateway

    def dispatch(
        self,
        event: NotificationEvent,
        booking: Optional[Booking] = None,
        actor_name: Optional[str] = None,
        context: Optional[NotificationContext] = None,
    ) -> list[NotificationDraft]:
        """
        Build the drafts for one event.

        Args:
            event: What happened.
            booking: The booking concerned, after the transition was applied.
            actor_name: Display name of whoever caused the event.
            context: Event-specific extras (cost, ETA, previous performer...).

        Raises:
            ValueError: If a booking-scoped event is dispatched without a booking,
                or a block-list / performer event without its subject.
        """
        ctx = context or NotificationContext()
        if event in _BOOKINGLESS_EVENTS:
            if event == NotificationEvent.PERFORMER_STATUS_CHANGED and ctx.performer is None:
                raise ValueError(f"{event.value} requires a performer in the context")
            if event != NotificationEvent.PERFORMER_STATUS_CHANGED and ctx.entry is None:
                raise ValueError(f"{event.value} requires a Do-Not-Serve entry in the context")
        elif booking is None:
            raise ValueError(f"{event.value} requires a booking")

        drafts = _BUILDERS[event](booking, actor_name or "", ctx)
        logger.debug(
            "Event %s -> %d notification(s): %s",
            event.value, len(drafts), [d.recipient for d in drafts],
        )
        return drafts

    def outbound_for(
        self,
        event: NotificationEvent,
        booking: Booking,
        performer: Optional[Performer] = None,
        context: Optional[NotificationContext] = None,
    ) -> list[OutboundMessage]:
        """SMS / WhatsApp messages for the events that warrant them."""
        ctx = context or NotificationContext()
        messages: list[OutboundMessage] = []
        performer_phone = performer.phone if performer else None

        if event in (NotificationEvent.PERFORMER_PROMPT, NotificationEvent.PERFORMER_REASSIGNED):
            cost = _cost_for(booking, ctx)
            if performer_phone:
                messages.append(OutboundMessage(
                    performer_phone, tpl.outbound_new_request(booking, cost.total_cost),
                    Channel.WHATSAPP,
                ))
        elif event in (NotificationEvent.VETTING_APPROVED,
                       NotificationEvent.PERFORMER_ACCEPTED_VERIFIED):
            cost = _cost_for(booking, ctx)
            if booking.client_phone:
                messages.append(OutboundMessage(
                    booking.client_phone,
                    tpl.outbound_deposit_request(booking, cost.deposit_amount),
                    Channel.SMS,
                ))
        elif event == NotificationEvent.DEPOSIT_CONFIRMED:
            cost = _cost_for(booking, ctx)
            if booking.client_phone:
                messages.append(OutboundMessage(
                    booking.client_phone,
                    tpl.outbound_confirmed_client(booking, cost.balance_due),
                    Channel.SMS,
                ))
            if performer_phone:
                messages.append(OutboundMessage(
                    performer_phone, tpl.confirmed_performer(booking), Channel.WHATSAPP,
                ))
        return messages

    async def deliver(self, messages: list[OutboundMessage]) -> int:
        """Send messages best-effort. Returns how many were accepted.

        Failures are logged and never raised.
        """
        if self._gateway is None or not messages:
            return 0
        delivered = 0
        for message in messages:
            try:
                ok = await self._gateway.send_message(message)
            except Exception:
                logger.exception(
                    "Delivery of %s to %s raised", message.channel.value, message.address,
                )
                continue
            if ok:
                delivered += 1
            else:
                logger.error(
                    "Delivery of %s to %s failed", message.channel.value, message.address,
                )
        return delivered
