"""
Booking lifecycle orchestration.

BookingStateMachine drives a booking from request to confirmation (or
rejection). Each operation:

1. serialises on the booking id (one writer per booking),
2. reads the authoritative record and resolves the next status through
   the transition table, failing closed if the move is not allowed,
3. applies the change to the local cache optimistically and persists it
   with a version check, reverting the cache if the backend refuses,
4. fans out notifications to client, performer and admin, and hands
   SMS / WhatsApp copies to the delivery gateway on a best-effort basis.

Usage:
    machine = BookingStateMachine(InMemoryRepository(performers=[...]))
    [booking] = await machine.create(client, event, ["misc-promo-model"], ["p1"])
    await machine.performer_decide(booking.id, PerformerDecision.ACCEPT, eta_minutes=30)
"""

import asyncio
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterable, Optional, TypeVar, Union

from bookflow.config import WorkflowConfig, settings
from bookflow.errors import (
    BackendError,
    BackendTimeoutError,
    BookingError,
    BookingValidationError,
    ClientBlockedError,
    InvalidTransitionError,
    NotFoundError,
)
from bookflow.logging_context import booking_scope, get_booking_logger
from bookflow.repository.base import BookingRepository
from bookflow.schemas.booking_schema import (
    Booking,
    BookingRequestResult,
    BookingStatus,
    ClientInfo,
    DecidedBy,
    EventInfo,
    PerformerDecision,
)
from bookflow.schemas.communication_schema import (
    Communication,
    CommunicationType,
    NotificationDraft,
)
from bookflow.schemas.do_not_serve_schema import (
    DoNotServeEntry,
    DoNotServeStatus,
    DoNotServeSubmission,
)
from bookflow.schemas.performer_schema import Performer, PerformerStatus
from bookflow.tools.pricing import compute_cost
from bookflow.utils import normalize_email, normalize_phone, short_id
from bookflow.workflow.blacklist import BlacklistGuard
from bookflow.workflow.notifications import (
    NotificationContext,
    NotificationDispatcher,
    NotificationEvent,
)
from bookflow.workflow.optimistic_store import KeyedLocks, OptimisticUpdateStore
from bookflow.workflow.transitions import (
    BookingTrigger,
    TransitionContext,
    get_valid_triggers,
    next_status,
)

logger = get_booking_logger(__name__)

R = TypeVar("R")


def is_verified_booker(
    client_email: Optional[str],
    client_phone: Optional[str],
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> bool:
    """True if any confirmed booking matches the client by email or phone.

    Email compares case-insensitively, phone after stripping whitespace.
    Empty identity fields never match.
    """
    email = normalize_email(client_email)
    phone = normalize_phone(client_phone)
    for booking in bookings:
        if booking.id == exclude_booking_id or booking.status != BookingStatus.CONFIRMED:
            continue
        if email and normalize_email(booking.client_email) == email:
            return True
        if phone and normalize_phone(booking.client_phone) == phone:
            return True
    return False


def validate_request(
    client: ClientInfo,
    event: EventInfo,
    performer_ids: list[str],
) -> None:
    """Reject malformed request facts before anything is written."""
    if not client.name or not client.name.strip():
        raise BookingValidationError("client_name", "must not be empty")
    duration = event.duration_hours
    if duration is None or math.isnan(duration) or math.isinf(duration) or duration <= 0:
        raise BookingValidationError("duration_hours", f"must be positive, got {duration!r}")
    if event.number_of_guests is None or event.number_of_guests <= 0:
        raise BookingValidationError(
            "number_of_guests", f"must be positive, got {event.number_of_guests!r}"
        )
    if not performer_ids:
        raise BookingValidationError("performer_ids", "at least one performer is required")


class BookingStateMachine:
    """
    Owns booking status changes and their side effects.

    All collaborators are injected; nothing is held in module state.
    The caches (``bookings``, ``communications``, ``performers``,
    ``do_not_serve``) are the local projection the UI reads from.
    """

    def __init__(
        self,
        repository: BookingRepository,
        dispatcher: Optional[NotificationDispatcher] = None,
        guard: Optional[BlacklistGuard] = None,
        store: Optional[OptimisticUpdateStore[Booking]] = None,
        config: Optional[WorkflowConfig] = None,
    ) -> None:
        self._repository = repository
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._guard = guard or BlacklistGuard(repository)
        self._config = config or settings.workflow
        self.bookings: OptimisticUpdateStore[Booking] = (
            store if store is not None else OptimisticUpdateStore()
        )
        self.communications: OptimisticUpdateStore[Communication] = OptimisticUpdateStore()
        self.performers: OptimisticUpdateStore[Performer] = OptimisticUpdateStore()
        self.do_not_serve: OptimisticUpdateStore[DoNotServeEntry] = OptimisticUpdateStore()
        self._locks = KeyedLocks()
        self._background: set[asyncio.Task] = set()

    # --- Plumbing ---

    @property
    def lock_count(self) -> int:
        """Booking locks currently held or awaited."""
        return len(self._locks)

    async def _call(self, awaitable: Awaitable[R]) -> R:
        """Await a backend call under the request timeout.

        Workflow errors pass through; anything else becomes a BackendError.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._config.request_timeout_sec)
        except asyncio.TimeoutError as exc:
            raise BackendTimeoutError(
                f"Backend call exceeded {self._config.request_timeout_sec}s"
            ) from exc
        except BookingError:
            raise
        except Exception as exc:
            raise BackendError(f"Backend call failed: {exc}") from exc

    async def _fetch(self, booking_id: str) -> Booking:
        booking = await self._call(self._repository.get_booking(booking_id))
        if not self.bookings.has_pending(booking_id):
            self.bookings.put(booking)
        return booking

    async def _find_performer(self, performer_id: str) -> Optional[Performer]:
        """Performer for outbound delivery. A failed lookup only costs the SMS / WhatsApp copy."""
        try:
            return await self._call(self._repository.get_performer(performer_id))
        except NotFoundError:
            return None
        except BackendError as exc:
            logger.error("Performer lookup for %s failed: %s", performer_id, exc)
            return None

    async def refresh(self) -> None:
        """Reload every cache from the repository."""
        bookings, communications, performers, entries = await asyncio.gather(
            self._call(self._repository.list_bookings()),
            self._call(self._repository.list_communications()),
            self._call(self._repository.list_performers()),
            self._call(self._repository.list_do_not_serve()),
        )
        self.bookings.load(bookings)
        self.communications.load(communications)
        self.performers.load(performers)
        self.do_not_serve.load(entries)
        logger.debug(
            "Caches refreshed: %d bookings, %d communications", len(bookings), len(communications),
        )

    async def drain(self) -> None:
        """Wait for delayed notifications that are still scheduled."""
        while self._background:
            await asyncio.gather(*list(self._background))

    def _schedule(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _transition(
        self,
        booking: Booking,
        trigger: BookingTrigger,
        updates: Optional[dict[str, Any]] = None,
        context: Optional[TransitionContext] = None,
    ) -> Booking:
        """Resolve, apply optimistically and persist one status change.

        The caller must hold the booking's lock and pass a fresh record.
        """
        target = next_status(booking.status, trigger, context)
        changes = dict(updates or {})

        async def persist() -> Booking:
            return await self._call(self._repository.update_booking_status(
                booking.id, target, changes, expected_version=booking.version,
            ))

        updated = await self.bookings.mutate(booking.id, {"status": target, **changes}, persist)
        logger.info(
            "Booking %s: %s -> %s (trigger: %s)",
            short_id(booking.id), booking.status.value, updated.status.value, trigger.value,
        )
        return updated

    async def _persist_drafts(self, drafts: list[NotificationDraft]) -> list[Communication]:
        """Store drafts. A failed insert is logged and does not undo the transition."""
        stored: list[Communication] = []
        for draft in drafts:
            temp = Communication.from_draft(draft, id=f"temp-{uuid.uuid4().hex}")

            async def insert(draft: NotificationDraft = draft) -> Communication:
                return await self._call(self._repository.insert_communication(draft))

            try:
                stored.append(await self.communications.insert(temp, insert))
            except BackendError as exc:
                logger.error("Failed to add communication for %s: %s", draft.recipient, exc)
        return stored

    async def _notify(
        self,
        event: NotificationEvent,
        booking: Optional[Booking] = None,
        actor_name: Optional[str] = None,
        context: Optional[NotificationContext] = None,
        performer: Optional[Performer] = None,
    ) -> list[Communication]:
        drafts = self._dispatcher.dispatch(event, booking, actor_name, context)
        stored = await self._persist_drafts(drafts)
        if booking is not None:
            await self._send_outbound(event, booking, performer, context)
        return stored

    async def _notify_booking(
        self,
        event: NotificationEvent,
        booking: Booking,
        actor_name: Optional[str] = None,
        context: Optional[NotificationContext] = None,
    ) -> list[Communication]:
        """Like ``_notify``, looking up the assigned performer after the records are stored."""
        drafts = self._dispatcher.dispatch(event, booking, actor_name, context)
        stored = await self._persist_drafts(drafts)
        performer = await self._find_performer(booking.performer_id)
        await self._send_outbound(event, booking, performer, context)
        return stored

    async def _send_outbound(
        self,
        event: NotificationEvent,
        booking: Booking,
        performer: Optional[Performer],
        context: Optional[NotificationContext],
    ) -> None:
        outbound = self._dispatcher.outbound_for(event, booking, performer, context)
        if outbound:
            await self._dispatcher.deliver(outbound)

    def _single_line_context(self, booking: Booking, **extra: Any) -> NotificationContext:
        cost = compute_cost(booking.duration_hours, booking.services_requested, 1)
        return NotificationContext(cost=cost, **extra)

    # --- Creation ---

    async def create(
        self,
        client: ClientInfo,
        event: EventInfo,
        service_ids: list[str],
        performer_ids: list[str],
    ) -> list[Booking]:
        """
        Create one booking per requested performer.

        Raises:
            BookingValidationError: Duration or guests not positive, no performers.
            ClientBlockedError: Client matches an approved Do-Not-Serve entry.
            NotFoundError: A performer id is unknown (nothing is created).
        """
        performer_ids = list(dict.fromkeys(performer_ids))
        validate_request(client, event, performer_ids)
        await self._call(self._guard.check(client))

        records = [
            Booking(
                performer_id=performer_id,
                client_name=client.name.strip(),
                client_email=client.email.strip(),
                client_phone=client.phone.strip(),
                event_date=event.date,
                event_time=event.time,
                event_address=event.address,
                event_type=event.event_type,
                duration_hours=event.duration_hours,
                number_of_guests=event.number_of_guests,
                client_message=event.client_message,
                services_requested=list(service_ids),
                id_document_path=event.id_document_path,
            )
            for performer_id in performer_ids
        ]
        created = await self._call(self._repository.create_bookings(records))
        for booking in created:
            self.bookings.put(booking)
        logger.info(
            "Booking request from '%s' created %d booking(s)", client.name, len(created),
        )

        first = created[0]
        names = [b.performer_label for b in created]
        with booking_scope(first.id):
            await self._notify(
                NotificationEvent.REQUEST_SUBMITTED, first,
                context=NotificationContext(performer_names=names),
            )

        cost = compute_cost(event.duration_hours, service_ids, len(created))
        delay = self._config.performer_prompt_delay_sec
        for booking in created:
            prompt = self._prompt_performer(booking, NotificationContext(cost=cost), delay)
            if delay > 0:
                self._schedule(prompt)
            else:
                await prompt
        return created

    async def submit_request(
        self,
        client: ClientInfo,
        event: EventInfo,
        service_ids: list[str],
        performer_ids: list[str],
    ) -> BookingRequestResult:
        """Form-facing wrapper around ``create`` that reports refusals as a result."""
        try:
            created = await self.create(client, event, service_ids, performer_ids)
        except ClientBlockedError:
            return BookingRequestResult(
                success=False,
                message="Booking request could not be processed. Please contact support.",
            )
        except (BookingValidationError, NotFoundError) as exc:
            return BookingRequestResult(success=False, message=str(exc))
        return BookingRequestResult(
            success=True,
            message=f"Booking request sent to {len(created)} performer(s).",
            booking_ids=[b.id for b in created],
        )

    async def _prompt_performer(
        self, booking: Booking, context: NotificationContext, delay: float
    ) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        with booking_scope(booking.id):
            try:
                await self._notify_booking(
                    NotificationEvent.PERFORMER_PROMPT, booking, context=context,
                )
            except BackendError as exc:
                # The booking stands; only the prompt is lost.
                logger.error("Performer prompt for %s failed: %s", short_id(booking.id), exc)

    # --- Performer response ---

    async def performer_decide(
        self,
        booking_id: str,
        decision: Union[PerformerDecision, str],
        eta_minutes: Optional[int] = None,
    ) -> Booking:
        """Record the performer's accept/decline response."""
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                return await self._decide(booking, PerformerDecision(decision), eta_minutes,
                                          DecidedBy.PERFORMER)

    async def _decide(
        self,
        booking: Booking,
        decision: PerformerDecision,
        eta_minutes: Optional[int],
        decided_by: DecidedBy,
    ) -> Booking:
        performer_name = booking.performer_label

        if decision == PerformerDecision.DECLINE:
            updated = await self._transition(
                booking, BookingTrigger.PERFORMER_DECLINED, {"decided_by": decided_by},
            )
            await self._notify_booking(
                NotificationEvent.PERFORMER_DECLINED, updated, actor_name=performer_name,
            )
            return updated

        # Fail before the (potentially large) booking scan if acceptance is impossible.
        if BookingTrigger.PERFORMER_ACCEPTED not in get_valid_triggers(booking.status):
            next_status(booking.status, BookingTrigger.PERFORMER_ACCEPTED)

        # Confirmations can land between request and response: never cache this.
        all_bookings = await self._call(self._repository.list_bookings())
        verified = is_verified_booker(
            booking.client_email, booking.client_phone, all_bookings, exclude_booking_id=booking.id,
        )

        updates: dict[str, Any] = {"decided_by": decided_by}
        eta = eta_minutes if eta_minutes is not None and eta_minutes > 0 else None
        if eta is not None:
            updates["performer_eta_minutes"] = eta

        updated = await self._transition(
            booking, BookingTrigger.PERFORMER_ACCEPTED, updates,
            TransitionContext(verified_booker=verified),
        )
        event = (
            NotificationEvent.PERFORMER_ACCEPTED_VERIFIED
            if updated.status == BookingStatus.DEPOSIT_PENDING
            else NotificationEvent.PERFORMER_ACCEPTED
        )
        if verified:
            logger.info("Client '%s' is a verified booker; vetting skipped", booking.client_name)
        await self._notify_booking(
            event, updated, actor_name=performer_name,
            context=self._single_line_context(updated, eta_minutes=eta),
        )
        return updated

    # --- Admin vetting ---

    async def admin_decide_vetting(self, booking_id: str, approve: bool) -> Booking:
        """Approve (deposit requested) or reject a booking awaiting vetting."""
        trigger = BookingTrigger.VETTING_APPROVED if approve else BookingTrigger.VETTING_REJECTED
        event = (
            NotificationEvent.VETTING_APPROVED if approve else NotificationEvent.VETTING_REJECTED
        )
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                updated = await self._transition(booking, trigger)
                await self._notify_booking(
                    event, updated, context=self._single_line_context(updated),
                )
                return updated

    # --- Deposit ---

    async def client_confirms_deposit(self, booking_id: str) -> Booking:
        """Client reports the deposit paid; a simulated receipt reference is stamped."""
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                receipt = f"{self._config.receipt_path_prefix}{short_id(booking_id)}.pdf"
                updated = await self._transition(
                    booking, BookingTrigger.DEPOSIT_SUBMITTED,
                    {"deposit_receipt_path": receipt},
                )
                await self._notify_booking(NotificationEvent.DEPOSIT_SUBMITTED, updated)
                return updated

    async def admin_confirm_deposit(
        self, booking_id: str, admin_name: Optional[str] = None
    ) -> Booking:
        """Admin verifies the deposit. Only now does the performer see client contact details."""
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                updated = await self._transition(
                    booking, BookingTrigger.DEPOSIT_CONFIRMED,
                    {
                        "verified_by_admin_name": admin_name or self._config.admin_display_name,
                        "verified_at": datetime.now(timezone.utc),
                    },
                )
                await self._notify_booking(
                    NotificationEvent.DEPOSIT_CONFIRMED, updated,
                    context=self._single_line_context(updated),
                )
                return updated

    # --- Admin overrides ---

    async def admin_reject(self, booking_id: str) -> Booking:
        """Reject a booking from any non-terminal status."""
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                updated = await self._transition(booking, BookingTrigger.ADMIN_REJECTED)
                await self._notify_booking(NotificationEvent.ADMIN_REJECTED, updated)
                return updated

    async def admin_reassign_performer(self, booking_id: str, new_performer_id: str) -> Booking:
        """Hand an active booking to another performer, who must accept afresh."""
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                # Terminal bookings fail here, before the performer lookup.
                if BookingTrigger.PERFORMER_REASSIGNED not in get_valid_triggers(booking.status):
                    next_status(booking.status, BookingTrigger.PERFORMER_REASSIGNED)
                if new_performer_id == booking.performer_id:
                    raise BookingValidationError(
                        "performer_id", f"performer {new_performer_id} is already assigned"
                    )
                new_performer = await self._call(self._repository.get_performer(new_performer_id))

                updated = await self._transition(
                    booking, BookingTrigger.PERFORMER_REASSIGNED,
                    {
                        "performer_id": new_performer.id,
                        "performer_name": new_performer.name,
                        "performer_reassigned_from_id": booking.performer_id,
                        "performer_eta_minutes": None,
                        "decided_by": None,
                    },
                )
                context = self._single_line_context(
                    updated,
                    previous_performer_id=booking.performer_id,
                    previous_performer_name=booking.performer_name,
                )
                await self._notify(
                    NotificationEvent.PERFORMER_REASSIGNED, updated,
                    actor_name=self._config.admin_display_name, context=context,
                    performer=new_performer,
                )
                return updated

    async def admin_override_for_performer(
        self, booking_id: str, decision: Union[PerformerDecision, str]
    ) -> Booking:
        """Make the accept/decline decision on the performer's behalf."""
        decision = PerformerDecision(decision)
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                if BookingTrigger.PERFORMER_ACCEPTED not in get_valid_triggers(booking.status):
                    raise InvalidTransitionError(
                        f"Booking {short_id(booking_id)} is '{booking.status.value}'; "
                        "only bookings awaiting performer acceptance can be decided."
                    )
                updated = await self._decide(booking, decision, None, DecidedBy.ADMIN)
                await self._notify(
                    NotificationEvent.ADMIN_OVERRIDE, updated,
                    actor_name=self._config.admin_display_name,
                    context=NotificationContext(decision=decision),
                )
                return updated

    # --- Referral fee ---

    async def performer_pays_referral_fee(
        self, booking_id: str, receipt_name: str = "receipt.pdf"
    ) -> Booking:
        """
        Record the performer's referral fee for a confirmed booking.

        The fee is the configured share of the single-performer total. The
        status does not change; the admin team is told the payment is in.

        Raises:
            InvalidTransitionError: The booking is not confirmed.
            BookingValidationError: The fee has already been recorded.
        """
        async with self._locks.hold(booking_id):
            with booking_scope(booking_id):
                booking = await self._fetch(booking_id)
                if booking.status != BookingStatus.CONFIRMED:
                    raise InvalidTransitionError(
                        f"Booking {short_id(booking_id)} is '{booking.status.value}'; "
                        "referral fees are only paid on confirmed bookings."
                    )
                if booking.referral_fee_paid:
                    raise BookingValidationError("referral_fee_paid", "already recorded")

                fee = compute_cost(
                    booking.duration_hours, booking.services_requested, 1,
                ).referral_fee
                receipt = (
                    f"{self._config.referral_receipt_path_prefix}"
                    f"{short_id(booking_id)}-{receipt_name}"
                )

                async def persist() -> Booking:
                    return await self._call(self._repository.update_referral_fee_status(
                        booking_id, fee, receipt, expected_version=booking.version,
                    ))

                updated = await self.bookings.mutate(
                    booking_id,
                    {
                        "referral_fee_paid": True,
                        "referral_fee_amount": fee,
                        "referral_fee_receipt_path": receipt,
                    },
                    persist,
                )
                logger.info("Referral fee of %.2f paid for booking %s", fee, short_id(booking_id))
                await self._notify(
                    NotificationEvent.REFERRAL_FEE_PAID, updated,
                    actor_name=updated.performer_label,
                )
                return updated

    # --- Do-Not-Serve ---

    async def create_do_not_serve_entry(self, submission: DoNotServeSubmission) -> DoNotServeEntry:
        """File a block-list entry for admin review. It does not block until approved."""
        entry = await self._call(self._repository.create_do_not_serve_entry(submission))
        self.do_not_serve.put(entry)
        await self._notify(
            NotificationEvent.DNS_SUBMITTED, actor_name=entry.submitted_by_name,
            context=NotificationContext(entry=entry),
        )
        return entry

    async def review_do_not_serve_entry(
        self, entry_id: str, status: Union[DoNotServeStatus, str]
    ) -> DoNotServeEntry:
        """Admin sets the review status of a block-list entry."""
        status = DoNotServeStatus(status)
        if entry_id not in self.do_not_serve:
            entries = await self._call(self._repository.list_do_not_serve())
            self.do_not_serve.load(entries)

        async def persist() -> DoNotServeEntry:
            return await self._call(self._repository.update_do_not_serve_status(entry_id, status))

        entry = await self.do_not_serve.mutate(entry_id, {"status": status}, persist)
        logger.info("Do-Not-Serve entry %s is now %s", entry_id, status.value)
        await self._notify(
            NotificationEvent.DNS_REVIEWED, context=NotificationContext(entry=entry),
        )
        return entry

    # --- Performers ---

    async def set_performer_status(
        self, performer_id: str, status: Union[PerformerStatus, str]
    ) -> Performer:
        """Change a performer's availability and alert the admin team."""
        status = PerformerStatus(status)
        if performer_id not in self.performers:
            self.performers.put(await self._call(self._repository.get_performer(performer_id)))

        async def persist() -> Performer:
            return await self._call(self._repository.update_performer_status(performer_id, status))

        performer = await self.performers.mutate(performer_id, {"status": status}, persist)
        await self._notify(
            NotificationEvent.PERFORMER_STATUS_CHANGED,
            context=NotificationContext(performer=performer),
        )
        return performer

    # --- Messaging and reads ---

    async def send_booking_message(
        self, booking_id: str, sender: str, recipient: str, message: str
    ) -> Communication:
        """Post a direct chat message on a booking thread."""
        if not message or not message.strip():
            raise BookingValidationError("message", "must not be empty")
        await self._fetch(booking_id)
        draft = NotificationDraft(
            sender=sender, recipient=recipient, message=message.strip(),
            type=CommunicationType.DIRECT_MESSAGE, booking_id=booking_id,
        )
        temp = Communication.from_draft(draft, id=f"temp-{uuid.uuid4().hex}")

        async def insert() -> Communication:
            return await self._call(self._repository.insert_communication(draft))

        return await self.communications.insert(temp, insert)

    async def get_booking_messages(self, booking_id: str) -> list[Communication]:
        """Direct chat messages for a booking, oldest first."""
        communications = await self._call(self._repository.list_communications())
        thread = [
            c for c in communications
            if c.booking_id == booking_id and c.type == CommunicationType.DIRECT_MESSAGE
        ]
        return sorted(thread, key=lambda c: c.created_at)

    async def mark_communication_read(self, communication_id: str) -> Communication:
        if communication_id not in self.communications:
            communications = await self._call(self._repository.list_communications())
            self.communications.load(communications)

        async def persist() -> Communication:
            return await self._call(self._repository.mark_communication_read(communication_id))

        return await self.communications.mutate(communication_id, {"read": True}, persist)

    async def get_booking(self, booking_id: str) -> Booking:
        """Cached view of a booking, fetched on a cache miss."""
        cached = self.bookings.get(booking_id)
        if cached is not None:
            return cached
        return await self._fetch(booking_id)

    async def list_bookings(self) -> list[Booking]:
        """All bookings, newest first. Entries with a mutation in flight keep their tentative value."""
        for booking in await self._call(self._repository.list_bookings()):
            if not self.bookings.has_pending(booking.id):
                self.bookings.put(booking)
        return sorted(self.bookings.values(), key=lambda b: b.created_at, reverse=True)

    def communications_for(self, recipient: str) -> list[Communication]:
        """Cached communications addressed to one audience, newest first."""
        found = [c for c in self.communications.values() if c.recipient == recipient]
        return sorted(found, key=lambda c: c.created_at, reverse=True)
