"""
In-memory repository.

Stands in for the hosted database in the console demo and in tests.
Each instance owns its own collections and hands out deep copies, so
callers can never mutate stored state behind the repository's back.
"""

import logging
from typing import Any, Iterable, Optional

from bookflow.errors import BookingNotFoundError, ConcurrentUpdateError, NotFoundError
from bookflow.repository.base import BookingRepository
from bookflow.schemas.booking_schema import Booking, BookingStatus
from bookflow.schemas.communication_schema import Communication, NotificationDraft
from bookflow.schemas.do_not_serve_schema import (
    ADMIN_SUBMITTER_ID,
    DoNotServeEntry,
    DoNotServeStatus,
    DoNotServeSubmission,
)
from bookflow.schemas.performer_schema import Performer, PerformerStatus

logger = logging.getLogger(__name__)

# Fields the workflow is never allowed to overwrite through an update.
_PROTECTED_FIELDS = frozenset({"id", "created_at", "version", "status"})


class InMemoryRepository(BookingRepository):
    """Dict-backed repository with optimistic version checks."""

    def __init__(
        self,
        performers: Iterable[Performer] = (),
        bookings: Iterable[Booking] = (),
        do_not_serve: Iterable[DoNotServeEntry] = (),
        communications: Iterable[Communication] = (),
    ) -> None:
        self._performers: dict[str, Performer] = {
            p.id: p.model_copy(deep=True) for p in performers
        }
        self._bookings: dict[str, Booking] = {
            b.id: b.model_copy(deep=True) for b in bookings
        }
        self._do_not_serve: dict[str, DoNotServeEntry] = {
            e.id: e.model_copy(deep=True) for e in do_not_serve
        }
        self._communications: dict[str, Communication] = {
            c.id: c.model_copy(deep=True) for c in communications
        }

    def _performer_name(self, performer_id: str) -> str:
        performer = self._performers.get(performer_id)
        if performer is None:
            raise NotFoundError("Performer", performer_id)
        return performer.name

    # --- Bookings ---

    async def create_bookings(self, records: list[Booking]) -> list[Booking]:
        # Resolve every join first so a bad performer id inserts nothing.
        joined = [
            r.model_copy(update={"performer_name": self._performer_name(r.performer_id)}, deep=True)
            for r in records
        ]
        for booking in joined:
            if booking.id in self._bookings:
                raise ValueError(f"Booking {booking.id} already exists.")
        for booking in joined:
            self._bookings[booking.id] = booking
        logger.info("Inserted %d booking(s)", len(joined))
        return [b.model_copy(deep=True) for b in joined]

    async def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking.model_copy(deep=True)

    async def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        updates: Optional[dict[str, Any]] = None,
        expected_version: Optional[int] = None,
    ) -> Booking:
        current = self._bookings.get(booking_id)
        if current is None:
            raise BookingNotFoundError(booking_id)
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentUpdateError(booking_id, expected_version, current.version)

        changes = {k: v for k, v in (updates or {}).items() if k not in _PROTECTED_FIELDS}
        if "performer_id" in changes:
            changes["performer_name"] = self._performer_name(changes["performer_id"])
        changes["status"] = status
        changes["version"] = current.version + 1

        # Round-trip through validation so bad field values are rejected here.
        updated = Booking.model_validate({**current.model_dump(), **changes})
        self._bookings[booking_id] = updated
        logger.debug("Booking %s stored at version %d", booking_id, updated.version)
        return updated.model_copy(deep=True)

    async def update_referral_fee_status(
        self,
        booking_id: str,
        fee_amount: float,
        receipt_path: str,
        expected_version: Optional[int] = None,
    ) -> Booking:
        current = self._bookings.get(booking_id)
        if current is None:
            raise BookingNotFoundError(booking_id)
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentUpdateError(booking_id, expected_version, current.version)
        updated = current.model_copy(update={
            "referral_fee_paid": True,
            "referral_fee_amount": fee_amount,
            "referral_fee_receipt_path": receipt_path,
            "version": current.version + 1,
        }, deep=True)
        self._bookings[booking_id] = updated
        logger.info("Referral fee of %.2f recorded for booking %s", fee_amount, booking_id)
        return updated.model_copy(deep=True)

    async def list_bookings(self) -> list[Booking]:
        ordered = sorted(self._bookings.values(), key=lambda b: b.created_at, reverse=True)
        return [b.model_copy(deep=True) for b in ordered]

    # --- Do-Not-Serve ---

    async def list_do_not_serve(self) -> list[DoNotServeEntry]:
        ordered = sorted(self._do_not_serve.values(), key=lambda e: e.created_at, reverse=True)
        return [e.model_copy(deep=True) for e in ordered]

    async def create_do_not_serve_entry(self, submission: DoNotServeSubmission) -> DoNotServeEntry:
        data = submission.model_dump()
        if not data.get("submitted_by_name"):
            if submission.submitted_by_performer_id == ADMIN_SUBMITTER_ID:
                data["submitted_by_name"] = "Admin"
            else:
                data["submitted_by_name"] = self._performer_name(
                    submission.submitted_by_performer_id
                )
        entry = DoNotServeEntry(**data)
        self._do_not_serve[entry.id] = entry
        logger.info("Do-Not-Serve entry %s created for '%s'", entry.id, entry.client_name)
        return entry.model_copy(deep=True)

    async def update_do_not_serve_status(
        self, entry_id: str, status: DoNotServeStatus
    ) -> DoNotServeEntry:
        entry = self._do_not_serve.get(entry_id)
        if entry is None:
            raise NotFoundError("Do-Not-Serve entry", entry_id)
        updated = entry.model_copy(update={"status": status}, deep=True)
        self._do_not_serve[entry_id] = updated
        return updated.model_copy(deep=True)

    # --- Communications ---

    async def list_communications(self) -> list[Communication]:
        ordered = sorted(
            self._communications.values(), key=lambda c: c.created_at, reverse=True
        )
        return [c.model_copy(deep=True) for c in ordered]

    async def insert_communication(self, draft: NotificationDraft) -> Communication:
        communication = Communication.from_draft(draft)
        self._communications[communication.id] = communication
        return communication.model_copy(deep=True)

    async def mark_communication_read(self, communication_id: str) -> Communication:
        communication = self._communications.get(communication_id)
        if communication is None:
            raise NotFoundError("Communication", communication_id)
        updated = communication.model_copy(update={"read": True}, deep=True)
        self._communications[communication_id] = updated
        return updated.model_copy(deep=True)

    # --- Performers ---

    async def list_performers(self) -> list[Performer]:
        return [p.model_copy(deep=True) for p in self._performers.values()]

    async def get_performer(self, performer_id: str) -> Performer:
        performer = self._performers.get(performer_id)
        if performer is None:
            raise NotFoundError("Performer", performer_id)
        return performer.model_copy(deep=True)

    async def update_performer_status(
        self, performer_id: str, status: PerformerStatus
    ) -> Performer:
        performer = self._performers.get(performer_id)
        if performer is None:
            raise NotFoundError("Performer", performer_id)
        updated = performer.model_copy(update={"status": status}, deep=True)
        self._performers[performer_id] = updated
        return updated.model_copy(deep=True)
