"""
Persistence interface for the booking workflow.

The workflow never touches storage directly. A concrete repository is
constructed once at start-up and injected into the state machine, the
guard and the console demo. Every method is a coroutine so network
backends (Supabase, Postgres, a REST service) fit behind it unchanged.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from bookflow.schemas.booking_schema import Booking, BookingStatus
from bookflow.schemas.communication_schema import Communication, NotificationDraft
from bookflow.schemas.do_not_serve_schema import (
    DoNotServeEntry,
    DoNotServeStatus,
    DoNotServeSubmission,
)
from bookflow.schemas.performer_schema import Performer, PerformerStatus


class BookingRepository(ABC):
    """Authoritative store for bookings, block-list entries, messages and performers."""

    # --- Bookings ---

    @abstractmethod
    async def create_bookings(self, records: list[Booking]) -> list[Booking]:
        """Insert all records or none. Returns rows joined with performer names."""

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Booking:
        """Raises BookingNotFoundError for unknown ids."""

    @abstractmethod
    async def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        updates: Optional[dict[str, Any]] = None,
        expected_version: Optional[int] = None,
    ) -> Booking:
        """Apply ``status`` plus ``updates`` and bump the version.

        Raises ConcurrentUpdateError when ``expected_version`` is given
        and no longer matches the stored record.
        """

    @abstractmethod
    async def update_referral_fee_status(
        self,
        booking_id: str,
        fee_amount: float,
        receipt_path: str,
        expected_version: Optional[int] = None,
    ) -> Booking:
        """Mark the referral fee paid. Status is untouched; the version is bumped."""

    @abstractmethod
    async def list_bookings(self) -> list[Booking]:
        """Newest first."""

    # --- Do-Not-Serve ---

    @abstractmethod
    async def list_do_not_serve(self) -> list[DoNotServeEntry]:
        ...

    @abstractmethod
    async def create_do_not_serve_entry(self, submission: DoNotServeSubmission) -> DoNotServeEntry:
        ...

    @abstractmethod
    async def update_do_not_serve_status(
        self, entry_id: str, status: DoNotServeStatus
    ) -> DoNotServeEntry:
        ...

    # --- Communications ---

    @abstractmethod
    async def list_communications(self) -> list[Communication]:
        """Newest first."""

    @abstractmethod
    async def insert_communication(self, draft: NotificationDraft) -> Communication:
        ...

    @abstractmethod
    async def mark_communication_read(self, communication_id: str) -> Communication:
        ...

    # --- Performers ---

    @abstractmethod
    async def list_performers(self) -> list[Performer]:
        ...

    @abstractmethod
    async def get_performer(self, performer_id: str) -> Performer:
        """Raises NotFoundError for unknown ids."""

    @abstractmethod
    async def update_performer_status(
        self, performer_id: str, status: PerformerStatus
    ) -> Performer:
        ...
