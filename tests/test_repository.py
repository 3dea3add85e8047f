"""Tests for the in-memory repository."""

import pytest

from bookflow.errors import BookingNotFoundError, ConcurrentUpdateError, NotFoundError
from bookflow.repository.memory import InMemoryRepository
from bookflow.schemas.booking_schema import BookingStatus
from bookflow.schemas.communication_schema import CommunicationType, NotificationDraft
from bookflow.schemas.do_not_serve_schema import DoNotServeSubmission
from tests.conftest import PERFORMERS, make_booking


@pytest.fixture
def seeded():
    return InMemoryRepository(
        performers=PERFORMERS,
        bookings=[make_booking(booking_id="old", days_ago=2), make_booking(booking_id="new")],
    )


class TestBookings:
    @pytest.mark.asyncio
    async def test_list_newest_first(self, seeded):
        assert [b.id for b in await seeded.list_bookings()] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_returned_copies_are_detached(self, seeded):
        booking = await seeded.get_booking("new")
        booking.client_name = "Changed"
        assert (await seeded.get_booking("new")).client_name == "Alex Morgan"

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, seeded):
        updated = await seeded.update_booking_status(
            "new", BookingStatus.PENDING_VETTING, {"performer_eta_minutes": 15},
            expected_version=1,
        )
        assert updated.version == 2
        assert updated.performer_eta_minutes == 15

    @pytest.mark.asyncio
    async def test_stale_version_refused(self, seeded):
        await seeded.update_booking_status("new", BookingStatus.PENDING_VETTING)
        with pytest.raises(ConcurrentUpdateError):
            await seeded.update_booking_status(
                "new", BookingStatus.REJECTED, expected_version=1,
            )

    @pytest.mark.asyncio
    async def test_protected_fields_ignored(self, seeded):
        updated = await seeded.update_booking_status(
            "new", BookingStatus.REJECTED, {"id": "hijack", "version": 99},
        )
        assert updated.id == "new"
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_reassignment_rejoins_name(self, seeded):
        updated = await seeded.update_booking_status(
            "new", BookingStatus.PENDING_PERFORMER_ACCEPTANCE, {"performer_id": "p2"},
        )
        assert updated.performer_name == "Jasmine"

    @pytest.mark.asyncio
    async def test_referral_fee_recorded_without_status_change(self, seeded):
        updated = await seeded.update_referral_fee_status(
            "new", 12.5, "referral-receipts/receipt-new.pdf", expected_version=1,
        )
        assert updated.referral_fee_paid
        assert updated.referral_fee_amount == 12.5
        assert updated.referral_fee_receipt_path == "referral-receipts/receipt-new.pdf"
        assert updated.status == BookingStatus.PENDING_PERFORMER_ACCEPTANCE
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_referral_fee_stale_version_refused(self, seeded):
        await seeded.update_booking_status("new", BookingStatus.PENDING_VETTING)
        with pytest.raises(ConcurrentUpdateError):
            await seeded.update_referral_fee_status("new", 10, "r.pdf", expected_version=1)

    @pytest.mark.asyncio
    async def test_missing_booking(self, seeded):
        with pytest.raises(BookingNotFoundError):
            await seeded.get_booking("nope")


class TestDoNotServe:
    @pytest.mark.asyncio
    async def test_admin_submission_named_admin(self, seeded):
        entry = await seeded.create_do_not_serve_entry(
            DoNotServeSubmission(client_name="X", reason="r"),
        )
        assert entry.submitted_by_name == "Admin"

    @pytest.mark.asyncio
    async def test_unknown_entry(self, seeded):
        with pytest.raises(NotFoundError):
            await seeded.update_do_not_serve_status("nope", "approved")


class TestCommunications:
    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_unread(self, seeded):
        comm = await seeded.insert_communication(NotificationDraft(
            sender="System", recipient="admin", message="hi",
            type=CommunicationType.ADMIN_MESSAGE,
        ))
        assert comm.id
        assert not comm.read
        assert (await seeded.mark_communication_read(comm.id)).read
