"""
Offline console demo: walks bookings through their lifecycle without a
database or SMS provider.

Uses the real state machine, block-list guard, notification dispatcher
and pricing against the in-memory repository. Outbound SMS / WhatsApp
messages are printed instead of sent.

Usage:
    python console_demo.py
    python console_demo.py --scenario verified
    python console_demo.py --scenario blocked
"""

import argparse
import asyncio
from datetime import datetime, timedelta, timezone

from bookflow.config import settings
from bookflow.delivery.gateway import LoggingGateway
from bookflow.errors import BookingError
from bookflow.repository.memory import InMemoryRepository
from bookflow.schemas.booking_schema import (
    Booking,
    BookingStatus,
    ClientInfo,
    EventInfo,
    PerformerDecision,
)
from bookflow.schemas.do_not_serve_schema import DoNotServeEntry, DoNotServeStatus
from bookflow.schemas.performer_schema import Performer
from bookflow.tools.pricing import compute_cost, format_money, get_duration_info
from bookflow.tools.services import describe_services
from bookflow.workflow.notifications import NotificationDispatcher
from bookflow.workflow.state_machine import BookingStateMachine

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_PERFORMERS = [
    Performer(
        id="p1", name="Scarlett", tagline="Life of the party",
        service_ids=["waitress-lingerie", "show-hot-cream", "misc-promo-model"],
        service_areas=["Perth North"], phone="+61400000001",
    ),
    Performer(
        id="p2", name="Jasmine", tagline="Elegant and fun",
        service_ids=["waitress-topless", "show-pearl", "misc-atmospheric"],
        service_areas=["Perth South"], phone="+61400000002",
    ),
]

DEMO_CLIENT = ClientInfo(name="Alex Morgan", email="alex@example.com", phone="+61 400 123 456")

DEMO_EVENT = EventInfo(
    date="2025-03-15",
    time="19:30",
    address="12 Harbour St, Fremantle",
    event_type="Birthday Party",
    duration_hours=2,
    number_of_guests=25,
    client_message="Surprise party, please arrive by the side gate.",
)

DEMO_SERVICES = ["waitress-lingerie", "show-hot-cream"]


class ConsoleSession:
    """Replays a booking scenario and prints each step."""

    SCENARIOS = ("standard", "verified", "blocked", "reassign")

    def __init__(self, scenario: str = "standard") -> None:
        self.scenario = scenario
        self.gateway = LoggingGateway()
        self.repository = InMemoryRepository(
            performers=DEMO_PERFORMERS,
            bookings=self._seed_bookings(scenario),
            do_not_serve=self._seed_do_not_serve(scenario),
        )
        self.machine = BookingStateMachine(
            self.repository, dispatcher=NotificationDispatcher(self.gateway),
        )

    @staticmethod
    def _seed_bookings(scenario: str) -> list[Booking]:
        if scenario != "verified":
            return []
        past = datetime.now(timezone.utc) - timedelta(days=60)
        return [Booking(
            performer_id="p2", performer_name="Jasmine",
            client_name=DEMO_CLIENT.name, client_email="ALEX@example.com",
            event_date="2025-01-10", event_time="20:00", event_address="1 Past Rd",
            event_type="Buck's Party", duration_hours=3, number_of_guests=12,
            status=BookingStatus.CONFIRMED, created_at=past,
        )]

    @staticmethod
    def _seed_do_not_serve(scenario: str) -> list[DoNotServeEntry]:
        if scenario != "blocked":
            return []
        return [DoNotServeEntry(
            client_name="Someone Else", client_phone="+61400123456",
            reason="Aggressive towards staff", submitted_by_performer_id="p1",
            submitted_by_name="Scarlett", status=DoNotServeStatus.APPROVED,
        )]

    def step(self, actor: str, text: str) -> None:
        print(f"\n{BLUE}{BOLD}[{actor}]{RESET} {text}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def show_booking(self, booking: Booking) -> None:
        self.system_log(
            f"Booking {booking.id[:8]} ({booking.performer_label}): "
            f"{YELLOW}{booking.status.value}{RESET}{DIM} v{booking.version}"
        )

    async def show_messages(self, booking_id: str) -> None:
        communications = await self.repository.list_communications()
        for comm in reversed(communications):
            if comm.booking_id != booking_id or comm.read:
                continue
            first_line = comm.message.splitlines()[0]
            print(f"{GREEN}    -> {comm.recipient:<6} {first_line}{RESET}")
            await self.machine.mark_communication_read(comm.id)
        for message in self.gateway.sent:
            self.system_log(f"{message.channel.value} to {message.address}")
        self.gateway.sent.clear()

    async def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {settings.platform_name.upper()} - Scenario: {self.scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        duration = get_duration_info(DEMO_EVENT.duration_hours, DEMO_SERVICES)
        performers = ["p1", "p2"] if self.scenario == "reassign" else ["p1"]
        cost = compute_cost(DEMO_EVENT.duration_hours, DEMO_SERVICES, len(performers))
        self.step("Client", f"{DEMO_CLIENT.name} requests {describe_services(DEMO_SERVICES)}")
        self.system_log(
            f"Duration {duration.formatted}; total {format_money(cost.total_cost)}, "
            f"deposit {format_money(cost.deposit_amount)}"
        )

        result = await self.machine.submit_request(
            DEMO_CLIENT, DEMO_EVENT, DEMO_SERVICES, performers,
        )
        if not result.success:
            print(f"{RED}  Request refused: {result.message}{RESET}")
            self._footer()
            return

        booking_id = result.booking_ids[0]
        await self.show_messages(booking_id)
        try:
            if self.scenario == "reassign":
                await self._reassign_flow(result.booking_ids)
            else:
                await self._standard_flow(booking_id)
        except BookingError as exc:
            print(f"{RED}  {type(exc).__name__}: {exc}{RESET}")
        self._footer()

    async def _standard_flow(self, booking_id: str) -> None:
        self.step("Performer", "Scarlett accepts with a 30 minute ETA")
        booking = await self.machine.performer_decide(booking_id, PerformerDecision.ACCEPT, 30)
        self.show_booking(booking)
        await self.show_messages(booking_id)

        if booking.status == BookingStatus.PENDING_VETTING:
            self.step("Admin", "Approves the application")
            booking = await self.machine.admin_decide_vetting(booking_id, approve=True)
            self.show_booking(booking)
            await self.show_messages(booking_id)

        self.step("Client", "Reports the deposit as paid")
        booking = await self.machine.client_confirms_deposit(booking_id)
        self.show_booking(booking)
        await self.show_messages(booking_id)

        self.step("Admin", "Verifies the deposit")
        booking = await self.machine.admin_confirm_deposit(booking_id)
        self.show_booking(booking)
        await self.show_messages(booking_id)

        self.step("Performer", "Scarlett pays the referral fee")
        booking = await self.machine.performer_pays_referral_fee(booking_id)
        self.system_log(f"Referral fee: {format_money(booking.referral_fee_amount or 0)}")
        await self.show_messages(booking_id)

        self.step("Admin", "Tries to reject the confirmed booking")
        try:
            await self.machine.admin_reject(booking_id)
        except BookingError as exc:
            self.system_log(f"{RED}{exc}{RESET}")

    async def _reassign_flow(self, booking_ids: list[str]) -> None:
        first, second = booking_ids
        self.step("Performer", "Jasmine declines her copy of the request")
        self.show_booking(await self.machine.performer_decide(second, PerformerDecision.DECLINE))
        await self.show_messages(second)

        self.step("Admin", "Reassigns Scarlett's booking to Jasmine")
        self.show_booking(await self.machine.admin_reassign_performer(first, "p2"))
        await self.show_messages(first)

        self.step("Admin", "Accepts on Jasmine's behalf")
        self.show_booking(
            await self.machine.admin_override_for_performer(first, PerformerDecision.ACCEPT)
        )
        await self.show_messages(first)

        self.step("Admin", "Rejects the booking")
        self.show_booking(await self.machine.admin_reject(first))
        await self.show_messages(first)

    def _footer(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{self.scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking workflow demo")
    parser.add_argument(
        "--scenario",
        choices=ConsoleSession.SCENARIOS,
        default="standard",
        help="Which booking lifecycle to replay",
    )
    args = parser.parse_args()
    asyncio.run(ConsoleSession(args.scenario).run())


if __name__ == "__main__":
    main()
