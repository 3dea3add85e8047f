"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from bookflow.config import WorkflowConfig
from bookflow.delivery.gateway import LoggingGateway
from bookflow.repository.memory import InMemoryRepository
from bookflow.schemas.booking_schema import Booking, BookingStatus, ClientInfo, EventInfo
from bookflow.schemas.do_not_serve_schema import DoNotServeEntry, DoNotServeStatus
from bookflow.schemas.performer_schema import Performer, RateType, Service
from bookflow.tools.services import build_catalog
from bookflow.workflow.notifications import NotificationDispatcher
from bookflow.workflow.state_machine import BookingStateMachine

PERFORMERS = [
    Performer(id="p1", name="Scarlett", phone="+61400000001"),
    Performer(id="p2", name="Jasmine", phone="+61400000002"),
    Performer(id="p3", name="Ruby"),
]


def make_client(
    name: str = "Alex Morgan",
    email: str = "alex@example.com",
    phone: str = "+61 400 123 456",
) -> ClientInfo:
    return ClientInfo(name=name, email=email, phone=phone)


def make_event(duration_hours: float = 3, number_of_guests: int = 20) -> EventInfo:
    return EventInfo(
        date="2025-03-15",
        time="19:30",
        address="12 Harbour St, Fremantle",
        event_type="Birthday Party",
        duration_hours=duration_hours,
        number_of_guests=number_of_guests,
        client_message="Side gate please",
    )


def make_booking(
    status: BookingStatus = BookingStatus.PENDING_PERFORMER_ACCEPTANCE,
    performer_id: str = "p1",
    client_email: str = "alex@example.com",
    client_phone: str = "+61 400 123 456",
    booking_id: Optional[str] = None,
    days_ago: int = 0,
) -> Booking:
    """Helper to create a stored Booking in a given status."""
    fields = dict(
        performer_id=performer_id,
        performer_name=next(p.name for p in PERFORMERS if p.id == performer_id),
        client_name="Alex Morgan",
        client_email=client_email,
        client_phone=client_phone,
        event_date="2025-03-15",
        event_time="19:30",
        event_address="12 Harbour St",
        event_type="Birthday Party",
        duration_hours=3,
        number_of_guests=20,
        services_requested=["misc-promo-model"],
        status=status,
        created_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )
    if booking_id:
        fields["id"] = booking_id
    return Booking(**fields)


def make_dns_entry(
    status: DoNotServeStatus = DoNotServeStatus.APPROVED,
    client_name: str = "Someone Else",
    client_email: str = "",
    client_phone: str = "",
) -> DoNotServeEntry:
    return DoNotServeEntry(
        client_name=client_name,
        client_email=client_email,
        client_phone=client_phone,
        reason="Abusive behaviour",
        submitted_by_performer_id="p1",
        submitted_by_name="Scarlett",
        status=status,
    )


@pytest.fixture
def example_catalog():
    return build_catalog([
        Service(id="A", name="Show A", rate=100, rate_type=RateType.FLAT, duration_minutes=15),
        Service(id="B", name="Hourly B", rate=50, rate_type=RateType.PER_HOUR,
                min_duration_hours=2),
    ])


@pytest.fixture
def repository():
    return InMemoryRepository(performers=PERFORMERS)


@pytest.fixture
def gateway():
    return LoggingGateway()


@pytest.fixture
def workflow_config():
    return WorkflowConfig(
        request_timeout_sec=1.0,
        performer_prompt_delay_sec=0,
        admin_display_name="Admin",
        receipt_path_prefix="simulated/receipt-",
    )


@pytest.fixture
def machine(repository, gateway, workflow_config):
    return BookingStateMachine(
        repository,
        dispatcher=NotificationDispatcher(gateway),
        config=workflow_config,
    )


def machine_for(repository, gateway=None, config=None) -> BookingStateMachine:
    """Build a machine over a pre-seeded repository."""
    return BookingStateMachine(
        repository,
        dispatcher=NotificationDispatcher(gateway or LoggingGateway()),
        config=config or WorkflowConfig(request_timeout_sec=1.0, performer_prompt_delay_sec=0),
    )
