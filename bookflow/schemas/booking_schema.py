"""Booking data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookingStatus(str, Enum):
    """Every status a booking can hold. Values are the wire format."""
    PENDING_PERFORMER_ACCEPTANCE = "pending_performer_acceptance"
    PENDING_VETTING = "pending_vetting"
    DEPOSIT_PENDING = "deposit_pending"
    PENDING_DEPOSIT_CONFIRMATION = "pending_deposit_confirmation"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class PerformerDecision(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"


class DecidedBy(str, Enum):
    """Who made the acceptance decision recorded on a booking."""
    PERFORMER = "performer"
    ADMIN = "admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class ClientInfo(BaseModel):
    """Identity of the client submitting a request."""
    name: str
    email: str = ""
    phone: str = ""


class EventInfo(BaseModel):
    """Event facts shared by every booking created from one request.

    Duration and guest count are checked by the state machine at creation,
    so an invalid request can still be represented and rejected there.
    """
    date: str
    time: str
    address: str
    event_type: str
    duration_hours: float
    number_of_guests: int
    client_message: Optional[str] = None
    id_document_path: Optional[str] = None


class Booking(BaseModel):
    """A single client/performer booking record."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    performer_id: str
    performer_name: Optional[str] = None
    client_name: str
    client_email: str = ""
    client_phone: str = ""
    event_date: str
    event_time: str
    event_address: str
    event_type: str
    duration_hours: float
    number_of_guests: int
    client_message: Optional[str] = None
    services_requested: list[str] = Field(default_factory=list)
    status: BookingStatus = BookingStatus.PENDING_PERFORMER_ACCEPTANCE
    id_document_path: Optional[str] = None
    deposit_receipt_path: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    verified_by_admin_name: Optional[str] = None
    verified_at: Optional[datetime] = None
    performer_reassigned_from_id: Optional[str] = None
    performer_eta_minutes: Optional[int] = None
    decided_by: Optional[DecidedBy] = None
    referral_fee_paid: bool = False
    referral_fee_amount: Optional[float] = None
    referral_fee_receipt_path: Optional[str] = None
    version: int = 1

    @field_validator("services_requested")
    @classmethod
    def _dedupe_services(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @property
    def performer_label(self) -> str:
        return self.performer_name or "The performer"


class BookingRequestResult(BaseModel):
    """Outcome of a client booking request."""
    success: bool
    message: str
    booking_ids: list[str] = Field(default_factory=list)
