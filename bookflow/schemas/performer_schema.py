"""Performer profiles and the service rate card."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PerformerStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class RateType(str, Enum):
    FLAT = "flat"
    PER_HOUR = "per_hour"


class Performer(BaseModel):
    """Performer record. Status is owned by the performer, the rest by admins."""
    id: str
    name: str
    tagline: str = ""
    status: PerformerStatus = PerformerStatus.AVAILABLE
    service_ids: list[str] = Field(default_factory=list)
    service_areas: list[str] = Field(default_factory=list)
    phone: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Service(BaseModel):
    """Immutable rate-card entry."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    rate: float
    rate_type: RateType
    category: str = ""
    description: str = ""
    min_duration_hours: Optional[float] = None
    duration_minutes: Optional[int] = None
    booking_notes: Optional[str] = None
