"""Notification records and their not-yet-persisted drafts."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

ADMIN_RECIPIENT = "admin"
CLIENT_RECIPIENT = "user"
SYSTEM_SENDER = "System"
ADMIN_SENDER = "Admin"


class CommunicationType(str, Enum):
    BOOKING_UPDATE = "booking_update"
    BOOKING_CONFIRMATION = "booking_confirmation"
    ADMIN_MESSAGE = "admin_message"
    SYSTEM_ALERT = "system_alert"
    DIRECT_MESSAGE = "direct_message"


class Channel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"


class NotificationDraft(BaseModel):
    """A message the dispatcher wants persisted. Has no id yet."""
    sender: str
    recipient: str
    message: str
    type: CommunicationType
    booking_id: Optional[str] = None


class Communication(NotificationDraft):
    """Persisted, append-only notification. Only ``read`` ever changes."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_draft(cls, draft: NotificationDraft, **overrides) -> "Communication":
        return cls(**{**draft.model_dump(), **overrides})


@dataclass(frozen=True)
class OutboundMessage:
    """A message handed to the SMS / WhatsApp delivery gateway."""
    address: str
    body: str
    channel: Channel
