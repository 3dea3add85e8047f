"""Do-Not-Serve block-list records."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

# Performer id recorded when an admin files the entry directly.
ADMIN_SUBMITTER_ID = "0"


class DoNotServeStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DoNotServeSubmission(BaseModel):
    """Fields a performer or admin provides when flagging a client."""
    client_name: str
    client_email: str = ""
    client_phone: str = ""
    reason: str
    submitted_by_performer_id: str = ADMIN_SUBMITTER_ID
    submitted_by_name: Optional[str] = None


class DoNotServeEntry(DoNotServeSubmission):
    """Stored entry. Only blocks bookings once an admin approves it."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: DoNotServeStatus = DoNotServeStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status == DoNotServeStatus.APPROVED
