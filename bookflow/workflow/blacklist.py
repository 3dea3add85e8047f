"""
Do-Not-Serve admission check.

A client is refused when ANY identity field matches an approved entry:
name (trimmed, case-insensitive), email (trimmed, case-insensitive) or
phone (whitespace-stripped, exact). Partial collisions therefore err
toward blocking. The check runs once, when a booking is requested;
entries approved later do not affect existing bookings.
"""

import logging
from typing import Iterable, Optional

from bookflow.errors import ClientBlockedError
from bookflow.repository.base import BookingRepository
from bookflow.schemas.booking_schema import ClientInfo
from bookflow.schemas.do_not_serve_schema import DoNotServeEntry
from bookflow.utils import normalize_email, normalize_name, normalize_phone

logger = logging.getLogger(__name__)


def entry_matches(
    entry: DoNotServeEntry,
    client_name: str,
    client_email: Optional[str] = None,
    client_phone: Optional[str] = None,
) -> bool:
    """True if any populated identity field of the client matches the entry."""
    name = normalize_name(client_name)
    if name and normalize_name(entry.client_name) == name:
        return True
    email = normalize_email(client_email)
    if email and normalize_email(entry.client_email) == email:
        return True
    phone = normalize_phone(client_phone)
    if phone and normalize_phone(entry.client_phone) == phone:
        return True
    return False


def find_blocking_entry(
    entries: Iterable[DoNotServeEntry],
    client_name: str,
    client_email: Optional[str] = None,
    client_phone: Optional[str] = None,
) -> Optional[DoNotServeEntry]:
    """Return the first approved entry matching the client, if any."""
    for entry in entries:
        if entry.is_active and entry_matches(entry, client_name, client_email, client_phone):
            return entry
    return None


class BlacklistGuard:
    """Checks clients against approved Do-Not-Serve entries."""

    def __init__(self, repository: BookingRepository) -> None:
        self._repository = repository

    async def is_blocked(
        self,
        client_name: str,
        client_email: Optional[str] = None,
        client_phone: Optional[str] = None,
    ) -> bool:
        entries = await self._repository.list_do_not_serve()
        entry = find_blocking_entry(entries, client_name, client_email, client_phone)
        if entry is not None:
            logger.warning(
                "Client '%s' matched Do-Not-Serve entry %s", client_name, entry.id,
            )
            return True
        return False

    async def check(self, client: ClientInfo) -> None:
        """Raise ClientBlockedError if the client may not book."""
        if await self.is_blocked(client.name, client.email, client.phone):
            raise ClientBlockedError(client.name)
