"""Exception hierarchy for the booking workflow.

Admission, validation and guard failures are reported to the caller
immediately and leave state untouched. Backend failures are retryable:
the optimistic cache has already been reverted when they surface.
Delivery failures never appear here; they are logged by the dispatcher.
"""


class BookingError(Exception):
    """Base class for every error raised by the booking workflow."""


class ClientBlockedError(BookingError):
    """Raised when a client matches an approved Do-Not-Serve entry."""

    def __init__(self, client_name: str) -> None:
        super().__init__(f"Client '{client_name}' is on the 'Do Not Serve' list.")
        self.client_name = client_name


class BookingValidationError(BookingError, ValueError):
    """Raised when booking request facts are malformed."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(f"{field_name}: {message}")
        self.field_name = field_name


class InvalidTransitionError(BookingError):
    """Raised when a transition is not valid from the booking's current status."""


class NotFoundError(BookingError, LookupError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str) -> None:
        super().__init__("Booking", booking_id)


class BackendError(BookingError):
    """A persistence or transport failure. Safe to retry."""

    retryable = True


class ConcurrentUpdateError(BackendError):
    """Raised when the stored version no longer matches the caller's copy."""

    def __init__(self, entity_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{entity_id} was modified concurrently "
            f"(expected version {expected}, found {actual})."
        )
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual


class BackendTimeoutError(BackendError):
    """Raised when a backend call exceeds the configured request timeout."""
