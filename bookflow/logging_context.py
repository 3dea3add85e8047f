"""Booking ID logging context for tracing a booking across modules.

Provides a booking-aware logger that attaches the booking currently being
transitioned to every log message, so a single booking's lifecycle can be
followed through the state machine, dispatcher, and delivery gateway.

Usage:
    from bookflow.logging_context import booking_scope, get_booking_logger

    logger = get_booking_logger(__name__)
    with booking_scope("bfa3e8a7"):
        logger.info("Deposit confirmed")  # record.booking_id == "bfa3e8a7"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_booking_id: ContextVar[str] = ContextVar("booking_id", default="NO_BOOKING")


def set_booking_id(booking_id: str) -> None:
    """Set the booking ID for the current async context."""
    _booking_id.set(booking_id)


def get_booking_id() -> str:
    """Retrieve the current booking ID."""
    return _booking_id.get()


@contextmanager
def booking_scope(booking_id: str) -> Iterator[None]:
    """Bind ``booking_id`` for the duration of the block, then restore."""
    token = _booking_id.set(booking_id)
    try:
        yield
    finally:
        _booking_id.reset(token)


class BookingIdFilter(logging.Filter):
    """Injects booking_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.booking_id = _booking_id.get()  # type: ignore[attr-defined]
        return True


def get_booking_logger(name: str) -> logging.Logger:
    """Return a logger with the BookingIdFilter attached.

    The filter adds ``booking_id`` to each record so formatters can
    include ``%(booking_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, BookingIdFilter) for f in logger.filters):
        logger.addFilter(BookingIdFilter())
    return logger
