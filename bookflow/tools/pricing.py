"""
Booking cost and duration calculations.

Every view (client, performer, admin) recomputes cost from the booking's
services, duration and performer count instead of storing it, so these
functions must stay pure: same inputs, same figures, no exceptions.

Usage:
    cost = compute_cost(3, ["misc-promo-model", "show-pearl"], performer_count=2)
    cost.total_cost, cost.deposit_amount, cost.balance_due
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from bookflow.config import settings
from bookflow.schemas.performer_schema import RateType, Service
from bookflow.tools.services import get_services

logger = logging.getLogger(__name__)

DEPOSIT_PERCENTAGE: float = settings.pricing.deposit_percentage
REFERRAL_FEE_PERCENTAGE: float = settings.pricing.referral_fee_percentage


@dataclass(frozen=True)
class CostBreakdown:
    """Derived cost figures for one booking line."""
    total_cost: float = 0.0
    deposit_amount: float = 0.0
    hourly_cost: float = 0.0
    flat_cost: float = 0.0
    referral_fee: float = 0.0

    @property
    def balance_due(self) -> float:
        """Amount still owed on the night once the deposit is paid."""
        return self.total_cost - self.deposit_amount


@dataclass(frozen=True)
class DurationInfo:
    total_minutes: int
    formatted: str
    has_hourly_service: bool
    show_minutes: int
    base_minutes: int


def _as_hours(value: Any) -> float:
    """Coerce a duration to a non-negative float, treating junk as zero."""
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(hours) or math.isinf(hours) or hours < 0:
        return 0.0
    return hours


def _as_count(value: Any) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)


def compute_cost(
    duration_hours: Any,
    service_ids: Iterable[str],
    performer_count: Any,
    catalog: Optional[Mapping[str, Service]] = None,
    deposit_percentage: Optional[float] = None,
    referral_fee_percentage: Optional[float] = None,
) -> CostBreakdown:
    """
    Compute total cost and deposit for a booking.

    Flat-rate services are charged once. Per-hour services are charged
    for ``max(duration, min_duration_hours)`` and multiplied by the
    number of performers; flat services are not.

    Args:
        duration_hours: Booked duration. Non-numeric or negative counts as 0.
        service_ids: Requested service ids. Unknown ids are ignored.
        performer_count: Number of performers sharing the booking.
        catalog: Rate card to price against. Defaults to SERVICE_CATALOG.
        deposit_percentage: Overrides the configured deposit percentage.
        referral_fee_percentage: Overrides the configured referral fee percentage.

    Returns:
        CostBreakdown with total, deposit, referral fee and the hourly/flat split.
    """
    services = get_services(service_ids or [], catalog)
    count = _as_count(performer_count)
    if not services or count == 0:
        return CostBreakdown()

    hours = _as_hours(duration_hours)
    hourly_cost = 0.0
    flat_cost = 0.0
    for service in services:
        if service.rate_type == RateType.FLAT:
            flat_cost += service.rate
        elif service.rate_type == RateType.PER_HOUR:
            billable = max(hours, service.min_duration_hours or 0)
            hourly_cost += service.rate * billable

    percentage = DEPOSIT_PERCENTAGE if deposit_percentage is None else deposit_percentage
    referral = REFERRAL_FEE_PERCENTAGE if referral_fee_percentage is None else referral_fee_percentage
    total_cost = (hourly_cost * count) + flat_cost
    return CostBreakdown(
        total_cost=total_cost,
        deposit_amount=total_cost * percentage,
        hourly_cost=hourly_cost * count,
        flat_cost=flat_cost,
        referral_fee=total_cost * referral,
    )


def format_money(amount: float) -> str:
    return f"{settings.pricing.currency_symbol}{amount:,.2f}"


def format_minutes(total_minutes: int) -> str:
    """Render minutes as e.g. '2 hours 15 minutes'. Non-positive is 'N/A'."""
    if total_minutes <= 0:
        return "N/A"
    hours, minutes = divmod(int(total_minutes), 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours > 1 else ''}")
    if minutes > 0:
        parts.append(f"{minutes} minute{'s' if minutes > 1 else ''}")
    return " ".join(parts)


def get_duration_info(
    duration_hours: Any,
    service_ids: Iterable[str],
    catalog: Optional[Mapping[str, Service]] = None,
) -> DurationInfo:
    """Combine the hourly base duration with fixed-length show durations.

    The base duration only counts when at least one per-hour service is
    selected; flat shows contribute their own ``duration_minutes``.
    """
    services = get_services(service_ids or [], catalog)
    has_hourly = any(s.rate_type == RateType.PER_HOUR for s in services)
    show_minutes = sum(
        s.duration_minutes or 0 for s in services if s.rate_type == RateType.FLAT
    )
    base_minutes = int(round(_as_hours(duration_hours) * 60)) if has_hourly else 0
    total = base_minutes + show_minutes
    return DurationInfo(
        total_minutes=total,
        formatted=format_minutes(total),
        has_hourly_service=has_hourly,
        show_minutes=show_minutes,
        base_minutes=base_minutes,
    )
