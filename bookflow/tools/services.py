"""Service rate card with pricing, durations, and categories."""

import logging
from typing import Iterable, Mapping, Optional

from bookflow.schemas.performer_schema import RateType, Service

logger = logging.getLogger(__name__)

_RATE_CARD: list[Service] = [
    # --- Waitressing ---
    Service(
        id="waitress-lingerie", category="Waitressing", name="Lingerie Waitress",
        description="Elegant drinks service for private events.",
        rate=110, rate_type=RateType.PER_HOUR, min_duration_hours=1,
        booking_notes="Private events only",
    ),
    Service(
        id="waitress-topless", category="Waitressing", name="Topless Waitress",
        description="Cheeky drinks service for private parties.",
        rate=160, rate_type=RateType.PER_HOUR, min_duration_hours=1,
        booking_notes="Private events only",
    ),
    Service(
        id="waitress-nude", category="Waitressing", name="Nude Waitress",
        description="Full drinks service for adults-only private parties.",
        rate=260, rate_type=RateType.PER_HOUR, min_duration_hours=1,
        booking_notes="Private events only",
    ),

    # --- Shows ---
    Service(
        id="show-hot-cream", category="Strip Show", name="Hot Cream Show",
        description="Flirty show with a whipped cream finish.",
        rate=380, rate_type=RateType.FLAT, duration_minutes=10,
    ),
    Service(
        id="show-pearl", category="Strip Show", name="Pearl Show",
        description="Classic solo show.",
        rate=500, rate_type=RateType.FLAT, duration_minutes=15,
        booking_notes="Standard solo show",
    ),
    Service(
        id="show-toy", category="Strip Show", name="Toy Show",
        description="Adults-only solo show with props.",
        rate=550, rate_type=RateType.FLAT, duration_minutes=15,
    ),
    Service(
        id="show-deluxe-works", category="Strip Show", name="Deluxe Works Show",
        description="Extended show with extras.",
        rate=700, rate_type=RateType.FLAT, duration_minutes=20,
    ),
    Service(
        id="show-absolute-works", category="Strip Show", name="The Absolute Works",
        description="The full premium show.",
        rate=1000, rate_type=RateType.FLAT, duration_minutes=25,
        booking_notes="Premium full-service show",
    ),

    # --- Promotional & hosting ---
    Service(
        id="misc-promo-model", category="Promotional & Hosting", name="Promotional Model",
        description="Professional model for your product or brand.",
        rate=100, rate_type=RateType.PER_HOUR, min_duration_hours=2,
    ),
    Service(
        id="misc-atmospheric", category="Promotional & Hosting",
        name="Atmospheric Entertainment",
        description="Adds ambience to your event.",
        rate=90, rate_type=RateType.PER_HOUR, min_duration_hours=2,
    ),
    Service(
        id="misc-games-host", category="Promotional & Hosting", name="Game Hosting",
        description="Interactive game hosting for parties.",
        rate=120, rate_type=RateType.PER_HOUR, min_duration_hours=1,
    ),
]

SERVICE_CATALOG: dict[str, Service] = {service.id: service for service in _RATE_CARD}


def build_catalog(services: Iterable[Service]) -> dict[str, Service]:
    """Index an arbitrary set of services by id."""
    return {service.id: service for service in services}


def get_all_services() -> list[Service]:
    """Return the full rate card in display order."""
    return list(SERVICE_CATALOG.values())


def get_service(service_id: str, catalog: Optional[Mapping[str, Service]] = None) -> Optional[Service]:
    """Look up a service by id. Returns None if it is not on the rate card."""
    return (catalog if catalog is not None else SERVICE_CATALOG).get(service_id)


def get_services(
    service_ids: Iterable[str], catalog: Optional[Mapping[str, Service]] = None
) -> list[Service]:
    """Resolve ids to services, skipping unknown ids and duplicates."""
    found: list[Service] = []
    seen: set[str] = set()
    for service_id in service_ids:
        if service_id in seen:
            continue
        seen.add(service_id)
        service = get_service(service_id, catalog)
        if service is None:
            logger.debug("Ignoring unknown service id: %s", service_id)
            continue
        found.append(service)
    return found


def get_services_by_category() -> dict[str, list[Service]]:
    """Group the rate card by category, preserving order."""
    grouped: dict[str, list[Service]] = {}
    for service in SERVICE_CATALOG.values():
        grouped.setdefault(service.category, []).append(service)
    return grouped


def describe_services(
    service_ids: Iterable[str], catalog: Optional[Mapping[str, Service]] = None
) -> str:
    """Human readable, comma separated list of service names."""
    names = [service.name for service in get_services(service_ids, catalog)]
    return ", ".join(names) if names else "No services selected"
